from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from classroom.db.base_class import Base


class SchoolClass(Base):
    __tablename__ = "classes"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    weeks: Mapped[int] = mapped_column(nullable=False, default=1)
    grade_level: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    objectives: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    teacher_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"), nullable=False, index=True
    )
    # uniqueness lives in the database; generation only pre-checks
    enrollment_code: Mapped[str] = mapped_column(
        String(16), nullable=False, unique=True, index=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    teacher = relationship("User")
    co_teachers = relationship("ClassTeacher", back_populates="school_class")
    units = relationship("Unit", back_populates="school_class")
    assignments = relationship("Assignment", back_populates="school_class")
    enrollments = relationship("Enrollment", back_populates="school_class")
