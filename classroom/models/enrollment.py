from sqlalchemy import Column, DateTime, ForeignKey, Integer, UniqueConstraint, func
from sqlalchemy.orm import relationship

from classroom.db.base_class import Base


class Enrollment(Base):
    __tablename__ = "enrollments"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(
        Integer, ForeignKey("users.id"), nullable=False, index=True
    )
    class_id = Column(
        Integer,
        ForeignKey("classes.id"),
        nullable=False,
        index=True,
    )
    enrolled_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint(
            "student_id", "class_id", name="uq_enrollments_student_class"
        ),
    )

    student = relationship("User", back_populates="enrollments")
    school_class = relationship("SchoolClass", back_populates="enrollments")
