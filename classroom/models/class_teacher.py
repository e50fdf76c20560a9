from sqlalchemy import Column, DateTime, ForeignKey, Integer, UniqueConstraint, func
from sqlalchemy.orm import relationship

from classroom.db.base_class import Base


class ClassTeacher(Base):
    """Co-teaching grant: a teacher with access to a class they did not create."""

    __tablename__ = "class_teachers"

    id = Column(Integer, primary_key=True, index=True)
    teacher_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    class_id = Column(Integer, ForeignKey("classes.id"), nullable=False, index=True)
    added_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("teacher_id", "class_id", name="uq_class_teachers_teacher_class"),
    )

    teacher = relationship("User")
    school_class = relationship("SchoolClass", back_populates="co_teachers")
