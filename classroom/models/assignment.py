from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import relationship

from classroom.db.base_class import Base

ASSIGNMENT_TYPES = ("text", "gis", "mixed")


class Assignment(Base):
    __tablename__ = "assignments"

    id = Column(Integer, primary_key=True, index=True)
    class_id = Column(Integer, ForeignKey("classes.id"), nullable=False, index=True)
    unit_id = Column(Integer, ForeignKey("units.id"), nullable=True, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    type = Column(String(20), nullable=False, default="text")
    points = Column(Integer, nullable=False, default=100)
    due_date = Column(DateTime(timezone=True), nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    is_published = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    school_class = relationship("SchoolClass", back_populates="assignments")
    unit = relationship("Unit", back_populates="assignments")
    submissions = relationship("Submission", back_populates="assignment")
