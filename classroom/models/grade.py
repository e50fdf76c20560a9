from sqlalchemy import JSON, Column, DateTime, Float, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from classroom.db.base_class import Base


class Grade(Base):
    __tablename__ = "grades"

    id = Column(Integer, primary_key=True, index=True)
    submission_id = Column(Integer, ForeignKey("submissions.id"), nullable=False, index=True)

    score = Column(Float, nullable=False)
    max_score = Column(Float, nullable=False)
    feedback = Column(Text, nullable=True)
    # criterion name -> points awarded
    rubric = Column(JSON, nullable=True)

    graded_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    graded_at = Column(DateTime(timezone=True), nullable=False)

    # re-grading updates this row, never adds a second one
    __table_args__ = (
        UniqueConstraint("submission_id", name="uq_grades_submission"),
    )

    submission = relationship("Submission", back_populates="grade")
