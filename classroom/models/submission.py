from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, Integer, String, Text, func, text
from sqlalchemy.orm import relationship

from classroom.db.base_class import Base

SUBMISSION_STATUSES = ("draft", "submitted", "graded")
# statuses that count as "a submission exists" for reporting
QUALIFYING_STATUSES = ("submitted", "graded")


class Submission(Base):
    """
    One attempt by a student at an assignment.

    The table is a ledger: a draft row is edited in place, but once a row
    leaves ``draft`` it is never rewritten with new content. Resubmitting adds
    a row; the current attempt is resolved at query time.
    """

    __tablename__ = "submissions"

    id = Column(Integer, primary_key=True, index=True)

    assignment_id = Column(Integer, ForeignKey("assignments.id"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    written_response = Column(Text, nullable=True)
    map_data = Column(JSON, nullable=True)
    attachments = Column(JSON, nullable=True)

    status = Column(String(20), nullable=False, default="draft")

    # NULL while the row is a draft
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index(
            "ix_submissions_assignment_student_submitted",
            "assignment_id",
            "student_id",
            submitted_at.desc(),
        ),
        # at most one open draft per (assignment, student)
        Index(
            "uq_submissions_open_draft",
            "assignment_id",
            "student_id",
            unique=True,
            sqlite_where=text("status = 'draft'"),
            postgresql_where=text("status = 'draft'"),
        ),
    )

    assignment = relationship("Assignment", back_populates="submissions")
    student = relationship("User", back_populates="submissions")
    grade = relationship("Grade", back_populates="submission", uselist=False)
    comments = relationship("Comment", back_populates="submission", order_by="Comment.id")
