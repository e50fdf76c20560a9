from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, func

from classroom.db.base_class import Base

NOTIFICATION_TYPES = (
    "new_assignment",
    "submission_received",
    "assignment_graded",
    "comment_received",
)


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    type = Column(String(40), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)

    assignment_id = Column(Integer, ForeignKey("assignments.id"), nullable=True)
    submission_id = Column(Integer, ForeignKey("submissions.id"), nullable=True)

    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
