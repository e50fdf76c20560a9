import logging

from sqlalchemy.orm import Session

from classroom.core.clock import utcnow
from classroom.core.errors import ValidationFailed
from classroom.models.comment import Comment
from classroom.models.user import User
from classroom.services.notifications import DatabaseNotificationSink, NotificationSink
from classroom.services.submissions import get_submission

logger = logging.getLogger(__name__)


def list_comments(db: Session, submission_id: int, user: User) -> list[Comment]:
    get_submission(db, submission_id, user)
    return (
        db.query(Comment)
        .filter(Comment.submission_id == submission_id)
        .order_by(Comment.created_at.asc(), Comment.id.asc())
        .all()
    )


def add_comment(
    db: Session,
    submission_id: int,
    user: User,
    content: str,
    notifier: NotificationSink | None = None,
) -> Comment:
    if not content or not content.strip():
        raise ValidationFailed("Comment cannot be empty")

    submission = get_submission(db, submission_id, user)
    assignment = submission.assignment

    comment = Comment(
        submission_id=submission_id,
        user_id=user.id,
        content=content.strip(),
        created_at=utcnow(),
    )
    db.add(comment)

    # the student hears from teachers, the class owner hears from the student
    if user.id == submission.student_id:
        recipient_id = assignment.school_class.teacher_id
    else:
        recipient_id = submission.student_id

    notifier = notifier or DatabaseNotificationSink(db)
    notifier.notify(
        recipient_id,
        "comment_received",
        {
            "title": "New Comment",
            "message": f'{user.full_name} commented on "{assignment.title}".',
            "assignment_id": assignment.id,
            "submission_id": submission_id,
        },
    )

    db.commit()
    db.refresh(comment)
    logger.info("comment %s added to submission %s by user %s", comment.id, submission_id, user.id)
    return comment
