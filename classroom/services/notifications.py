import logging
from typing import Any, Mapping, Protocol

from sqlalchemy.orm import Session

from classroom.core.errors import NotFound, ValidationFailed
from classroom.models.notification import NOTIFICATION_TYPES, Notification

logger = logging.getLogger(__name__)


class NotificationSink(Protocol):
    def notify(self, user_id: int, type: str, payload: Mapping[str, Any]) -> None:
        ...


class DatabaseNotificationSink:
    """
    Writes notification rows into the caller's session.

    Nothing is committed here: the rows land in the same transaction as the
    write that triggered them, so a rolled back submit or grade leaves no
    orphan notification behind.
    """

    def __init__(self, db: Session):
        self.db = db

    def notify(self, user_id: int, type: str, payload: Mapping[str, Any]) -> None:
        if type not in NOTIFICATION_TYPES:
            raise ValidationFailed(f"Unknown notification type: {type}")
        self.db.add(
            Notification(
                user_id=user_id,
                type=type,
                title=payload.get("title", ""),
                message=payload.get("message", ""),
                assignment_id=payload.get("assignment_id"),
                submission_id=payload.get("submission_id"),
                is_read=False,
            )
        )
        logger.debug("queued %s notification for user %s", type, user_id)


def list_notifications(db: Session, user_id: int) -> list[Notification]:
    return (
        db.query(Notification)
        .filter(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .all()
    )


def unread_count(db: Session, user_id: int) -> int:
    return (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
        .count()
    )


def mark_all_read(db: Session, user_id: int) -> int:
    updated = (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
        .update({Notification.is_read: True}, synchronize_session=False)
    )
    db.commit()
    return updated


def mark_read(db: Session, notification_id: int, user_id: int) -> Notification:
    notification = (
        db.query(Notification)
        .filter(Notification.id == notification_id, Notification.user_id == user_id)
        .first()
    )
    if not notification:
        raise NotFound("Notification not found")
    notification.is_read = True
    db.commit()
    db.refresh(notification)
    return notification
