from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from classroom.core.current_user import get_current_user
from classroom.core.deps import get_db
from classroom.models.user import User
from classroom.schemas.notification import NotificationRead, UnreadCount
from classroom.services import notifications as notification_service

router = APIRouter()


@router.get("", response_model=list[NotificationRead])
def my_notifications(
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    return notification_service.list_notifications(db, me.id)


@router.get("/count", response_model=UnreadCount)
def unread_count(
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    return {"count": notification_service.unread_count(db, me.id)}


@router.post("/mark-read")
def mark_all_read(
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    updated = notification_service.mark_all_read(db, me.id)
    return {"success": True, "updated": updated}


@router.patch("/{notification_id}/read", response_model=NotificationRead)
def mark_read(
    notification_id: int,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    return notification_service.mark_read(db, notification_id, me.id)
