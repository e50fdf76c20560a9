from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from classroom.core.current_user import get_current_user
from classroom.core.deps import get_db
from classroom.models.user import User
from classroom.schemas.comment import CommentCreate, CommentRead
from classroom.services import comments as comment_service

router = APIRouter()


@router.get("/submissions/{submission_id}/comments", response_model=list[CommentRead])
def list_comments(
    submission_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return comment_service.list_comments(db, submission_id, current_user)


@router.post(
    "/submissions/{submission_id}/comments",
    response_model=CommentRead,
    status_code=status.HTTP_201_CREATED,
)
def add_comment(
    submission_id: int,
    payload: CommentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return comment_service.add_comment(db, submission_id, current_user, payload.content)
