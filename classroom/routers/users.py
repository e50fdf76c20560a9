from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from classroom.core.current_user import get_current_user
from classroom.core.deps import get_db
from classroom.core.permissions import require_staff
from classroom.models.user import User
from classroom.schemas.user import UserCreate, UserRead
from classroom.services import users as user_service

router = APIRouter()


@router.post(
    "",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Username or email already registered"}},
)
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    creator: User = Depends(require_staff),
):
    return user_service.create_user(
        db,
        creator,
        username=payload.username,
        first_name=payload.first_name,
        last_name=payload.last_name,
        role=payload.role,
        email=payload.email,
    )


@router.get("/me", response_model=UserRead)
def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.get("/{user_id}", response_model=UserRead)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return user_service.get_user(db, user_id, current_user)
