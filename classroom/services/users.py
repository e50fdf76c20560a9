import logging

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from classroom.core.errors import Conflict, PermissionDenied, ValidationFailed
from classroom.models.user import USER_ROLES, User
from classroom.services.access import ensure_user

logger = logging.getLogger(__name__)


def create_user(
    db: Session,
    creator: User,
    username: str,
    first_name: str,
    last_name: str,
    role: str = "student",
    email: str | None = None,
) -> User:
    if role not in USER_ROLES:
        raise ValidationFailed(f"role must be one of {', '.join(USER_ROLES)}")
    # teachers may add students; anything else needs an admin
    if creator.role != "admin" and not (creator.role == "teacher" and role == "student"):
        raise PermissionDenied("Not allowed to create that kind of user")

    email = email.lower() if email else None
    clauses = [User.username == username]
    if email:
        clauses.append(User.email == email)
    if db.query(User).filter(or_(*clauses)).first():
        raise Conflict("Username or email already registered")

    user = User(
        username=username,
        email=email,
        first_name=first_name,
        last_name=last_name,
        role=role,
    )
    db.add(user)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Username or email already registered")

    db.refresh(user)
    logger.info("user %s (%s) created by %s", user.id, role, creator.id)
    return user


def get_user(db: Session, user_id: int, viewer: User) -> User:
    if viewer.id != user_id and viewer.role not in ("teacher", "admin"):
        raise PermissionDenied("Not allowed to view other users")
    return ensure_user(db, user_id)
