from fastapi import Depends, HTTPException, status

from classroom.core.current_user import get_current_user
from classroom.models.user import User


def _require_role(current_user: User, *roles: str) -> User:
    if current_user.role not in roles:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"{' or '.join(r.capitalize() for r in roles)} role required",
        )
    return current_user


def require_teacher(current_user: User = Depends(get_current_user)) -> User:
    return _require_role(current_user, "teacher")


def require_student(current_user: User = Depends(get_current_user)) -> User:
    return _require_role(current_user, "student")


def require_staff(current_user: User = Depends(get_current_user)) -> User:
    return _require_role(current_user, "teacher", "admin")
