from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from classroom.core.current_user import get_current_user
from classroom.core.deps import get_db
from classroom.core.permissions import require_staff
from classroom.models.user import User
from classroom.schemas.unit import UnitCreate, UnitRead
from classroom.services import classes as class_service
from classroom.services import units as unit_service

router = APIRouter()


@router.post(
    "/classes/{class_id}/units",
    response_model=UnitRead,
    status_code=status.HTTP_201_CREATED,
)
def create_unit(
    class_id: int,
    payload: UnitCreate,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_staff),
):
    return unit_service.create_unit(
        db,
        class_id,
        teacher,
        title=payload.title,
        description=payload.description,
        order=payload.order,
    )


@router.get("/classes/{class_id}/units", response_model=list[UnitRead])
def list_units(
    class_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    class_service.get_class(db, class_id, current_user)
    return unit_service.list_units(db, class_id)


@router.delete("/units/{unit_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_unit(
    unit_id: int,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_staff),
):
    unit_service.delete_unit(db, unit_id, teacher)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
