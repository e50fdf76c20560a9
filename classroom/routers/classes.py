from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from classroom.core.current_user import get_current_user
from classroom.core.deps import get_db
from classroom.core.permissions import require_staff, require_teacher
from classroom.models.user import User
from classroom.schemas.enrollment import EnrollmentCreate, EnrollmentOut, RosterRow
from classroom.schemas.school_class import ClassActiveUpdate, ClassCreate, ClassRead
from classroom.schemas.user import StudentSummary
from classroom.services import classes as class_service

router = APIRouter()


@router.post("", response_model=ClassRead, status_code=status.HTTP_201_CREATED)
def create_class(
    payload: ClassCreate,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    return class_service.create_class(
        db,
        teacher,
        title=payload.title,
        description=payload.description,
        weeks=payload.weeks,
        grade_level=payload.grade_level,
        objectives=payload.objectives,
    )


@router.get("", response_model=list[ClassRead])
def list_classes(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    rows = class_service.list_classes_for_user(db, current_user)
    return [
        ClassRead.model_validate(r["school_class"]).model_copy(
            update={"enrollment_count": r["enrollment_count"]}
        )
        for r in rows
    ]


@router.get("/{class_id}", response_model=ClassRead)
def get_class(
    class_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return class_service.get_class(db, class_id, current_user)


@router.patch("/{class_id}/active", response_model=ClassRead)
def set_active(
    class_id: int,
    payload: ClassActiveUpdate,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_staff),
):
    return class_service.set_class_active(db, class_id, teacher, payload.is_active)


@router.delete(
    "/{class_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        400: {"description": "Class is still active"},
        500: {"description": "Could not delete class, try again"},
    },
)
def delete_class(
    class_id: int,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_staff),
):
    class_service.delete_class(db, class_id, teacher)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{class_id}/students", response_model=list[RosterRow])
def list_students(
    class_id: int,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_staff),
):
    rows = class_service.list_class_students(db, class_id, teacher)
    return [
        RosterRow(
            enrollment_id=enrollment.id,
            enrolled_at=enrollment.enrolled_at,
            student=StudentSummary.model_validate(student),
        )
        for enrollment, student in rows
    ]


@router.post(
    "/{class_id}/students",
    response_model=EnrollmentOut,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Already enrolled"}},
)
def add_student(
    class_id: int,
    payload: EnrollmentCreate,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_staff),
):
    return class_service.enroll_student(db, class_id, payload.student_id, teacher)


@router.delete("/{class_id}/students/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_student(
    class_id: int,
    student_id: int,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_staff),
):
    class_service.unenroll_student(db, class_id, student_id, teacher)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
