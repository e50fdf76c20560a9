from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from classroom.core.current_user import get_current_user
from classroom.core.deps import get_db
from classroom.models.enrollment import Enrollment
from classroom.models.user import User
from classroom.schemas.enrollment import CodeRedeem, CoTeacherOut, EnrollmentOut, RedeemResult
from classroom.services.enrollment_codes import redeem_enrollment_code

router = APIRouter()


@router.post(
    "/redeem",
    response_model=RedeemResult,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"description": "No class found with that code"},
        409: {"description": "Already enrolled / already teaching this class"},
    },
)
def redeem_code(
    payload: CodeRedeem,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    created = redeem_enrollment_code(db, me, payload.code, payload.as_role)

    if isinstance(created, Enrollment):
        return RedeemResult(
            role="student",
            class_id=created.class_id,
            enrollment=EnrollmentOut.model_validate(created),
        )
    return RedeemResult(
        role="teacher",
        class_id=created.class_id,
        co_teacher=CoTeacherOut.model_validate(created),
    )


@router.get("/me", response_model=list[EnrollmentOut])
def my_enrollments(
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    return db.query(Enrollment).filter(Enrollment.student_id == me.id).all()
