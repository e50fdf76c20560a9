from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from classroom.core.current_user import get_current_user
from classroom.core.deps import get_db
from classroom.core.permissions import require_staff, require_student
from classroom.models.user import User
from classroom.schemas.assignment import (
    AssignmentCreate,
    AssignmentRead,
    AssignmentUpdate,
    PublishUpdate,
    StudentAssignmentRead,
)
from classroom.schemas.report import MissingSubmissionRow
from classroom.schemas.submission import SubmissionRead
from classroom.services import assignments as assignment_service
from classroom.services.reports import list_missing_submissions

router = APIRouter()


@router.get("/classes/{class_id}/assignments", response_model=list[AssignmentRead])
def list_assignments(
    class_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return assignment_service.list_class_assignments(db, class_id, current_user)


@router.post(
    "/classes/{class_id}/assignments",
    response_model=AssignmentRead,
    status_code=status.HTTP_201_CREATED,
)
def create_assignment(
    class_id: int,
    payload: AssignmentCreate,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_staff),
):
    return assignment_service.create_assignment(
        db,
        class_id,
        teacher,
        title=payload.title,
        description=payload.description,
        type=payload.type,
        points=payload.points,
        due_date=payload.due_date,
        unit_id=payload.unit_id,
    )


@router.get("/assignments/{assignment_id}", response_model=AssignmentRead)
def get_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return assignment_service.get_assignment(db, assignment_id, current_user)


@router.patch("/assignments/{assignment_id}", response_model=AssignmentRead)
def update_assignment(
    assignment_id: int,
    payload: AssignmentUpdate,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_staff),
):
    changes = payload.model_dump(exclude_unset=True)
    return assignment_service.update_assignment(db, assignment_id, teacher, changes)


@router.delete("/assignments/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_staff),
):
    assignment_service.delete_assignment(db, assignment_id, teacher)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch(
    "/assignments/{assignment_id}/publish",
    response_model=AssignmentRead,
    responses={400: {"description": "Class is inactive"}},
)
def publish_assignment(
    assignment_id: int,
    payload: PublishUpdate,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_staff),
):
    return assignment_service.publish_assignment(
        db, assignment_id, teacher, payload.is_published
    )


@router.get(
    "/assignments/{assignment_id}/missing",
    response_model=list[MissingSubmissionRow],
)
def missing_submissions(
    assignment_id: int,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_staff),
):
    return list_missing_submissions(db, assignment_id, teacher)


@router.get("/students/me/assignments", response_model=list[StudentAssignmentRead])
def my_assignments(
    db: Session = Depends(get_db),
    me: User = Depends(require_student),
):
    rows = assignment_service.list_student_assignments(db, me)
    return [
        StudentAssignmentRead.model_validate(assignment).model_copy(
            update={
                "submission": SubmissionRead.model_validate(submission) if submission else None
            }
        )
        for assignment, submission in rows
    ]
