from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from classroom.core.current_user import get_current_user
from classroom.core.deps import get_db
from classroom.core.permissions import require_staff, require_student
from classroom.models.user import User
from classroom.schemas.grade import GradeCreate, GradeRead
from classroom.schemas.submission import GradingSummary, SubmissionCreate, SubmissionRead
from classroom.services import grading
from classroom.services import submissions as ledger
from classroom.services.access import ensure_assignment, ensure_can_manage_class

router = APIRouter()


@router.post(
    "/assignments/{assignment_id}/submissions",
    response_model=SubmissionRead,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Submitted work needs a written response or attachments"}},
)
def submit_or_save_draft(
    assignment_id: int,
    payload: SubmissionCreate,
    db: Session = Depends(get_db),
    me: User = Depends(require_student),
):
    content = ledger.SubmissionContent(
        written_response=payload.written_response,
        map_data=payload.map_data,
        attachments=payload.attachments,
    )
    return ledger.submit_or_save_draft(
        db, assignment_id, me, content, finalize=payload.finalize
    )


@router.get(
    "/assignments/{assignment_id}/submissions",
    response_model=list[SubmissionRead],
)
def list_submissions_for_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    # students get their own current attempt, teachers the latest per student
    if current_user.role == "student":
        current = ledger.current_for_student(db, assignment_id, current_user.id)
        return [current] if current else []

    assignment = ensure_assignment(db, assignment_id)
    ensure_can_manage_class(db, assignment.school_class, current_user)
    return ledger.latest_by_assignment(db, assignment_id)


@router.get(
    "/assignments/{assignment_id}/submissions/history",
    response_model=list[SubmissionRead],
)
def my_submission_history(
    assignment_id: int,
    db: Session = Depends(get_db),
    me: User = Depends(require_student),
):
    return ledger.history(db, assignment_id, me.id)


@router.get("/submissions/me", response_model=list[SubmissionRead])
def my_submissions(
    db: Session = Depends(get_db),
    me: User = Depends(require_student),
):
    return ledger.latest_by_student(db, me.id)


@router.get("/submissions/teaching", response_model=list[SubmissionRead])
def teaching_submissions(
    db: Session = Depends(get_db),
    teacher: User = Depends(require_staff),
):
    return ledger.latest_by_teacher(db, teacher.id)


@router.get("/submissions/summary", response_model=GradingSummary)
def submissions_summary(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return grading.grading_summary(db, current_user)


@router.get("/submissions/{submission_id}", response_model=SubmissionRead)
def get_submission(
    submission_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return ledger.get_submission(db, submission_id, current_user)


@router.post(
    "/submissions/{submission_id}/grade",
    response_model=GradeRead,
    responses={
        400: {"description": "Submission is a draft or score out of range"},
        403: {"description": "Only the class teachers can grade"},
    },
)
def grade_submission(
    submission_id: int,
    payload: GradeCreate,
    db: Session = Depends(get_db),
    grader: User = Depends(require_staff),
):
    return grading.grade_submission(
        db,
        submission_id,
        grader,
        score=payload.score,
        max_score=payload.max_score,
        feedback=payload.feedback,
        rubric=payload.rubric,
    )


@router.get("/submissions/{submission_id}/grade", response_model=GradeRead | None)
def get_grade(
    submission_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return grading.get_grade(db, submission_id, current_user)
