from datetime import datetime, timedelta

from sqlalchemy import exists
from sqlalchemy.orm import Session

from classroom.core.clock import as_utc, utcnow
from classroom.models.enrollment import Enrollment
from classroom.models.submission import QUALIFYING_STATUSES, Submission
from classroom.models.user import User
from classroom.services.access import ensure_assignment, ensure_can_manage_class


def days_overdue(due_date: datetime | None, now: datetime) -> int | None:
    """Whole days past the due date, never negative; ``None`` without a due date."""
    if due_date is None:
        return None
    elapsed = as_utc(now) - as_utc(due_date)
    return max(0, elapsed // timedelta(days=1))


def list_missing_submissions(
    db: Session,
    assignment_id: int,
    teacher: User,
    now: datetime | None = None,
) -> list[dict]:
    """
    Enrolled students with no submitted or graded attempt for the assignment.

    Anti-join of the class roster against the ledger. Drafts do not count as a
    submission. Ordered by last name, then first name.
    """
    assignment = ensure_assignment(db, assignment_id)
    ensure_can_manage_class(db, assignment.school_class, teacher)
    now = now or utcnow()

    has_submission = exists().where(
        Submission.assignment_id == assignment_id,
        Submission.student_id == User.id,
        Submission.status.in_(QUALIFYING_STATUSES),
    )

    rows = (
        db.query(User, Enrollment.enrolled_at)
        .join(Enrollment, Enrollment.student_id == User.id)
        .filter(Enrollment.class_id == assignment.class_id)
        .filter(~has_submission)
        .order_by(User.last_name.asc(), User.first_name.asc(), User.id.asc())
        .all()
    )

    overdue = days_overdue(assignment.due_date, now)
    result: list[dict] = []
    for student, enrolled_at in rows:
        result.append(
            {
                "student_id": student.id,
                "username": student.username,
                "first_name": student.first_name,
                "last_name": student.last_name,
                "name": student.full_name,
                "email": student.email,
                "enrolled_at": enrolled_at,
                "due_date": assignment.due_date,
                "assignment_title": assignment.title,
                "days_overdue": overdue,
            }
        )
    return result
