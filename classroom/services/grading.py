"""
Grading: one Grade row per submission, kept up to date by re-grading.

``grades.submission_id`` is unique, so two teachers grading the same
submission at once cannot create a second row: the loser of the insert race
rolls back and retries, finds the winner's row and overwrites it
(last write wins).
"""

import logging
from typing import Mapping

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from classroom.core.clock import utcnow
from classroom.core.errors import Conflict, PermissionDenied, ValidationFailed
from classroom.models.grade import Grade
from classroom.models.submission import QUALIFYING_STATUSES
from classroom.models.user import User
from classroom.services.access import ensure_submission, can_manage_class
from classroom.services.notifications import DatabaseNotificationSink, NotificationSink
from classroom.services.submissions import get_submission, latest_by_student, latest_by_teacher

logger = logging.getLogger(__name__)

GRADE_WRITE_ATTEMPTS = 2


def _validate_scores(score: float, max_score: float, rubric: Mapping[str, float] | None) -> None:
    if max_score <= 0:
        raise ValidationFailed("max_score must be positive")
    # scores above max_score are extra credit
    if score < 0:
        raise ValidationFailed("score must not be negative")
    for criterion, points in (rubric or {}).items():
        if points < 0:
            raise ValidationFailed(f"rubric score for {criterion!r} must not be negative")


def grade_submission(
    db: Session,
    submission_id: int,
    grader: User,
    score: float,
    max_score: float,
    feedback: str | None = None,
    rubric: Mapping[str, float] | None = None,
    notifier: NotificationSink | None = None,
) -> Grade:
    _validate_scores(score, max_score, rubric)

    for attempt in range(1, GRADE_WRITE_ATTEMPTS + 1):
        submission = ensure_submission(db, submission_id)
        assignment = submission.assignment
        if not can_manage_class(db, assignment.school_class, grader):
            raise PermissionDenied("Only the class teachers can grade")
        if submission.status not in QUALIFYING_STATUSES:
            raise ValidationFailed("Only submitted work can be graded")

        grade = db.query(Grade).filter(Grade.submission_id == submission_id).first()
        regrade = grade is not None
        if grade is None:
            grade = Grade(submission_id=submission_id)
            db.add(grade)

        grade.score = score
        grade.max_score = max_score
        grade.feedback = feedback
        grade.rubric = dict(rubric) if rubric else None
        grade.graded_by = grader.id
        grade.graded_at = utcnow()
        submission.status = "graded"

        notifier = notifier or DatabaseNotificationSink(db)
        notifier.notify(
            submission.student_id,
            "assignment_graded",
            {
                "title": "Assignment Graded",
                "message": f'Your assignment "{assignment.title}" has been graded. '
                f"Score: {score:g}/{max_score:g}",
                "assignment_id": assignment.id,
                "submission_id": submission.id,
            },
        )

        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning(
                "concurrent grade insert for submission %s (attempt %s)", submission_id, attempt
            )
            continue
        except SQLAlchemyError:
            db.rollback()
            raise

        db.refresh(grade)
        logger.info(
            "submission %s %s by %s: %s/%s",
            submission_id,
            "re-graded" if regrade else "graded",
            grader.id,
            score,
            max_score,
        )
        return grade

    raise Conflict("Submission is being graded by someone else, try again")


def get_grade(db: Session, submission_id: int, user: User) -> Grade | None:
    get_submission(db, submission_id, user)
    return db.query(Grade).filter(Grade.submission_id == submission_id).first()


def grading_summary(db: Session, user: User) -> dict:
    """Pending vs completed counts over the caller's current submissions."""
    if user.role == "student":
        rows = latest_by_student(db, user.id)
    else:
        rows = latest_by_teacher(db, user.id)

    return {
        "pending": sum(1 for s in rows if s.status == "submitted"),
        "completed": sum(1 for s in rows if s.status == "graded"),
    }
