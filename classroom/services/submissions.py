"""
Submission ledger.

Every attempt a student makes is a row in ``submissions``. A draft row is
edited in place until it is finalised; after that the row keeps its content
and a resubmission is a new row. "Current" state is never stored: it is the
top row per (assignment, student) partition, resolved with a window query.

Resolution rules:

* reporting / grading views consider only ``submitted`` and ``graded`` rows
  and pick the greatest ``submitted_at``;
* a student's own view considers rows of any status, ordering drafts by their
  last edit;
* ties go to the larger id, i.e. the row inserted last.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from classroom.core.clock import utcnow
from classroom.core.errors import Conflict, ContentRequired, NotFound, PermissionDenied
from classroom.models.assignment import Assignment
from classroom.models.submission import QUALIFYING_STATUSES, Submission
from classroom.models.user import User
from classroom.services.access import (
    can_manage_class,
    ensure_assignment,
    ensure_enrolled,
    ensure_submission,
    managed_class_ids,
)
from classroom.services.notifications import DatabaseNotificationSink, NotificationSink
from classroom.services.visibility import is_assignment_visible

logger = logging.getLogger(__name__)

DRAFT_WRITE_ATTEMPTS = 2


@dataclass
class SubmissionContent:
    written_response: str | None = None
    map_data: dict[str, Any] | None = None
    attachments: list[str] = field(default_factory=list)

    def has_content(self) -> bool:
        has_text = bool(self.written_response and self.written_response.strip())
        return has_text or bool(self.attachments)


def ensure_submittable(content: SubmissionContent) -> None:
    if not content.has_content():
        raise ContentRequired()


# --- read path ---


def _activity_key():
    # drafts have no submitted_at; their recency is the last edit
    return func.coalesce(Submission.submitted_at, Submission.updated_at)


def _latest_per_key(db: Session, *criteria, qualifying_only: bool) -> Query:
    """Top-1 row per (assignment_id, student_id) among rows matching ``criteria``."""
    filters = list(criteria)
    if qualifying_only:
        filters.append(Submission.status.in_(QUALIFYING_STATUSES))
        order_key = Submission.submitted_at
    else:
        order_key = _activity_key()

    rank = (
        func.row_number()
        .over(
            partition_by=(Submission.assignment_id, Submission.student_id),
            order_by=(order_key.desc(), Submission.id.desc()),
        )
        .label("row_rank")
    )
    ranked = db.query(Submission.id.label("id"), rank).filter(*filters).subquery()

    return (
        db.query(Submission)
        .join(ranked, ranked.c.id == Submission.id)
        .filter(ranked.c.row_rank == 1)
    )


def latest_by_assignment(db: Session, assignment_id: int) -> list[Submission]:
    """One submitted/graded row per student; draft-only students are left out."""
    return (
        _latest_per_key(db, Submission.assignment_id == assignment_id, qualifying_only=True)
        .order_by(Submission.submitted_at.desc(), Submission.id.desc())
        .all()
    )


def latest_by_student(db: Session, student_id: int) -> list[Submission]:
    """One row of any status per assignment, so students see their drafts."""
    return (
        _latest_per_key(db, Submission.student_id == student_id, qualifying_only=False)
        .order_by(_activity_key().desc(), Submission.id.desc())
        .all()
    )


def latest_by_teacher(db: Session, teacher_id: int) -> list[Submission]:
    """Submitted/graded rows per (assignment, student) across classes the teacher
    owns or co-teaches."""
    class_assignments = Submission.assignment_id.in_(
        select(Assignment.id).where(Assignment.class_id.in_(managed_class_ids(teacher_id)))
    )
    return (
        _latest_per_key(db, class_assignments, qualifying_only=True)
        .order_by(Submission.submitted_at.desc(), Submission.id.desc())
        .all()
    )


def current_for_student(db: Session, assignment_id: int, student_id: int) -> Submission | None:
    return _latest_per_key(
        db,
        Submission.assignment_id == assignment_id,
        Submission.student_id == student_id,
        qualifying_only=False,
    ).first()


def history(db: Session, assignment_id: int, student_id: int) -> list[Submission]:
    return (
        db.query(Submission)
        .filter(
            Submission.assignment_id == assignment_id,
            Submission.student_id == student_id,
        )
        .order_by(_activity_key().desc(), Submission.id.desc())
        .all()
    )


def get_submission(db: Session, submission_id: int, user: User) -> Submission:
    submission = ensure_submission(db, submission_id)
    if submission.student_id == user.id:
        return submission
    if can_manage_class(db, submission.assignment.school_class, user):
        # teachers never look at drafts
        if submission.status == "draft":
            raise NotFound("Submission not found")
        return submission
    raise PermissionDenied("Not allowed to view this submission")


# --- write path ---


def _open_draft(db: Session, assignment_id: int, student_id: int) -> Submission | None:
    return (
        db.query(Submission)
        .filter(
            Submission.assignment_id == assignment_id,
            Submission.student_id == student_id,
            Submission.status == "draft",
        )
        .order_by(Submission.id.desc())
        .first()
    )


def _ensure_student_can_write(db: Session, assignment_id: int, student: User) -> Assignment:
    if student.role != "student":
        raise PermissionDenied("Only students can submit work")
    assignment = ensure_assignment(db, assignment_id)
    ensure_enrolled(db, assignment.class_id, student.id)
    if not is_assignment_visible(assignment, "student"):
        raise NotFound("Assignment not found")
    return assignment


def _apply_content(submission: Submission, content: SubmissionContent) -> None:
    submission.written_response = content.written_response
    submission.map_data = content.map_data
    submission.attachments = list(content.attachments)


def upsert_draft(
    db: Session, assignment_id: int, student: User, content: SubmissionContent
) -> Submission:
    """
    Save the student's single open draft, last write wins.

    ``uq_submissions_open_draft`` allows one draft row per key. When a
    concurrent first save wins the insert race, roll back, pick up the
    winner's draft and write this content into it.
    """
    for attempt in range(1, DRAFT_WRITE_ATTEMPTS + 1):
        _ensure_student_can_write(db, assignment_id, student)

        now = utcnow()
        draft = _open_draft(db, assignment_id, student.id)
        if draft is None:
            draft = Submission(
                assignment_id=assignment_id,
                student_id=student.id,
                status="draft",
                created_at=now,
            )
            db.add(draft)

        _apply_content(draft, content)
        draft.updated_at = now

        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning(
                "concurrent draft insert for assignment %s by student %s (attempt %s)",
                assignment_id,
                student.id,
                attempt,
            )
            continue
        except SQLAlchemyError:
            db.rollback()
            raise

        db.refresh(draft)
        logger.info(
            "draft %s saved for assignment %s by student %s", draft.id, assignment_id, student.id
        )
        return draft

    raise Conflict("Draft is being saved elsewhere, try again")


def submit(
    db: Session,
    assignment_id: int,
    student: User,
    content: SubmissionContent,
    notifier: NotificationSink | None = None,
) -> Submission:
    """
    Record a finalised attempt.

    The open draft, if any, is the attempt being finalised and is promoted in
    place; otherwise a new row is appended. Earlier submitted or graded rows
    are left untouched so their grades survive a resubmission.
    """
    ensure_submittable(content)
    assignment = _ensure_student_can_write(db, assignment_id, student)

    now = utcnow()
    submission = _open_draft(db, assignment_id, student.id)
    if submission is None:
        submission = Submission(
            assignment_id=assignment_id,
            student_id=student.id,
            created_at=now,
        )
        db.add(submission)

    _apply_content(submission, content)
    submission.status = "submitted"
    submission.submitted_at = now
    submission.updated_at = now

    try:
        db.flush()
        notifier = notifier or DatabaseNotificationSink(db)
        notifier.notify(
            assignment.school_class.teacher_id,
            "submission_received",
            {
                "title": "New Submission Received",
                "message": f'{student.full_name} has submitted "{assignment.title}".',
                "assignment_id": assignment.id,
                "submission_id": submission.id,
            },
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    db.refresh(submission)
    logger.info(
        "submission %s recorded for assignment %s by student %s",
        submission.id,
        assignment_id,
        student.id,
    )
    return submission


def submit_or_save_draft(
    db: Session,
    assignment_id: int,
    student: User,
    content: SubmissionContent,
    finalize: bool,
    notifier: NotificationSink | None = None,
) -> Submission:
    if finalize:
        return submit(db, assignment_id, student, content, notifier=notifier)
    return upsert_draft(db, assignment_id, student, content)
