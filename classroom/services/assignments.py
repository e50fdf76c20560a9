import logging
from datetime import datetime

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from classroom.core.errors import NotFound, ValidationFailed
from classroom.models.assignment import ASSIGNMENT_TYPES, Assignment
from classroom.models.comment import Comment
from classroom.models.enrollment import Enrollment
from classroom.models.grade import Grade
from classroom.models.notification import Notification
from classroom.models.submission import Submission
from classroom.models.unit import Unit
from classroom.models.user import User
from classroom.services.access import (
    ensure_assignment,
    ensure_can_manage_class,
    ensure_class,
    ensure_enrolled,
)
from classroom.services.notifications import DatabaseNotificationSink, NotificationSink
from classroom.services.submissions import latest_by_student
from classroom.services.visibility import filter_visible_assignments

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("title", "description", "type", "points", "due_date", "unit_id", "is_active")


def _ensure_unit_in_class(db: Session, unit_id: int | None, class_id: int) -> None:
    if unit_id is None:
        return
    unit = db.query(Unit).filter(Unit.id == unit_id).first()
    if not unit or unit.class_id != class_id:
        raise ValidationFailed("Unit does not belong to this class")


def _ensure_type(assignment_type: str) -> None:
    if assignment_type not in ASSIGNMENT_TYPES:
        raise ValidationFailed(f"type must be one of {', '.join(ASSIGNMENT_TYPES)}")


def create_assignment(
    db: Session,
    class_id: int,
    teacher: User,
    title: str,
    description: str = "",
    type: str = "text",
    points: int = 100,
    due_date: datetime | None = None,
    unit_id: int | None = None,
) -> Assignment:
    school_class = ensure_class(db, class_id)
    ensure_can_manage_class(db, school_class, teacher)
    _ensure_type(type)
    _ensure_unit_in_class(db, unit_id, class_id)

    assignment = Assignment(
        class_id=class_id,
        unit_id=unit_id,
        title=title,
        description=description,
        type=type,
        points=points,
        due_date=due_date,
    )
    db.add(assignment)
    db.commit()
    db.refresh(assignment)
    logger.info("assignment %s created in class %s", assignment.id, class_id)
    return assignment


def update_assignment(db: Session, assignment_id: int, teacher: User, changes: dict) -> Assignment:
    assignment = ensure_assignment(db, assignment_id)
    ensure_can_manage_class(db, assignment.school_class, teacher)

    if "type" in changes:
        _ensure_type(changes["type"])
    if "unit_id" in changes:
        _ensure_unit_in_class(db, changes["unit_id"], assignment.class_id)

    for field in EDITABLE_FIELDS:
        if field in changes:
            setattr(assignment, field, changes[field])

    db.commit()
    db.refresh(assignment)
    return assignment


def publish_assignment(
    db: Session,
    assignment_id: int,
    teacher: User,
    publish: bool,
    notifier: NotificationSink | None = None,
) -> Assignment:
    """
    Publish or unpublish an assignment.

    Publishing into an inactive class is refused. Enrolled students are told
    about the assignment once, when it goes from unpublished to published; the
    notifications commit together with the publish flag.
    """
    assignment = ensure_assignment(db, assignment_id)
    school_class = assignment.school_class
    ensure_can_manage_class(db, school_class, teacher)

    if publish and not school_class.is_active:
        raise ValidationFailed(
            "Cannot publish assignments in inactive classes. Activate the class first."
        )

    newly_published = publish and not assignment.is_published
    assignment.is_published = publish

    if newly_published:
        notifier = notifier or DatabaseNotificationSink(db)
        student_ids = [
            sid
            for (sid,) in db.query(Enrollment.student_id)
            .filter(Enrollment.class_id == school_class.id)
            .all()
        ]
        for student_id in student_ids:
            notifier.notify(
                student_id,
                "new_assignment",
                {
                    "title": "New Assignment Available",
                    "message": f'A new assignment "{assignment.title}" has been published in {school_class.title}.',
                    "assignment_id": assignment.id,
                },
            )

    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    db.refresh(assignment)
    logger.info("assignment %s is_published=%s", assignment_id, publish)
    return assignment


def delete_assignment(db: Session, assignment_id: int, teacher: User) -> None:
    assignment = ensure_assignment(db, assignment_id)
    ensure_can_manage_class(db, assignment.school_class, teacher)

    submission_ids = select(Submission.id).where(Submission.assignment_id == assignment_id)
    statements = (
        delete(Notification).where(
            or_(
                Notification.assignment_id == assignment_id,
                Notification.submission_id.in_(submission_ids),
            )
        ),
        delete(Comment).where(Comment.submission_id.in_(submission_ids)),
        delete(Grade).where(Grade.submission_id.in_(submission_ids)),
        delete(Submission).where(Submission.assignment_id == assignment_id),
        delete(Assignment).where(Assignment.id == assignment_id),
    )

    try:
        for statement in statements:
            db.execute(statement.execution_options(synchronize_session=False))
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    db.expunge(assignment)
    logger.info("assignment %s deleted", assignment_id)


def get_assignment(db: Session, assignment_id: int, user: User) -> Assignment:
    assignment = ensure_assignment(db, assignment_id)
    if user.role == "student":
        ensure_enrolled(db, assignment.class_id, user.id)
        visible = (
            filter_visible_assignments(db.query(Assignment), "student")
            .filter(Assignment.id == assignment_id)
            .first()
        )
        if not visible:
            raise NotFound("Assignment not found")
    else:
        ensure_can_manage_class(db, assignment.school_class, user)
    return assignment


def list_class_assignments(db: Session, class_id: int, user: User) -> list[Assignment]:
    school_class = ensure_class(db, class_id)
    if user.role == "student":
        ensure_enrolled(db, class_id, user.id)
    else:
        ensure_can_manage_class(db, school_class, user)

    query = db.query(Assignment).filter(Assignment.class_id == class_id)
    query = filter_visible_assignments(query, user.role)
    return query.order_by(Assignment.created_at.desc(), Assignment.id.desc()).all()


def list_student_assignments(db: Session, student: User) -> list[tuple[Assignment, Submission | None]]:
    """Live assignments across the student's classes, each with their current attempt."""
    query = (
        db.query(Assignment)
        .join(Enrollment, Enrollment.class_id == Assignment.class_id)
        .filter(Enrollment.student_id == student.id)
    )
    assignments = (
        filter_visible_assignments(query, "student")
        .order_by(Assignment.created_at.desc(), Assignment.id.desc())
        .all()
    )

    current = {s.assignment_id: s for s in latest_by_student(db, student.id)}
    return [(a, current.get(a.id)) for a in assignments]
