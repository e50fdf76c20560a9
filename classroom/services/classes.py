import logging

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from classroom.core.config import ENROLLMENT_CODE_MAX_ATTEMPTS
from classroom.core.errors import (
    AlreadyEnrolled,
    Conflict,
    DeletionFailed,
    NotFound,
    PermissionDenied,
    ValidationFailed,
)
from classroom.models.assignment import Assignment
from classroom.models.class_teacher import ClassTeacher
from classroom.models.comment import Comment
from classroom.models.enrollment import Enrollment
from classroom.models.grade import Grade
from classroom.models.notification import Notification
from classroom.models.school_class import SchoolClass
from classroom.models.submission import Submission
from classroom.models.unit import Unit
from classroom.models.user import User
from classroom.services.access import (
    ensure_can_manage_class,
    ensure_class,
    ensure_user,
    managed_class_ids,
)
from classroom.services.enrollment_codes import (
    code_exists,
    is_enrollment_code_violation,
    pick_unused_code,
)

logger = logging.getLogger(__name__)


def create_class(
    db: Session,
    teacher: User,
    title: str,
    description: str = "",
    weeks: int = 1,
    grade_level: str = "",
    objectives: list | None = None,
    max_attempts: int = ENROLLMENT_CODE_MAX_ATTEMPTS,
) -> SchoolClass:
    """
    Create a class and mint its enrollment code.

    Insert optimistically and let the unique constraint reject a colliding
    code; on rejection roll back, draw a fresh code and try again.
    """
    if teacher.role != "teacher":
        raise PermissionDenied("Only teachers can create classes")

    for attempt in range(1, max_attempts + 1):
        code = pick_unused_code(lambda c: code_exists(db, c), max_attempts)
        school_class = SchoolClass(
            title=title,
            description=description,
            weeks=weeks,
            grade_level=grade_level,
            objectives=objectives or [],
            teacher_id=teacher.id,
            enrollment_code=code,
        )
        db.add(school_class)

        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            if not is_enrollment_code_violation(exc):
                raise
            logger.warning(
                "enrollment code %s taken concurrently (attempt %s/%s)",
                code,
                attempt,
                max_attempts,
            )
            continue

        db.refresh(school_class)
        logger.info(
            "class %s created by teacher %s with code %s",
            school_class.id,
            teacher.id,
            school_class.enrollment_code,
        )
        return school_class

    raise Conflict("Could not allocate a unique enrollment code")


def get_class(db: Session, class_id: int, user: User) -> SchoolClass:
    school_class = ensure_class(db, class_id)
    if user.role == "student":
        enrolled = (
            db.query(Enrollment)
            .filter(Enrollment.class_id == class_id, Enrollment.student_id == user.id)
            .first()
        )
        if not enrolled:
            raise PermissionDenied("Not enrolled in this class")
    else:
        ensure_can_manage_class(db, school_class, user)
    return school_class


def list_classes_for_user(db: Session, user: User) -> list[dict]:
    """Teachers: owned and co-taught classes with enrollment counts.
    Students: active classes they are enrolled in."""
    if user.role == "student":
        classes = (
            db.query(SchoolClass)
            .join(Enrollment, Enrollment.class_id == SchoolClass.id)
            .filter(Enrollment.student_id == user.id, SchoolClass.is_active.is_(True))
            .order_by(SchoolClass.created_at.desc(), SchoolClass.id.desc())
            .all()
        )
        return [{"school_class": c, "enrollment_count": None} for c in classes]

    query = db.query(SchoolClass, func.count(Enrollment.id).label("enrollment_count"))
    query = query.outerjoin(Enrollment, Enrollment.class_id == SchoolClass.id)
    if user.role != "admin":
        query = query.filter(SchoolClass.id.in_(managed_class_ids(user.id)))

    rows = (
        query.group_by(SchoolClass.id)
        .order_by(SchoolClass.created_at.desc(), SchoolClass.id.desc())
        .all()
    )
    return [
        {"school_class": c, "enrollment_count": int(count or 0)} for c, count in rows
    ]


def set_class_active(db: Session, class_id: int, teacher: User, is_active: bool) -> SchoolClass:
    school_class = ensure_class(db, class_id)
    ensure_can_manage_class(db, school_class, teacher)

    school_class.is_active = is_active
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    db.refresh(school_class)
    logger.info("class %s is_active=%s", class_id, is_active)
    return school_class


# --- roster ---


def list_class_students(db: Session, class_id: int, teacher: User) -> list[tuple[Enrollment, User]]:
    school_class = ensure_class(db, class_id)
    ensure_can_manage_class(db, school_class, teacher)

    return (
        db.query(Enrollment, User)
        .join(User, User.id == Enrollment.student_id)
        .filter(Enrollment.class_id == class_id)
        .order_by(User.last_name.asc(), User.first_name.asc(), User.id.asc())
        .all()
    )


def enroll_student(db: Session, class_id: int, student_id: int, teacher: User) -> Enrollment:
    school_class = ensure_class(db, class_id)
    ensure_can_manage_class(db, school_class, teacher)

    student = ensure_user(db, student_id)
    if student.role != "student":
        raise ValidationFailed("Only students can be enrolled")

    enrollment = Enrollment(student_id=student.id, class_id=class_id)
    db.add(enrollment)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise AlreadyEnrolled()

    db.refresh(enrollment)
    logger.info("teacher %s enrolled student %s in class %s", teacher.id, student.id, class_id)
    return enrollment


def unenroll_student(db: Session, class_id: int, student_id: int, teacher: User) -> None:
    school_class = ensure_class(db, class_id)
    ensure_can_manage_class(db, school_class, teacher)

    removed = (
        db.query(Enrollment)
        .filter(Enrollment.class_id == class_id, Enrollment.student_id == student_id)
        .delete(synchronize_session=False)
    )
    if not removed:
        db.rollback()
        raise NotFound("Enrollment not found")
    db.commit()
    logger.info("student %s removed from class %s", student_id, class_id)


# --- cascade delete ---


def _run(db: Session, statement) -> None:
    db.execute(statement.execution_options(synchronize_session=False))


def _class_assignment_ids(class_id: int):
    return select(Assignment.id).where(Assignment.class_id == class_id)


def _class_submission_ids(class_id: int):
    return select(Submission.id).where(
        Submission.assignment_id.in_(_class_assignment_ids(class_id))
    )


def _delete_feedback(db: Session, class_id: int) -> None:
    """Notifications and comments pointing at the class's assignments or submissions."""
    _run(
        db,
        delete(Notification).where(
            or_(
                Notification.assignment_id.in_(_class_assignment_ids(class_id)),
                Notification.submission_id.in_(_class_submission_ids(class_id)),
            )
        )
    )
    _run(db, delete(Comment).where(Comment.submission_id.in_(_class_submission_ids(class_id))))


def _delete_grades(db: Session, class_id: int) -> None:
    _run(db, delete(Grade).where(Grade.submission_id.in_(_class_submission_ids(class_id))))


def _delete_submissions(db: Session, class_id: int) -> None:
    _run(
        db, delete(Submission).where(Submission.assignment_id.in_(_class_assignment_ids(class_id)))
    )


def _delete_assignments(db: Session, class_id: int) -> None:
    _run(db, delete(Assignment).where(Assignment.class_id == class_id))


def _delete_units(db: Session, class_id: int) -> None:
    _run(db, delete(Unit).where(Unit.class_id == class_id))


def _delete_enrollments(db: Session, class_id: int) -> None:
    _run(db, delete(Enrollment).where(Enrollment.class_id == class_id))


def _delete_co_teachers(db: Session, class_id: int) -> None:
    _run(db, delete(ClassTeacher).where(ClassTeacher.class_id == class_id))


def _delete_class_row(db: Session, class_id: int) -> None:
    _run(db, delete(SchoolClass).where(SchoolClass.id == class_id))


def delete_class(db: Session, class_id: int, teacher: User) -> None:
    """
    Remove a class and everything it owns, leaf to root, in one transaction.

    Order: feedback rows -> grades -> submissions -> assignments -> units ->
    enrollments -> co-teacher links -> the class. If any step fails the whole
    transaction is rolled back and nothing is removed.
    """
    school_class = ensure_class(db, class_id)
    if teacher.role != "admin" and school_class.teacher_id != teacher.id:
        raise PermissionDenied("Only the class owner can delete it")
    if school_class.is_active:
        raise ValidationFailed("Cannot delete an active class. Deactivate it first.")

    actor_id = teacher.id

    try:
        _delete_feedback(db, class_id)
        _delete_grades(db, class_id)
        _delete_submissions(db, class_id)
        _delete_assignments(db, class_id)
        _delete_units(db, class_id)
        _delete_enrollments(db, class_id)
        _delete_co_teachers(db, class_id)
        _delete_class_row(db, class_id)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("deleting class %s failed, rolled back", class_id)
        raise DeletionFailed()

    # the session still holds the deleted instance
    db.expunge(school_class)
    logger.info("class %s deleted by user %s", class_id, actor_id)
