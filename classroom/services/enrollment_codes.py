"""
Class enrollment codes: minting and redemption.

Codes are short, human-typable strings. The unique constraint on
``classes.enrollment_code`` is the real guarantee; checking the existing code
set before inserting only makes collisions rare, it cannot rule out two
concurrent creators picking the same code. Callers that insert a new code
therefore retry on a unique violation (see ``services.classes.create_class``).
"""

import logging
import secrets
from typing import Callable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from classroom.core.config import (
    ENROLLMENT_CODE_ALPHABET,
    ENROLLMENT_CODE_LENGTH,
    ENROLLMENT_CODE_MAX_ATTEMPTS,
)
from classroom.core.errors import (
    AlreadyCoTeacher,
    AlreadyEnrolled,
    AlreadyPrimaryTeacher,
    Conflict,
    NotFound,
    PermissionDenied,
)
from classroom.models.class_teacher import ClassTeacher
from classroom.models.enrollment import Enrollment
from classroom.models.school_class import SchoolClass
from classroom.models.user import User

logger = logging.getLogger(__name__)


def generate_code(length: int = ENROLLMENT_CODE_LENGTH) -> str:
    return "".join(secrets.choice(ENROLLMENT_CODE_ALPHABET) for _ in range(length))


def normalize_code(code: str) -> str:
    return code.strip().upper()


def pick_unused_code(
    is_taken: Callable[[str], bool],
    max_attempts: int = ENROLLMENT_CODE_MAX_ATTEMPTS,
    generate: Callable[[], str] = generate_code,
) -> str:
    """Draw codes until one is not taken, giving up after ``max_attempts``."""
    for attempt in range(1, max_attempts + 1):
        code = generate()
        if not is_taken(code):
            return code
        logger.warning("enrollment code collision on attempt %s", attempt)
    raise Conflict("Could not allocate a unique enrollment code")


def code_exists(db: Session, code: str) -> bool:
    return (
        db.query(SchoolClass.id).filter(SchoolClass.enrollment_code == code).first()
        is not None
    )


def is_enrollment_code_violation(exc: IntegrityError) -> bool:
    return "enrollment_code" in str(exc.orig)


def find_class_by_code(db: Session, code: str) -> SchoolClass:
    school_class = (
        db.query(SchoolClass)
        .filter(SchoolClass.enrollment_code == normalize_code(code))
        .first()
    )
    if not school_class:
        raise NotFound("No class found with that code")
    return school_class


def redeem_for_student(db: Session, student: User, code: str) -> Enrollment:
    school_class = find_class_by_code(db, code)

    existing = (
        db.query(Enrollment)
        .filter(
            Enrollment.student_id == student.id,
            Enrollment.class_id == school_class.id,
        )
        .first()
    )
    if existing:
        raise AlreadyEnrolled()

    enrollment = Enrollment(student_id=student.id, class_id=school_class.id)
    db.add(enrollment)

    # a concurrent redemption can slip past the pre-check; the constraint decides
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(
            "concurrent enrollment of student %s in class %s", student.id, school_class.id
        )
        raise AlreadyEnrolled()

    db.refresh(enrollment)
    logger.info("student %s enrolled in class %s by code", student.id, school_class.id)
    return enrollment


def redeem_for_teacher(db: Session, teacher: User, code: str) -> ClassTeacher:
    school_class = find_class_by_code(db, code)

    if school_class.teacher_id == teacher.id:
        raise AlreadyPrimaryTeacher()

    existing = (
        db.query(ClassTeacher)
        .filter(
            ClassTeacher.teacher_id == teacher.id,
            ClassTeacher.class_id == school_class.id,
        )
        .first()
    )
    if existing:
        raise AlreadyCoTeacher()

    link = ClassTeacher(teacher_id=teacher.id, class_id=school_class.id)
    db.add(link)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise AlreadyCoTeacher()

    db.refresh(link)
    logger.info("teacher %s joined class %s as co-teacher", teacher.id, school_class.id)
    return link


def redeem_enrollment_code(
    db: Session, user: User, code: str, as_role: str | None = None
) -> Enrollment | ClassTeacher:
    role = as_role or user.role
    if role != user.role:
        raise PermissionDenied(f"Cannot redeem a code as {role}")

    if role == "student":
        return redeem_for_student(db, user, code)
    if role == "teacher":
        return redeem_for_teacher(db, user, code)
    raise PermissionDenied("Only students and teachers can redeem class codes")
