"""Lookup helpers shared by the services: fetch-or-NotFound and ownership checks."""

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from classroom.core.errors import NotFound, PermissionDenied
from classroom.models.assignment import Assignment
from classroom.models.class_teacher import ClassTeacher
from classroom.models.enrollment import Enrollment
from classroom.models.school_class import SchoolClass
from classroom.models.submission import Submission
from classroom.models.user import User


def ensure_class(db: Session, class_id: int) -> SchoolClass:
    school_class = db.query(SchoolClass).filter(SchoolClass.id == class_id).first()
    if not school_class:
        raise NotFound("Class not found")
    return school_class


def ensure_assignment(db: Session, assignment_id: int) -> Assignment:
    assignment = db.query(Assignment).filter(Assignment.id == assignment_id).first()
    if not assignment:
        raise NotFound("Assignment not found")
    return assignment


def ensure_submission(db: Session, submission_id: int) -> Submission:
    submission = db.query(Submission).filter(Submission.id == submission_id).first()
    if not submission:
        raise NotFound("Submission not found")
    return submission


def ensure_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFound("User not found")
    return user


def managed_class_ids(teacher_id: int):
    """Select of class ids a teacher owns or co-teaches."""
    co_taught = select(ClassTeacher.class_id).where(ClassTeacher.teacher_id == teacher_id)
    return select(SchoolClass.id).where(
        or_(SchoolClass.teacher_id == teacher_id, SchoolClass.id.in_(co_taught))
    )


def can_manage_class(db: Session, school_class: SchoolClass, user: User) -> bool:
    if user.role == "admin":
        return True
    if user.role != "teacher":
        return False
    if school_class.teacher_id == user.id:
        return True
    link = (
        db.query(ClassTeacher)
        .filter(
            ClassTeacher.class_id == school_class.id,
            ClassTeacher.teacher_id == user.id,
        )
        .first()
    )
    return link is not None


def ensure_can_manage_class(db: Session, school_class: SchoolClass, user: User) -> None:
    if not can_manage_class(db, school_class, user):
        raise PermissionDenied("Only the class teachers can do that")


def is_enrolled(db: Session, class_id: int, student_id: int) -> bool:
    return (
        db.query(Enrollment)
        .filter(Enrollment.class_id == class_id, Enrollment.student_id == student_id)
        .first()
        is not None
    )


def ensure_enrolled(db: Session, class_id: int, student_id: int) -> None:
    if not is_enrolled(db, class_id, student_id):
        raise PermissionDenied("Not enrolled in this class")
