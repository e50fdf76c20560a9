"""
Role-based visibility, applied at the query boundary.

Students only ever see assignments that are active, published and belong to an
active class. Teachers and admins see everything they are otherwise allowed to
reach; ownership is checked separately.
"""

from sqlalchemy.orm import Query

from classroom.models.assignment import Assignment
from classroom.models.school_class import SchoolClass


def visible_assignment_criteria(role: str) -> list:
    """Filter criteria for assignments; callers must join ``SchoolClass``."""
    if role == "student":
        return [
            Assignment.is_active.is_(True),
            Assignment.is_published.is_(True),
            SchoolClass.is_active.is_(True),
        ]
    return []


def filter_visible_assignments(query: Query, role: str) -> Query:
    criteria = visible_assignment_criteria(role)
    if not criteria:
        return query
    return query.join(SchoolClass, SchoolClass.id == Assignment.class_id).filter(*criteria)


def is_assignment_visible(assignment: Assignment, role: str) -> bool:
    if role != "student":
        return True
    return bool(
        assignment.is_active
        and assignment.is_published
        and assignment.school_class.is_active
    )
