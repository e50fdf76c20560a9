# Import every model so Base.metadata knows the full schema (used by
# init_db, alembic and the test suite).
from classroom.db.base_class import Base  # noqa: F401
from classroom.models import (  # noqa: F401
    assignment,
    class_teacher,
    comment,
    enrollment,
    grade,
    notification,
    school_class,
    submission,
    unit,
    user,
)
