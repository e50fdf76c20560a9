import os
import shutil
from datetime import datetime, timedelta, timezone

TEST_DB_FILE = "test_classroom.db"
TEST_ATTACHMENT_DIR = "test_attachments"

# must be set before the app modules read their configuration
os.environ["DATABASE_URL"] = f"sqlite:///./{TEST_DB_FILE}"
os.environ["ATTACHMENT_DIR"] = TEST_ATTACHMENT_DIR

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from classroom.core.deps import get_db
from classroom.core.security import create_access_token
from classroom.db.base import Base
from classroom.db.session import make_engine
from classroom.main import app
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


engine = make_engine(os.environ["DATABASE_URL"])
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="session", autouse=True)
def setup_test_db():
    """Create a fresh schema once for the whole test session."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    if os.path.exists(TEST_DB_FILE):
        os.remove(TEST_DB_FILE)
    shutil.rmtree(TEST_ATTACHMENT_DIR, ignore_errors=True)


@pytest.fixture(autouse=True)
def seed():
    """
    Seed a clean minimal dataset for each test:

    * ``teacher`` owns an active class with code ``ABC123``
    * ``student`` is enrolled, ``outsider`` is a student who is not
    * ``other_teacher`` has no link to the class, ``admin`` can do anything
    * one active, published assignment due tomorrow
    """
    db = TestingSessionLocal()
    try:
        # Clear tables (child -> parent)
        for model in (
            Notification,
            Comment,
            Grade,
            Submission,
            Assignment,
            Unit,
            Enrollment,
            ClassTeacher,
            SchoolClass,
            User,
        ):
            db.query(model).delete()
        db.commit()

        teacher = User(username="teacher1", email="teacher1@example.com",
                       first_name="Tina", last_name="Teacher", role="teacher")
        other_teacher = User(username="teacher2", email="teacher2@example.com",
                             first_name="Otto", last_name="Other", role="teacher")
        student = User(username="student1", email="student1@example.com",
                       first_name="Sam", last_name="Student", role="student")
        outsider = User(username="student2", first_name="Olga", last_name="Outside",
                        role="student")
        admin = User(username="admin", email="admin@example.com",
                     first_name="Ada", last_name="Admin", role="admin")
        db.add_all([teacher, other_teacher, student, outsider, admin])
        db.commit()

        school_class = SchoolClass(
            title="Geography 7",
            teacher_id=teacher.id,
            enrollment_code="ABC123",
            is_active=True,
        )
        db.add(school_class)
        db.commit()

        db.add(Enrollment(student_id=student.id, class_id=school_class.id))
        assignment = Assignment(
            class_id=school_class.id,
            title="Rivers of Europe",
            due_date=datetime.now(timezone.utc) + timedelta(days=1),
            is_published=True,
        )
        db.add(assignment)
        db.commit()

        yield {
            "teacher_id": teacher.id,
            "other_teacher_id": other_teacher.id,
            "student_id": student.id,
            "outsider_id": outsider.id,
            "admin_id": admin.id,
            "class_id": school_class.id,
            "assignment_id": assignment.id,
        }
    finally:
        db.close()


@pytest.fixture()
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def users(db, seed):
    """The seeded users, loaded into the test's session."""
    return {
        name: db.get(User, seed[f"{name}_id"])
        for name in ("teacher", "other_teacher", "student", "outsider", "admin")
    }


def auth_header(user_id: int) -> dict:
    token = create_access_token({"sub": str(user_id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def client():
    """Test client that uses the test DB session via dependency override."""
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
