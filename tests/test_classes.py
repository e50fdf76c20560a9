import pytest
from sqlalchemy.exc import IntegrityError

from classroom.core.errors import DeletionFailed, PermissionDenied, ValidationFailed
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
from classroom.services import classes
from classroom.services import submissions as ledger
from classroom.services.comments import add_comment
from classroom.services.grading import grade_submission
from classroom.services.submissions import SubmissionContent
from tests.conftest import auth_header

CLASS_OWNED = (Notification, Comment, Grade, Submission, Assignment, Unit, Enrollment, ClassTeacher)


@pytest.fixture()
def populated_class(db, users, seed):
    """2 assignments, 3 submissions, 1 grade, plus a unit, a co-teacher and a comment."""
    unit = Unit(class_id=seed["class_id"], title="Europe")
    db.add(unit)
    db.add(ClassTeacher(teacher_id=seed["other_teacher_id"], class_id=seed["class_id"]))
    second = Assignment(class_id=seed["class_id"], title="Mountain ranges", is_published=True)
    db.add(second)
    db.commit()
    db.get(Assignment, seed["assignment_id"]).unit_id = unit.id
    db.commit()

    content = SubmissionContent(written_response="answer")
    first_try = ledger.submit(db, seed["assignment_id"], users["student"], content)
    ledger.submit(db, seed["assignment_id"], users["student"], content)
    ledger.submit(db, second.id, users["student"], content)
    grade_submission(db, first_try.id, users["teacher"], score=4, max_score=5)
    add_comment(db, first_try.id, users["teacher"], "Check the spelling of Danube")

    school_class = db.get(SchoolClass, seed["class_id"])
    school_class.is_active = False
    db.commit()
    return school_class


def _counts(db):
    return {model.__tablename__: db.query(model).count() for model in CLASS_OWNED}


def test_delete_removes_class_and_everything_it_owns(db, users, seed, populated_class):
    before = _counts(db)
    assert before["assignments"] == 2
    assert before["submissions"] == 3
    assert before["grades"] == 1

    classes.delete_class(db, seed["class_id"], users["teacher"])

    assert db.query(SchoolClass).count() == 0
    assert all(count == 0 for count in _counts(db).values())
    # the caller's own objects stay usable after the commit
    assert users["teacher"].username == "teacher1"
    # people are not owned by the class
    assert db.query(User).count() == 5


def test_failed_step_rolls_back_the_whole_delete(db, users, seed, populated_class, monkeypatch):
    before = _counts(db)

    def broken(db, class_id):
        raise IntegrityError("DELETE FROM units", {}, Exception("constraint failed"))

    monkeypatch.setattr(classes, "_delete_units", broken)

    with pytest.raises(DeletionFailed) as excinfo:
        classes.delete_class(db, seed["class_id"], users["teacher"])

    assert excinfo.value.message == "Could not delete class, try again"
    assert _counts(db) == before
    assert db.get(SchoolClass, seed["class_id"]) is not None


def test_active_class_cannot_be_deleted(db, users, seed):
    with pytest.raises(ValidationFailed):
        classes.delete_class(db, seed["class_id"], users["teacher"])
    assert db.query(SchoolClass).count() == 1


def test_co_teacher_cannot_delete(db, users, seed, populated_class):
    with pytest.raises(PermissionDenied):
        classes.delete_class(db, seed["class_id"], users["other_teacher"])


def test_admin_can_delete(db, users, seed, populated_class):
    classes.delete_class(db, seed["class_id"], users["admin"])
    assert db.query(SchoolClass).count() == 0


def test_class_listing_counts_enrollments(db, users, seed):
    rows = classes.list_classes_for_user(db, users["teacher"])
    assert [(r["school_class"].id, r["enrollment_count"]) for r in rows] == [(seed["class_id"], 1)]

    assert classes.list_classes_for_user(db, users["other_teacher"]) == []
    student_rows = classes.list_classes_for_user(db, users["student"])
    assert [r["school_class"].id for r in student_rows] == [seed["class_id"]]


def test_create_and_delete_class_over_http(client, seed):
    teacher = auth_header(seed["teacher_id"])

    r = client.post("/classes", headers=teacher, json={"title": "Climate", "weeks": 6})
    assert r.status_code == 201, r.text
    created = r.json()
    assert len(created["enrollment_code"]) == 6
    assert created["is_active"] is False

    r = client.delete(f"/classes/{created['id']}", headers=teacher)
    assert r.status_code == 204

    r = client.get(f"/classes/{created['id']}", headers=teacher)
    assert r.status_code == 404


def test_delete_active_class_over_http(client, seed):
    r = client.delete(f"/classes/{seed['class_id']}", headers=auth_header(seed["teacher_id"]))
    assert r.status_code == 400


def test_students_cannot_create_classes(client, seed):
    r = client.post("/classes", headers=auth_header(seed["student_id"]), json={"title": "Nope"})
    assert r.status_code == 403


def test_roster_management(client, seed):
    teacher = auth_header(seed["teacher_id"])
    url = f"/classes/{seed['class_id']}/students"

    r = client.post(url, headers=teacher, json={"student_id": seed["outsider_id"]})
    assert r.status_code == 201, r.text

    r = client.post(url, headers=teacher, json={"student_id": seed["outsider_id"]})
    assert r.status_code == 409

    r = client.get(url, headers=teacher)
    assert [row["student"]["last_name"] for row in r.json()] == ["Outside", "Student"]

    r = client.delete(f"{url}/{seed['outsider_id']}", headers=teacher)
    assert r.status_code == 204
    r = client.delete(f"{url}/{seed['outsider_id']}", headers=teacher)
    assert r.status_code == 404
