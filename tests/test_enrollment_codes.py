import pytest
from sqlalchemy import event

from classroom.core.config import ENROLLMENT_CODE_ALPHABET, ENROLLMENT_CODE_LENGTH
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
from classroom.services import classes
from classroom.services.enrollment_codes import (
    generate_code,
    pick_unused_code,
    redeem_enrollment_code,
)
from tests.conftest import TestingSessionLocal, auth_header


def test_generated_codes_use_the_code_alphabet():
    code = generate_code()
    assert len(code) == ENROLLMENT_CODE_LENGTH
    assert set(code) <= set(ENROLLMENT_CODE_ALPHABET)


def test_ten_thousand_codes_are_pairwise_distinct():
    issued: set[str] = set()
    for _ in range(10_000):
        issued.add(pick_unused_code(issued.__contains__))
    assert len(issued) == 10_000


def test_collision_draws_again():
    draws = iter(["ABC123", "ABC123", "XYZ789"])
    code = pick_unused_code(lambda c: c == "ABC123", generate=lambda: next(draws))
    assert code == "XYZ789"


def test_gives_up_after_max_attempts():
    with pytest.raises(Conflict):
        pick_unused_code(lambda c: True, max_attempts=3, generate=lambda: "ABC123")


def test_create_class_retries_when_insert_hits_taken_code(db, users, monkeypatch):
    # the pre-check is bypassed so the unique constraint has to catch the clash
    draws = iter(["ABC123", "NEW001"])
    monkeypatch.setattr(classes, "pick_unused_code", lambda *args, **kwargs: next(draws))

    created = classes.create_class(db, users["teacher"], title="History 8")

    assert created.enrollment_code == "NEW001"
    assert created.is_active is False
    assert db.query(SchoolClass).count() == 2


def test_student_redeems_code_once(db, users, seed):
    enrollment = redeem_enrollment_code(db, users["outsider"], "  abc123 ")
    assert enrollment.class_id == seed["class_id"]

    with pytest.raises(AlreadyEnrolled):
        redeem_enrollment_code(db, users["outsider"], "ABC123")

    count = (
        db.query(Enrollment)
        .filter(Enrollment.student_id == seed["outsider_id"])
        .count()
    )
    assert count == 1


def test_unknown_code_is_not_found(db, users):
    with pytest.raises(NotFound):
        redeem_enrollment_code(db, users["outsider"], "ZZZZZZ")


def test_teacher_joins_as_co_teacher(db, users, seed):
    link = redeem_enrollment_code(db, users["other_teacher"], "ABC123")
    assert isinstance(link, ClassTeacher)
    assert link.class_id == seed["class_id"]

    with pytest.raises(AlreadyCoTeacher):
        redeem_enrollment_code(db, users["other_teacher"], "ABC123")


def test_owner_cannot_redeem_own_code(db, users):
    with pytest.raises(AlreadyPrimaryTeacher):
        redeem_enrollment_code(db, users["teacher"], "ABC123")


def test_redeeming_as_another_role_is_refused(db, users):
    with pytest.raises(PermissionDenied):
        redeem_enrollment_code(db, users["outsider"], "ABC123", as_role="teacher")


def test_redeem_endpoint(client, seed):
    headers = auth_header(seed["outsider_id"])

    r = client.post("/enrollments/redeem", headers=headers, json={"code": "abc123"})
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["role"] == "student"
    assert body["class_id"] == seed["class_id"]
    assert body["enrollment"]["student_id"] == seed["outsider_id"]

    r = client.post("/enrollments/redeem", headers=headers, json={"code": "ABC123"})
    assert r.status_code == 409
    assert r.json()["detail"] == "Already enrolled"


def test_redeem_requires_bearer_token(client):
    r = client.post("/enrollments/redeem", json={"code": "ABC123"})
    assert r.status_code == 401


def test_concurrent_redemption_leaves_one_enrollment(db, users, seed):
    def other_request_enrolls_first(session):
        other = TestingSessionLocal()
        try:
            other.add(Enrollment(student_id=seed["outsider_id"], class_id=seed["class_id"]))
            other.commit()
        finally:
            other.close()

    # lands after the duplicate pre-check, before this redemption commits
    event.listen(db, "before_commit", other_request_enrolls_first, once=True)

    with pytest.raises(AlreadyEnrolled):
        redeem_enrollment_code(db, users["outsider"], "ABC123")

    count = (
        db.query(Enrollment)
        .filter(
            Enrollment.student_id == seed["outsider_id"],
            Enrollment.class_id == seed["class_id"],
        )
        .count()
    )
    assert count == 1
