from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from classroom.core.errors import ContentRequired, NotFound, PermissionDenied
from classroom.models.assignment import Assignment
from classroom.models.grade import Grade
from classroom.models.notification import Notification
from classroom.models.submission import Submission
from classroom.services import submissions as ledger
from classroom.services.grading import grade_submission
from classroom.services.submissions import SubmissionContent
from tests.conftest import TestingSessionLocal, auth_header


def text(value: str) -> SubmissionContent:
    return SubmissionContent(written_response=value)


def test_draft_is_edited_in_place(db, users, seed):
    first = ledger.upsert_draft(db, seed["assignment_id"], users["student"], text("first"))
    second = ledger.upsert_draft(db, seed["assignment_id"], users["student"], text("second"))

    assert second.id == first.id
    assert second.written_response == "second"
    assert second.status == "draft"
    assert second.submitted_at is None
    assert db.query(Submission).count() == 1


def test_submit_without_content_writes_nothing(db, users, seed):
    for empty in (SubmissionContent(), text("   "), SubmissionContent(map_data={"x": 1})):
        with pytest.raises(ContentRequired):
            ledger.submit(db, seed["assignment_id"], users["student"], empty)

    assert db.query(Submission).count() == 0
    assert db.query(Notification).count() == 0


def test_attachments_alone_are_enough_to_submit(db, users, seed):
    content = SubmissionContent(attachments=["0" * 32])
    submission = ledger.submit(db, seed["assignment_id"], users["student"], content)
    assert submission.status == "submitted"


def test_submit_promotes_open_draft(db, users, seed):
    draft = ledger.upsert_draft(db, seed["assignment_id"], users["student"], text("work"))
    submitted = ledger.submit(db, seed["assignment_id"], users["student"], text("work v2"))

    assert submitted.id == draft.id
    assert submitted.status == "submitted"
    assert submitted.submitted_at is not None
    assert db.query(Submission).count() == 1


def test_submit_notifies_class_owner(db, users, seed):
    submission = ledger.submit(db, seed["assignment_id"], users["student"], text("done"))

    note = db.query(Notification).filter(Notification.user_id == seed["teacher_id"]).one()
    assert note.type == "submission_received"
    assert note.submission_id == submission.id
    assert "Rivers of Europe" in note.message


def test_reporting_view_ignores_newer_draft(db, users, seed):
    submitted = ledger.submit(db, seed["assignment_id"], users["student"], text("final"))
    draft = ledger.upsert_draft(db, seed["assignment_id"], users["student"], text("rework"))
    assert draft.id != submitted.id

    latest = ledger.latest_by_assignment(db, seed["assignment_id"])
    assert [s.id for s in latest] == [submitted.id]

    # the student's own view shows the draft they are working on
    mine = ledger.latest_by_student(db, seed["student_id"])
    assert [s.id for s in mine] == [draft.id]


def test_draft_only_student_is_absent_from_reporting_view(db, users, seed):
    ledger.upsert_draft(db, seed["assignment_id"], users["student"], text("half"))
    assert ledger.latest_by_assignment(db, seed["assignment_id"]) == []


def test_ties_on_submitted_at_go_to_larger_id(db, seed):
    stamp = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
    rows = [
        Submission(
            assignment_id=seed["assignment_id"],
            student_id=seed["student_id"],
            written_response=f"attempt {n}",
            status="submitted",
            submitted_at=stamp,
            updated_at=stamp,
        )
        for n in range(2)
    ]
    for row in rows:
        db.add(row)
        db.commit()

    latest = ledger.latest_by_assignment(db, seed["assignment_id"])
    assert len(latest) == 1
    assert latest[0].id == max(r.id for r in rows)


def test_resubmission_keeps_graded_attempt(db, users, seed):
    first = ledger.submit(db, seed["assignment_id"], users["student"], text("v1"))
    grade_submission(db, first.id, users["teacher"], score=7, max_score=10)

    second = ledger.submit(db, seed["assignment_id"], users["student"], text("v2"))

    assert second.id != first.id
    db.expire_all()
    kept = db.get(Submission, first.id)
    assert kept.status == "graded"
    assert kept.written_response == "v1"
    assert db.query(Grade).filter(Grade.submission_id == first.id).count() == 1

    current = ledger.current_for_student(db, seed["assignment_id"], seed["student_id"])
    assert current.id == second.id
    history = ledger.history(db, seed["assignment_id"], seed["student_id"])
    assert [s.id for s in history] == [second.id, first.id]


def test_teacher_view_spans_managed_classes(db, users, seed):
    submitted = ledger.submit(db, seed["assignment_id"], users["student"], text("done"))

    assert [s.id for s in ledger.latest_by_teacher(db, seed["teacher_id"])] == [submitted.id]
    assert ledger.latest_by_teacher(db, seed["other_teacher_id"]) == []


def test_student_outside_class_cannot_submit(db, users, seed):
    with pytest.raises(PermissionDenied):
        ledger.submit(db, seed["assignment_id"], users["outsider"], text("sneaky"))


def test_unpublished_assignment_cannot_be_submitted(db, users, seed):
    assignment = db.get(Assignment, seed["assignment_id"])
    assignment.is_published = False
    db.commit()

    with pytest.raises(NotFound):
        ledger.upsert_draft(db, seed["assignment_id"], users["student"], text("early"))


def test_teacher_cannot_open_a_draft(db, users, seed):
    draft = ledger.upsert_draft(db, seed["assignment_id"], users["student"], text("private"))

    with pytest.raises(NotFound):
        ledger.get_submission(db, draft.id, users["teacher"])
    assert ledger.get_submission(db, draft.id, users["student"]).id == draft.id


def test_submission_endpoints(client, seed):
    student = auth_header(seed["student_id"])
    teacher = auth_header(seed["teacher_id"])
    url = f"/assignments/{seed['assignment_id']}/submissions"

    r = client.post(url, headers=student, json={"written_response": "draft"})
    assert r.status_code == 201, r.text
    assert r.json()["status"] == "draft"

    r = client.get(url, headers=teacher)
    assert r.status_code == 200
    assert r.json() == []

    r = client.post(url, headers=student, json={"finalize": True})
    assert r.status_code == 400
    assert r.json()["detail"].startswith("Submitted assignments must include")

    r = client.post(url, headers=student, json={"written_response": "final", "finalize": True})
    assert r.status_code == 201, r.text
    submission_id = r.json()["id"]

    r = client.get(url, headers=teacher)
    assert [row["id"] for row in r.json()] == [submission_id]

    r = client.get("/submissions/summary", headers=teacher)
    assert r.json() == {"pending": 1, "completed": 0}


def test_teacher_cannot_submit(client, seed):
    r = client.post(
        f"/assignments/{seed['assignment_id']}/submissions",
        headers=auth_header(seed["teacher_id"]),
        json={"written_response": "x", "finalize": True},
    )
    assert r.status_code == 403


def test_storage_allows_one_open_draft_per_student(db, seed):
    stamp = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
    for _ in range(2):
        db.add(
            Submission(
                assignment_id=seed["assignment_id"],
                student_id=seed["student_id"],
                status="draft",
                updated_at=stamp,
            )
        )
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_concurrent_first_saves_share_one_draft(db, users, seed, monkeypatch):
    real_open_draft = ledger._open_draft
    calls = []

    def open_draft_after_other_tab_saved(session, assignment_id, student_id):
        calls.append(assignment_id)
        if len(calls) == 1:
            # another tab saves its first draft after this one has looked
            other = TestingSessionLocal()
            try:
                other.add(
                    Submission(
                        assignment_id=assignment_id,
                        student_id=student_id,
                        written_response="from the other tab",
                        status="draft",
                        updated_at=datetime.now(timezone.utc),
                    )
                )
                other.commit()
            finally:
                other.close()
            return None
        return real_open_draft(session, assignment_id, student_id)

    monkeypatch.setattr(ledger, "_open_draft", open_draft_after_other_tab_saved)

    saved = ledger.upsert_draft(db, seed["assignment_id"], users["student"], text("from this tab"))

    drafts = db.query(Submission).filter(Submission.status == "draft").all()
    assert [d.id for d in drafts] == [saved.id]
    assert drafts[0].written_response == "from this tab"
    assert len(calls) == 2
