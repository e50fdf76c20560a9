from tests.conftest import auth_header


def test_teacher_adds_student(client, seed):
    r = client.post(
        "/users",
        headers=auth_header(seed["teacher_id"]),
        json={"username": "new.kid", "first_name": "New", "last_name": "Kid"},
    )
    assert r.status_code == 201, r.text
    assert r.json()["role"] == "student"
    assert r.json()["email"] is None


def test_teacher_cannot_add_teacher(client, seed):
    r = client.post(
        "/users",
        headers=auth_header(seed["teacher_id"]),
        json={"username": "t3", "first_name": "T", "last_name": "Three", "role": "teacher"},
    )
    assert r.status_code == 403


def test_duplicate_username_conflicts(client, seed):
    r = client.post(
        "/users",
        headers=auth_header(seed["admin_id"]),
        json={"username": "student1", "first_name": "S", "last_name": "Two"},
    )
    assert r.status_code == 409


def test_me(client, seed):
    r = client.get("/users/me", headers=auth_header(seed["student_id"]))
    assert r.status_code == 200
    assert r.json()["username"] == "student1"


def test_invalid_token_is_rejected(client):
    r = client.get("/users/me", headers={"Authorization": "Bearer not-a-token"})
    assert r.status_code == 401


def test_attachment_round_trip(client, seed):
    headers = auth_header(seed["student_id"])

    r = client.post("/attachments", headers=headers, content=b"river,length\nDanube,2850\n")
    assert r.status_code == 201, r.text
    ref = r.json()["reference"]
    assert r.json()["size"] == 25

    r = client.get(f"/attachments/{ref}", headers=headers)
    assert r.status_code == 200
    assert r.content == b"river,length\nDanube,2850\n"

    r = client.get("/attachments/..%2Fsecret", headers=headers)
    assert r.status_code == 404


def test_user_lookup(client, seed):
    r = client.get(f"/users/{seed['student_id']}", headers=auth_header(seed["teacher_id"]))
    assert r.status_code == 200
    assert r.json()["last_name"] == "Student"

    r = client.get(f"/users/{seed['teacher_id']}", headers=auth_header(seed["student_id"]))
    assert r.status_code == 403

    r = client.get("/users/999999", headers=auth_header(seed["admin_id"]))
    assert r.status_code == 404
