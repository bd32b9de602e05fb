import os
from datetime import datetime

from campus.core import config
from campus.db.storage import DatabaseStorage


def submit(client, headers, assignment_id, content=None, file=None):
    data = {"content": content} if content is not None else {}
    files = {"file": file} if file is not None else None
    return client.post(
        f"/assignments/{assignment_id}/submissions",
        headers=headers,
        data=data,
        files=files,
    )


def test_submit_and_resubmit_updates_same_row(client, as_user, ids):
    student = as_user("student1")

    r1 = submit(client, student, ids["hw1"], content="first")
    assert r1.status_code == 201, r1.text
    body1 = r1.json()
    assert body1["status"] == "submitted"
    assert body1["grade"] is None

    r2 = submit(client, student, ids["hw1"], content="second")
    assert r2.status_code == 201, r2.text
    body2 = r2.json()
    assert body2["id"] == body1["id"]
    assert body2["content"] == "second"


def test_empty_submission_rejected(client, as_user, ids):
    r = submit(client, as_user("student1"), ids["hw1"], content="   ")
    assert r.status_code == 400
    assert r.json()["errors"][0]["field"] == "content"


def test_file_required_assignment(client, as_user, ids):
    student = as_user("student1")

    r = submit(client, student, ids["project"], content="text only")
    assert r.status_code == 400
    assert r.json()["errors"][0]["field"] == "file"

    r = submit(client, student, ids["project"], file=("report.pdf", b"%PDF-1.4 data", "application/pdf"))
    assert r.status_code == 201, r.text
    path = r.json()["file_path"]
    assert path.endswith(".pdf")
    assert os.path.dirname(path) == str(config.UPLOAD_DIR)
    assert os.path.exists(path)


def test_disallowed_file_type(client, as_user, ids):
    r = submit(client, as_user("student1"), ids["project"], file=("run.exe", b"MZ", "application/octet-stream"))
    assert r.status_code == 400
    assert r.json()["errors"][0]["field"] == "file"


def test_oversized_file_rejected(client, as_user, ids, monkeypatch):
    monkeypatch.setattr(config, "MAX_UPLOAD_BYTES", 16)
    r = submit(client, as_user("student1"), ids["project"], file=("notes.txt", b"x" * 64, "text/plain"))
    assert r.status_code == 400
    assert not any(name.startswith("file-") and name.endswith(".txt") for name in os.listdir(config.UPLOAD_DIR))


def test_only_approved_students_submit(client, as_user, ids):
    # student2 has no enrollment in CS101
    r = submit(client, as_user("student2"), ids["hw1"], content="hi")
    assert r.status_code == 403

    r = submit(client, as_user("lecturer1"), ids["hw1"], content="hi")
    assert r.status_code == 403


def test_grade_submission(client, as_user, ids):
    sub = submit(client, as_user("student1"), ids["hw1"], content="answer").json()

    r = client.put(
        f"/submissions/{sub['id']}/grade",
        headers=as_user("lecturer1"),
        json={"grade": 88, "feedback": "Good work"},
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["grade"] == 88
    assert body["feedback"] == "Good work"
    assert body["status"] == "graded"
    assert datetime.fromisoformat(body["graded_at"]) >= datetime.fromisoformat(body["submitted_at"])


def test_regrade_overwrites(client, as_user, ids):
    sub = submit(client, as_user("student1"), ids["hw1"], content="answer").json()
    lecturer = as_user("lecturer1")
    client.put(f"/submissions/{sub['id']}/grade", headers=lecturer, json={"grade": 50})

    r = client.put(f"/submissions/{sub['id']}/grade", headers=lecturer, json={"grade": 75, "feedback": "Revised"})
    assert r.status_code == 200
    assert r.json()["grade"] == 75
    assert r.json()["feedback"] == "Revised"


def test_grade_outside_range(client, as_user, ids):
    sub = submit(
        client, as_user("student1"), ids["project"], file=("a.zip", b"PK", "application/zip")
    ).json()
    lecturer = as_user("lecturer1")

    # Project is out of 50 points
    r = client.put(f"/submissions/{sub['id']}/grade", headers=lecturer, json={"grade": 51})
    assert r.status_code == 400
    r = client.put(f"/submissions/{sub['id']}/grade", headers=lecturer, json={"grade": -1})
    assert r.status_code == 400
    r = client.put(f"/submissions/{sub['id']}/grade", headers=lecturer, json={"grade": 50})
    assert r.status_code == 200


def test_resubmit_after_grading_conflicts(client, as_user, ids):
    student = as_user("student1")
    sub = submit(client, student, ids["hw1"], content="answer").json()
    client.put(f"/submissions/{sub['id']}/grade", headers=as_user("lecturer1"), json={"grade": 90})

    r = submit(client, student, ids["hw1"], content="late fix")
    assert r.status_code == 409
    assert r.json()["code"] == "invalid_transition"


def test_grading_restricted_to_course_staff(client, as_user, ids):
    sub = submit(client, as_user("student1"), ids["hw1"], content="answer").json()

    assert client.put(
        f"/submissions/{sub['id']}/grade", headers=as_user("student1"), json={"grade": 100}
    ).status_code == 403
    assert client.put(
        f"/submissions/{sub['id']}/grade", headers=as_user("lecturer2"), json={"grade": 100}
    ).status_code == 403
    assert client.put(
        f"/submissions/{sub['id']}/grade", headers=as_user("admin1"), json={"grade": 100}
    ).status_code == 200


def test_list_submissions(client, as_user, ids):
    submit(client, as_user("student1"), ids["hw1"], content="answer")

    r = client.get(f"/assignments/{ids['hw1']}/submissions", headers=as_user("lecturer1"))
    assert r.status_code == 200
    assert [s["student_id"] for s in r.json()] == [ids["student"]]

    assert client.get(f"/assignments/{ids['hw1']}/submissions", headers=as_user("student1")).status_code == 403
    assert client.get(f"/assignments/{ids['hw1']}/submissions", headers=as_user("lecturer2")).status_code == 403


def test_student_submission_history(client, as_user, ids):
    submit(client, as_user("student1"), ids["hw1"], content="answer")

    own = client.get(f"/students/{ids['student']}/submissions", headers=as_user("student1"))
    assert own.status_code == 200
    assert len(own.json()) == 1

    other = client.get(f"/students/{ids['student']}/submissions", headers=as_user("student2"))
    assert other.status_code == 403


def test_create_assignment(client, as_user, ids):
    payload = {
        "title": "Quiz 1",
        "due_date": "2030-01-15T10:00:00Z",
        "weight": 10,
    }
    r = client.post(f"/courses/{ids['cs101']}/assignments", headers=as_user("lecturer1"), json=payload)
    assert r.status_code == 201, r.text
    assert r.json()["max_points"] == 100
    assert r.json()["file_required"] is False

    r = client.post(f"/courses/{ids['cs101']}/assignments", headers=as_user("lecturer2"), json=payload)
    assert r.status_code == 403
    r = client.post(f"/courses/{ids['cs101']}/assignments", headers=as_user("student1"), json=payload)
    assert r.status_code == 403
    r = client.post(
        f"/courses/{ids['cs101']}/assignments",
        headers=as_user("lecturer1"),
        json={**payload, "weight": 101},
    )
    assert r.status_code == 400


def test_assignments_visible_to_approved_students_only(client, as_user, ids):
    r = client.get(f"/courses/{ids['cs101']}/assignments", headers=as_user("student1"))
    assert r.status_code == 200
    assert [a["title"] for a in r.json()] == ["HW1", "Project"]

    r = client.get(f"/courses/{ids['cs101']}/assignments", headers=as_user("student2"))
    assert r.status_code == 403


def test_resubmitted_file_replaces_the_old_one(client, as_user, ids):
    student = as_user("student1")
    before = set(os.listdir(config.UPLOAD_DIR))

    first = submit(client, student, ids["project"], file=("draft.pdf", b"%PDF draft", "application/pdf")).json()
    second = submit(client, student, ids["project"], file=("final.pdf", b"%PDF final", "application/pdf")).json()

    assert second["id"] == first["id"]
    assert not os.path.exists(first["file_path"])
    assert os.path.exists(second["file_path"])
    assert set(os.listdir(config.UPLOAD_DIR)) - before == {os.path.basename(second["file_path"])}


def test_text_resubmission_keeps_existing_file(client, as_user, ids):
    student = as_user("student1")
    first = submit(client, student, ids["hw1"], file=("notes.doc", b"notes", "application/msword")).json()

    second = submit(client, student, ids["hw1"], content="typed answer").json()
    assert second["file_path"] == first["file_path"]
    assert os.path.exists(first["file_path"])


def test_lost_race_on_first_submission_leaves_no_file(client, as_user, ids, monkeypatch):
    student = as_user("student1")
    submit(client, student, ids["project"], file=("a.pdf", b"%PDF a", "application/pdf"))
    before = set(os.listdir(config.UPLOAD_DIR))

    # the row appears between the existence check and the insert
    monkeypatch.setattr(DatabaseStorage, "get_submission", lambda self, assignment_id, student_id: None)
    r = submit(client, student, ids["project"], file=("b.pdf", b"%PDF b", "application/pdf"))

    assert r.status_code == 409
    assert set(os.listdir(config.UPLOAD_DIR)) == before
