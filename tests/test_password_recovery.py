from datetime import timedelta

import pytest

from campus.core import config
from campus.db.base_class import as_utc, utcnow
from campus.models.password_reset import PasswordReset


@pytest.fixture()
def exposed_tokens(monkeypatch):
    monkeypatch.setattr(config, "EXPOSE_RESET_TOKEN", True)


def request_token(client, identifier: str):
    r = client.post("/password-recovery/request", json={"identifier": identifier})
    assert r.status_code == 200, r.text
    return r.json()


def test_request_for_unknown_identifier_looks_the_same(client, exposed_tokens):
    known = request_token(client, "student1@example.com")
    unknown = request_token(client, "nobody@example.com")

    assert known["message"] == unknown["message"]
    assert known["reset_token"]
    assert unknown["reset_token"] is None


def test_token_hidden_unless_exposed(client):
    body = request_token(client, "student1@example.com")
    assert body["reset_token"] is None


def test_token_expires_in_about_an_hour(client, db, exposed_tokens):
    token = request_token(client, "student1@example.com")["reset_token"]

    reset = db.query(PasswordReset).filter(PasswordReset.token == token).one()
    remaining = as_utc(reset.expires_at) - utcnow()
    assert timedelta(minutes=59) < remaining <= timedelta(hours=1)
    assert reset.used is False


def test_phone_number_identifier(client, ids, exposed_tokens):
    token = request_token(client, "+15550001")["reset_token"]
    r = client.get(f"/password-recovery/verify/{token}")
    assert r.status_code == 200
    assert r.json()["user_id"] == ids["student"]


def test_reset_is_single_use(client, exposed_tokens):
    token = request_token(client, "student1@example.com")["reset_token"]

    r1 = client.post("/password-recovery/reset", json={"token": token, "new_password": "brand-new-pw"})
    assert r1.status_code == 200, r1.text

    r2 = client.post("/password-recovery/reset", json={"token": token, "new_password": "another-pw"})
    assert r2.status_code == 400
    assert r2.json()["code"] == "token_used"

    # first new password is the one that stuck
    assert client.post("/auth/login", json={"username": "student1", "password": "brand-new-pw"}).status_code == 200
    assert client.post("/auth/login", json={"username": "student1", "password": "another-pw"}).status_code == 401
    assert client.post("/auth/login", json={"username": "student1", "password": "password123"}).status_code == 401


def test_new_request_invalidates_previous_token(client, exposed_tokens):
    first = request_token(client, "student1@example.com")["reset_token"]
    second = request_token(client, "student1@example.com")["reset_token"]
    assert first != second

    r = client.post("/password-recovery/reset", json={"token": first, "new_password": "brand-new-pw"})
    assert r.status_code == 400
    assert r.json()["code"] == "token_used"

    r = client.post("/password-recovery/reset", json={"token": second, "new_password": "brand-new-pw"})
    assert r.status_code == 200


def test_expired_token_rejected(client, db, exposed_tokens):
    token = request_token(client, "student1@example.com")["reset_token"]
    reset = db.query(PasswordReset).filter(PasswordReset.token == token).one()
    reset.expires_at = utcnow() - timedelta(minutes=1)
    db.commit()

    r = client.get(f"/password-recovery/verify/{token}")
    assert r.status_code == 400
    assert r.json()["code"] == "token_expired"

    r = client.post("/password-recovery/reset", json={"token": token, "new_password": "brand-new-pw"})
    assert r.json()["code"] == "token_expired"


def test_unknown_token(client):
    r = client.get("/password-recovery/verify/does-not-exist")
    assert r.status_code == 400
    assert r.json()["code"] == "token_not_found"


def test_reset_ends_existing_sessions(client, exposed_tokens):
    sid = client.post("/auth/login", json={"username": "student1", "password": "password123"}).json()["access_token"]
    client.cookies.clear()
    headers = {"Authorization": f"Bearer {sid}"}
    assert client.get("/auth/me", headers=headers).status_code == 200

    token = request_token(client, "student1@example.com")["reset_token"]
    client.post("/password-recovery/reset", json={"token": token, "new_password": "brand-new-pw"})

    assert client.get("/auth/me", headers=headers).status_code == 401


def test_short_new_password_rejected(client, exposed_tokens):
    token = request_token(client, "student1@example.com")["reset_token"]
    r = client.post("/password-recovery/reset", json={"token": token, "new_password": "123"})
    assert r.status_code == 400
    assert r.json()["errors"][0]["field"] == "new_password"


def test_reset_goes_to_owner_of_address_in_any_case(client, ids, exposed_tokens):
    client.post(
        "/auth/register",
        json={
            "username": "jdoe",
            "email": "JDoe@example.com",
            "password": "password123",
            "role": "student",
            "first_name": "J",
            "last_name": "Doe",
        },
    )
    owner = client.post("/auth/login", json={"username": "jdoe", "password": "password123"})
    client.cookies.clear()
    owner_id = client.get(
        "/auth/me", headers={"Authorization": f"Bearer {owner.json()['access_token']}"}
    ).json()["id"]

    token = request_token(client, "jdoe@EXAMPLE.com")["reset_token"]
    r = client.get(f"/password-recovery/verify/{token}")
    assert r.json()["user_id"] == owner_id
