"""
Tests für Login, Logout, /users/me und die Session-Cookies.
"""
import os
import tempfile
from datetime import timedelta

import pytest
from sqlalchemy.orm import Session

_DB_FD, _DB_PATH = tempfile.mkstemp(suffix=".db")
os.close(_DB_FD)
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_DB_PATH}")
os.environ.setdefault("EMAILS_ENABLED", "false")

import app as app_module
from models import Base, UserSession
from factories import create_user


@pytest.fixture(scope="function")
def test_client():
    Base.metadata.drop_all(app_module.engine)
    Base.metadata.create_all(app_module.engine)
    return app_module.app.test_client()


def _session_cookie(resp) -> str | None:
    for header in resp.headers.getlist("Set-Cookie"):
        if header.startswith("auth_session="):
            return header
    return None


def test_login_success_sets_cookie(test_client):
    user_id = create_user(email="login@example.com", username="login_user")
    r = test_client.post(
        "/users/login",
        json={"email": "login@example.com", "password": "secret1"},
    )
    assert r.status_code == 200
    data = r.get_json() or {}
    assert data.get("message") == "Login successful!"
    assert data["user"]["id"] == user_id
    assert data["user"]["username"] == "login_user"
    assert "password" not in data["user"]

    cookie = _session_cookie(r)
    assert cookie is not None
    assert "HttpOnly" in cookie

    me = test_client.get("/users/me")
    assert me.status_code == 200
    assert (me.get_json() or {}).get("email") == "login@example.com"


def test_login_allowed_before_verification(test_client):
    create_user(email="pending@example.com", verified=False)
    r = test_client.post(
        "/users/login",
        json={"email": "pending@example.com", "password": "secret1"},
    )
    assert r.status_code == 200


@pytest.mark.parametrize(
    "payload, message",
    [
        ({"email": "nobody@example.com", "password": "secret1"}, "User does not exist"),
        ({"email": "login@example.com", "password": "wrongpass"}, "Invalid email or password"),
        ({"email": "not-an-email", "password": "secret1"}, "Invalid email"),
        ({"email": "login@example.com", "password": "123"}, "Invalid password"),
    ],
)
def test_login_failures(test_client, payload, message):
    create_user(email="login@example.com")
    r = test_client.post("/users/login", json=payload)
    assert r.status_code == 400
    assert (r.get_json() or {}).get("message") == message
    assert _session_cookie(r) is None


def test_logout_invalidates_session(test_client):
    create_user(email="logout@example.com")
    test_client.post("/users/login", json={"email": "logout@example.com", "password": "secret1"})
    assert test_client.get("/users/me").status_code == 200

    r = test_client.post("/users/logout")
    assert r.status_code == 200
    cookie = _session_cookie(r)
    assert cookie is not None
    assert cookie.startswith("auth_session=;")

    assert test_client.get("/users/me").status_code == 401


def test_bearer_header_is_accepted(test_client):
    user_id = create_user()
    session = app_module.create_session(user_id)
    r = test_client.get("/users/me", headers={"Authorization": f"Bearer {session.id}"})
    assert r.status_code == 200
    assert (r.get_json() or {}).get("id") == user_id


def test_expired_session_is_rejected_and_deleted(test_client):
    user_id = create_user()
    with Session(app_module.engine) as s:
        s.add(
            UserSession(
                id="expired-token",
                user_id=user_id,
                expires_at=app_module._now() - timedelta(minutes=1),
            )
        )
        s.commit()

    r = test_client.get("/users/me", headers={"Authorization": "Bearer expired-token"})
    assert r.status_code == 401
    assert (r.get_json() or {}).get("message") == "Unauthorized"
    with Session(app_module.engine) as s:
        assert s.get(UserSession, "expired-token") is None


def test_session_near_expiry_is_extended(test_client):
    user_id = create_user()
    with Session(app_module.engine) as s:
        s.add(
            UserSession(
                id="old-token",
                user_id=user_id,
                expires_at=app_module._now() + timedelta(days=1),
            )
        )
        s.commit()

    r = test_client.get("/users/me", headers={"Authorization": "Bearer old-token"})
    assert r.status_code == 200
    assert _session_cookie(r) is not None

    with Session(app_module.engine) as s:
        row = s.get(UserSession, "old-token")
        expires_at = app_module._as_utc_aware(row.expires_at)
    assert expires_at > app_module._now() + timedelta(days=20)


def test_valid_session_is_not_reissued(test_client):
    user_id = create_user()
    session = app_module.create_session(user_id)
    r = test_client.get("/users/me", headers={"Authorization": f"Bearer {session.id}"})
    assert r.status_code == 200
    assert _session_cookie(r) is None
