"""
Tests für geschützte Endpoints: 401 ohne Session.
"""
import os
import tempfile

import pytest

_DB_FD, _DB_PATH = tempfile.mkstemp(suffix=".db")
os.close(_DB_FD)
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_DB_PATH}")
os.environ.setdefault("EMAILS_ENABLED", "false")

import app as app_module
from models import Base


@pytest.fixture(scope="module")
def test_client():
    Base.metadata.drop_all(app_module.engine)
    Base.metadata.create_all(app_module.engine)
    return app_module.app.test_client()


@pytest.mark.parametrize(
    "method, path",
    [
        ("post", "/blogs/like/some-id"),
        ("post", "/blogs/comment/some-id"),
        ("post", "/blogs/add"),
        ("get", "/blogs/add"),
        ("get", "/users/me"),
        ("post", "/users/logout"),
    ],
)
def test_protected_endpoints_return_401_without_session(test_client, method, path):
    res = getattr(test_client, method)(path, json={})
    assert res.status_code == 401
    assert (res.get_json() or {}).get("message") == "Unauthorized"


def test_unknown_token_returns_401(test_client):
    res = test_client.post("/blogs/add", headers={"Authorization": "Bearer unknown"})
    assert res.status_code == 401


def test_unknown_route_returns_json_404(test_client):
    res = test_client.get("/does/not/exist")
    assert res.status_code == 404
    assert "message" in (res.get_json() or {})


def test_wrong_method_returns_json_405(test_client):
    res = test_client.delete("/blogs/add")
    assert res.status_code == 405
    assert "message" in (res.get_json() or {})
