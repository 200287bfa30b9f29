"""Tests für den Python-API-Client (ohne Netzwerk)."""
import pytest

from client import ApiError, BlogClient, ValidationError, GENERIC_ERROR


class _FakeResponse:
    def __init__(self, status_code, data=None, raw=False):
        self.status_code = status_code
        self._data = data
        self._raw = raw

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        if self._raw:
            raise ValueError("no json")
        return self._data


@pytest.fixture
def client(monkeypatch):
    c = BlogClient("http://api.test/")
    calls = []

    def no_network(*args, **kwargs):
        calls.append((args, kwargs))
        raise AssertionError("unexpected request")

    monkeypatch.setattr(c.session, "request", no_network)
    c.calls = calls
    return c


def _answer(monkeypatch, client, response):
    seen = []

    def fake_request(method, url, **kwargs):
        seen.append((method, url, kwargs))
        return response

    monkeypatch.setattr(client.session, "request", fake_request)
    return seen


@pytest.mark.parametrize(
    "call, message",
    [
        (lambda c: c.signup("a@b.com", "secret1", "al"), "Username must be at least 3 characters long"),
        (lambda c: c.signup("nope", "secret1", "alice"), "Invalid email"),
        (lambda c: c.signup("a@b.com", "123", "alice"), "Password must be at least 6 characters long"),
        (lambda c: c.login("a@b.com", "123"), "Invalid password"),
        (lambda c: c.list_blogs(0), "Invalid page number"),
        (lambda c: c.liked_by("id", -1), "Invalid page number"),
        (lambda c: c.comment("id", "x" * 1001), "Comment too long!"),
        (lambda c: c.comment("id", "\U0001F600" * 501), "Comment too long!"),
        (lambda c: c.comment("id", "  "), "Comment cannot be empty!"),
        (lambda c: c.add_blog("t" * 101, "c", "d"), "Title too long!"),
        (lambda c: c.add_blog("t", "c", "d" * 501), "Description too long!"),
        (lambda c: c.add_blog("", "c", "d"), "Missing required fields!"),
    ],
)
def test_validation_happens_before_request(client, call, message):
    with pytest.raises(ValidationError) as exc:
        call(client)
    assert str(exc.value) == message
    assert client.calls == []


def test_base_url_is_normalized(client, monkeypatch):
    seen = _answer(monkeypatch, client, _FakeResponse(200, {"blogs": [], "hasMore": False, "nextPage": None}))
    client.list_blogs(1)
    method, url, kwargs = seen[0]
    assert method == "GET"
    assert url == "http://api.test/blogs"
    assert kwargs["params"] == {"page": 1}


def test_server_message_is_surfaced(client, monkeypatch):
    _answer(monkeypatch, client, _FakeResponse(400, {"message": "You have already liked this blog"}))
    with pytest.raises(ApiError) as exc:
        client.like("abc")
    assert exc.value.status == 400
    assert exc.value.message == "You have already liked this blog"


def test_missing_message_falls_back(client, monkeypatch):
    _answer(monkeypatch, client, _FakeResponse(502, raw=True))
    with pytest.raises(ApiError) as exc:
        client.me()
    assert exc.value.message == GENERIC_ERROR


def test_like_returns_count(client, monkeypatch):
    seen = _answer(monkeypatch, client, _FakeResponse(200, {"likes": 3}))
    assert client.like("a/b") == 3
    assert seen[0][1] == "http://api.test/blogs/like/a%2Fb"


def test_iter_blogs_follows_next_page(client, monkeypatch):
    pages = {
        1: {"blogs": [{"id": "1"}, {"id": "2"}], "hasMore": True, "nextPage": 2},
        2: {"blogs": [{"id": "3"}], "hasMore": False, "nextPage": None},
    }
    requested = []

    def fake_request(method, url, **kwargs):
        page = kwargs["params"]["page"]
        requested.append(page)
        return _FakeResponse(200, pages[page])

    monkeypatch.setattr(client.session, "request", fake_request)
    assert [b["id"] for b in client.iter_blogs()] == ["1", "2", "3"]
    assert requested == [1, 2]


def test_login_returns_user(client, monkeypatch):
    user = {"id": "u1", "username": "alice"}
    _answer(monkeypatch, client, _FakeResponse(200, {"message": "Login successful!", "user": user}))
    assert client.login("a@b.com", "secret1") == user
