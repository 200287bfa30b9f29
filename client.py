from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Iterator
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

# Formularregeln wie auf dem Server
EMAIL_PATTERN = re.compile(r"^[\w\-.]+@([\w-]+\.)+[\w-]{2,4}$")
MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6
MAX_TITLE_CHARS = 100
MAX_DESCRIPTION_CHARS = 500
MAX_COMMENT_UNITS = 1000
MAX_PAGE = 1_000_000_000

GENERIC_ERROR = "Something went wrong!"


class ValidationError(ValueError):
    """Eingabe wird schon clientseitig abgelehnt; es gibt keinen Request."""


class ApiError(Exception):
    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status
        self.message = message


def _require(cond: bool, message: str) -> None:
    if not cond:
        raise ValidationError(message)


def _utf16_len(s: str) -> int:
    return len(s.encode("utf-16-le", "surrogatepass")) // 2


def _check_page(page: int) -> None:
    _require(isinstance(page, int) and 1 <= page <= MAX_PAGE, "Invalid page number")


@dataclass
class BlogClient:
    base_url: str
    timeout: float = 15.0
    retries: int = 0
    backoff: float = 0.3
    session: requests.Session = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.base_url = self.base_url.rstrip("/")
        retry = Retry(
            total=self.retries,
            connect=self.retries,
            read=self.retries,
            status=self.retries,
            backoff_factor=self.backoff,
            status_forcelist=(502, 503, 504),
            allowed_methods=("GET", "HEAD"),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry)
        self.session = requests.Session()
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "BlogClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------
    def _request(self, method: str, path: str, **kwargs) -> Any:
        resp = self.session.request(
            method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs
        )
        try:
            data = resp.json()
        except ValueError:
            data = None

        if not resp.ok:
            message = data.get("message") if isinstance(data, dict) else None
            raise ApiError(resp.status_code, message or GENERIC_ERROR)
        return data

    # ------------------------------------------------------------
    # Users
    # ------------------------------------------------------------
    def signup(self, email: str, password: str, username: str) -> dict:
        _require(len(username or "") >= MIN_USERNAME_LENGTH,
                 "Username must be at least 3 characters long")
        _require(bool(EMAIL_PATTERN.match(email or "")), "Invalid email")
        _require(len(password or "") >= MIN_PASSWORD_LENGTH,
                 "Password must be at least 6 characters long")
        return self._request(
            "POST",
            "/users/signup",
            json={"email": email, "password": password, "username": username},
        )

    def verify_email(self, email: str, otp: int | str) -> dict:
        _require(str(otp).strip().isdigit(), "Invalid or expired validation code.")
        return self._request("POST", "/users/verify-email", json={"email": email, "otp": otp})

    def login(self, email: str, password: str) -> dict:
        _require(bool(EMAIL_PATTERN.match(email or "")), "Invalid email")
        _require(len(password or "") >= MIN_PASSWORD_LENGTH, "Invalid password")
        data = self._request("POST", "/users/login", json={"email": email, "password": password})
        return data["user"]

    def logout(self) -> dict:
        return self._request("POST", "/users/logout")

    def me(self) -> dict:
        return self._request("GET", "/users/me")

    def profile(self, username: str) -> dict:
        return self._request("GET", f"/users/{quote(username, safe='')}")

    # ------------------------------------------------------------
    # Blogs
    # ------------------------------------------------------------
    def list_blogs(self, page: int = 1) -> dict:
        _check_page(page)
        return self._request("GET", "/blogs", params={"page": page})

    def iter_blogs(self) -> Iterator[dict]:
        """Folgt ``nextPage`` bis zum Ende des Feeds."""
        page: int | None = 1
        while page is not None:
            data = self.list_blogs(page)
            yield from data["blogs"]
            page = data.get("nextPage")

    def get_blog(self, username: str, title: str) -> dict:
        return self._request(
            "GET", f"/blogs/{quote(username, safe='')}/{quote(title, safe='')}"
        )

    def like(self, blog_id: str) -> int:
        return self._request("POST", f"/blogs/like/{quote(blog_id, safe='')}")["likes"]

    def liked_by(self, blog_id: str, page: int = 1) -> dict:
        _check_page(page)
        return self._request(
            "GET", f"/blogs/likedBy/{quote(blog_id, safe='')}", params={"page": page}
        )

    def comments(self, blog_id: str, page: int = 1) -> dict:
        _check_page(page)
        return self._request(
            "GET", f"/blogs/comments/{quote(blog_id, safe='')}", params={"page": page}
        )

    def comment(self, blog_id: str, content: str) -> int:
        _require(bool((content or "").strip()), "Comment cannot be empty!")
        _require(_utf16_len(content) <= MAX_COMMENT_UNITS, "Comment too long!")
        data = self._request(
            "POST", f"/blogs/comment/{quote(blog_id, safe='')}", json={"content": content}
        )
        return data["comments"]

    def write_limits(self) -> dict:
        return self._request("GET", "/blogs/add")

    def add_blog(
        self, title: str, content: str, description: str, image: str | None = None
    ) -> dict:
        _require(bool(title and content and description), "Missing required fields!")
        _require(len(title) <= MAX_TITLE_CHARS, "Title too long!")
        _require(len(description) <= MAX_DESCRIPTION_CHARS, "Description too long!")
        payload = {"title": title, "content": content, "description": description}
        if image:
            payload["image"] = image
        return self._request("POST", "/blogs/add", json=payload)
