# auth.py
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from functools import wraps

from argon2 import PasswordHasher
from argon2.exceptions import VerificationError, InvalidHashError
from flask import request, make_response
from sqlalchemy import delete
from sqlalchemy.orm import Session

from core.config import SESSION_COOKIE_NAME, SESSION_TTL_DAYS, COOKIE_SECURE
from core.db import engine
from core.helpers import _now, _as_utc_aware, _json_error
from models import UserSession

ph = PasswordHasher()

SESSION_TTL = timedelta(days=SESSION_TTL_DAYS)


@dataclass(frozen=True)
class CurrentSession:
    id: str
    user_id: str
    expires_at: datetime
    fresh: bool = False


# --------------------------------------------------------
# Passwörter
# --------------------------------------------------------
def hash_password(password: str) -> str:
    return ph.hash(password)


def verify_password(pw_hash: str, password: str) -> bool:
    try:
        return ph.verify(pw_hash, password)
    except (VerificationError, InvalidHashError):
        return False


# --------------------------------------------------------
# Session-Service
# --------------------------------------------------------
def create_session(user_id: str) -> CurrentSession:
    sid = secrets.token_urlsafe(32)
    expires_at = _now() + SESSION_TTL
    with Session(engine) as s:
        s.add(UserSession(id=sid, user_id=user_id, expires_at=expires_at))
        s.commit()
    return CurrentSession(id=sid, user_id=user_id, expires_at=expires_at, fresh=True)


def validate_session(sid: str | None) -> CurrentSession | None:
    """
    Löst ein Session-Token auf.
    Abgelaufene Sessions werden gelöscht; ist weniger als die halbe
    Laufzeit übrig, wird die Session verlängert (fresh=True).
    """
    if not sid:
        return None
    with Session(engine) as s:
        row = s.get(UserSession, sid)
        if row is None:
            return None

        now = _now()
        expires_at = _as_utc_aware(row.expires_at)
        if expires_at <= now:
            s.delete(row)
            s.commit()
            return None

        fresh = False
        if expires_at - now < SESSION_TTL / 2:
            expires_at = now + SESSION_TTL
            row.expires_at = expires_at
            s.commit()
            fresh = True

        return CurrentSession(id=row.id, user_id=row.user_id, expires_at=expires_at, fresh=fresh)


def invalidate_session(sid: str) -> None:
    with Session(engine) as s:
        s.execute(delete(UserSession).where(UserSession.id == sid))
        s.commit()


def invalidate_user_sessions(s: Session, user_id: str) -> None:
    s.execute(delete(UserSession).where(UserSession.user_id == user_id))


# --------------------------------------------------------
# Cookies
# --------------------------------------------------------
def _cookie_flags():
    if COOKIE_SECURE:
        return {"httponly": True, "secure": True, "samesite": "None", "path": "/"}
    return {"httponly": True, "secure": False, "samesite": "Lax", "path": "/"}


def set_session_cookie(resp, session: CurrentSession):
    max_age = int((session.expires_at - _now()).total_seconds())
    resp.set_cookie(SESSION_COOKIE_NAME, session.id, max_age=max_age, **_cookie_flags())
    return resp


def clear_session_cookie(resp):
    resp.set_cookie(SESSION_COOKIE_NAME, "", max_age=0, **_cookie_flags())
    return resp


def _session_token() -> str | None:
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if not token:
        auth = request.headers.get("Authorization", "")
        if auth.lower().startswith("bearer "):
            token = auth.split(" ", 1)[1].strip()
    return token or None


# --------------------------------------------------------
# Middleware: Session wird explizit an den Handler übergeben
# --------------------------------------------------------
def _call_with_session(fn, session, args, kwargs):
    resp = make_response(fn(*args, session=session, **kwargs))
    if session is None or not session.fresh:
        return resp
    # Handler hat das Cookie selbst gesetzt (z.B. Logout)
    if any(c.startswith(f"{SESSION_COOKIE_NAME}=") for c in resp.headers.getlist("Set-Cookie")):
        return resp
    return set_session_cookie(resp, session)


def session_required(fn):
    @wraps(fn)
    def inner(*args, **kwargs):
        session = validate_session(_session_token())
        if session is None:
            return _json_error("Unauthorized", 401)
        return _call_with_session(fn, session, args, kwargs)

    return inner


def session_optional(fn):
    @wraps(fn)
    def inner(*args, **kwargs):
        session = validate_session(_session_token())
        return _call_with_session(fn, session, args, kwargs)

    return inner
