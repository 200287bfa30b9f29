# users.py
import secrets
from datetime import timedelta

from email_validator import validate_email, EmailNotValidError
from flask import Blueprint, current_app, jsonify, make_response
from sqlalchemy import select, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

import mail
from auth import (
    hash_password,
    verify_password,
    create_session,
    invalidate_session,
    invalidate_user_sessions,
    set_session_cookie,
    clear_session_cookie,
    session_required,
    session_optional,
)
from core.config import (
    MIN_PASSWORD_LENGTH,
    MIN_USERNAME_LENGTH,
    VALIDATION_CODE_TTL_MINUTES,
    DEFAULT_PROFILE_PICTURE,
)
from core.db import engine
from core.helpers import _now, _json_error, _server_error, _json_body
from core.pagination import PAGE_SIZE
from models import User, ValidationCode, Blog
from serializers import blog_summary

bp = Blueprint("users", __name__, url_prefix="/users")


def _normalize_email(raw) -> str | None:
    if not raw or not isinstance(raw, str):
        return None
    try:
        return validate_email(raw.strip(), check_deliverability=False).normalized
    except EmailNotValidError:
        return None


def _valid_password(raw) -> bool:
    return isinstance(raw, str) and len(raw) >= MIN_PASSWORD_LENGTH


OTP_MIN = 100000
OTP_MAX = 999999


def _new_validation_code() -> int:
    return OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1)


def _parse_otp(raw) -> int | None:
    # sechsstellig, nur ASCII-Ziffern
    s = str(raw if raw is not None else "").strip()
    if not (s.isascii() and s.isdigit()):
        return None
    otp = int(s)
    return otp if OTP_MIN <= otp <= OTP_MAX else None


@bp.post("/signup")
def signup():
    data = _json_body()
    email = _normalize_email(data.get("email"))
    password = data.get("password") or ""
    username = data.get("username")
    username = username.strip() if isinstance(username, str) else ""

    if not email:
        return _json_error("Invalid email")
    if not _valid_password(password):
        return _json_error("Invalid password")
    if len(username) < MIN_USERNAME_LENGTH:
        return _json_error("Invalid username")

    try:
        with Session(engine) as s:
            existing = s.scalar(select(User).where(User.email == email))
            if existing and existing.verified:
                return _json_error("Email already exists.")
            if existing:
                # unbestätigte Registrierung: alten Stand verwerfen und neu starten
                current_app.logger.info("signup: replacing unverified user %s", existing.id)
                invalidate_user_sessions(s, existing.id)
                s.execute(delete(ValidationCode).where(ValidationCode.email == email))
                s.execute(delete(User).where(User.id == existing.id))
                s.flush()

            taken = s.scalar(select(User.id).where(User.username == username))
            if taken:
                s.rollback()
                return _json_error("Username already taken.")

            s.add(
                User(
                    email=email,
                    password=hash_password(password),
                    username=username,
                    profile_picture=DEFAULT_PROFILE_PICTURE,
                )
            )
            code = ValidationCode(
                email=email,
                code=_new_validation_code(),
                expiration=_now() + timedelta(minutes=VALIDATION_CODE_TTL_MINUTES),
            )
            s.add(code)
            s.commit()
            otp = code.code
    except SQLAlchemyError:
        current_app.logger.exception("signup failed")
        return _server_error("Server error")

    ok_mail, reason = mail.send_verification_mail(email, otp)
    if not ok_mail:
        current_app.logger.warning("signup: verification mail not delivered: %s", reason)
        return _server_error("Error while sending email. Make sure it is a valid email.")

    return jsonify({"message": "Email sent successfully."})


@bp.post("/verify-email")
def verify_email():
    data = _json_body()
    email = _normalize_email(data.get("email"))
    otp = _parse_otp(data.get("otp"))

    if not email or otp is None:
        return _json_error("Invalid or expired validation code.")

    try:
        with Session(engine) as s:
            code = s.scalar(
                select(ValidationCode).where(
                    ValidationCode.email == email,
                    ValidationCode.code == otp,
                    ValidationCode.expiration > _now(),
                )
            )
            if not code:
                return _json_error("Invalid or expired validation code.")

            user = s.scalar(select(User).where(User.email == email))
            if not user:
                return _json_error("User does not exist.")

            user.verified = True
            s.execute(
                delete(ValidationCode).where(
                    ValidationCode.email == email, ValidationCode.code == otp
                )
            )
            s.commit()
    except SQLAlchemyError:
        current_app.logger.exception("verify_email failed")
        return _server_error("Internal server error.")

    return jsonify({"message": "Email verified successfully."})


@bp.post("/login")
def login():
    data = _json_body()
    email = _normalize_email(data.get("email"))
    password = data.get("password") or ""

    if not email:
        return _json_error("Invalid email")
    if not _valid_password(password):
        return _json_error("Invalid password")

    try:
        with Session(engine) as s:
            user = s.scalar(select(User).where(User.email == email))
            if not user:
                return _json_error("User does not exist")
            if not verify_password(user.password, password):
                return _json_error("Invalid email or password")
            user_json = user.to_public_dict()

        session = create_session(user_json["id"])
    except SQLAlchemyError:
        current_app.logger.exception("login failed")
        return _server_error("Internal Server error")

    resp = make_response(jsonify({"message": "Login successful!", "user": user_json}))
    return set_session_cookie(resp, session)


@bp.post("/logout")
@session_required
def logout(session):
    try:
        invalidate_session(session.id)
    except SQLAlchemyError:
        current_app.logger.exception("logout failed")
        return _server_error()
    resp = make_response(jsonify({"message": "Logged out."}))
    return clear_session_cookie(resp)


@bp.get("/me")
@session_required
def me(session):
    try:
        with Session(engine) as s:
            user = s.get(User, session.user_id)
            if not user:
                return _json_error("User does not exist!", 404)
            return jsonify(user.to_public_dict())
    except SQLAlchemyError:
        current_app.logger.exception("me failed")
        return _server_error("Something went wrong!")


@bp.get("/<username>")
@session_optional
def profile(username, session):
    viewer_id = session.user_id if session else None
    try:
        with Session(engine) as s:
            user = s.scalar(select(User).where(User.username == username))
            if not user:
                return _json_error("User does not exist!")

            blogs = s.scalars(
                select(Blog)
                .where(Blog.author_id == user.id)
                .order_by(Blog.date_published.desc())
                .limit(PAGE_SIZE)
                .options(selectinload(Blog.likes))
            ).all()

            return jsonify(
                {
                    "username": user.username,
                    "profilePicture": user.profile_picture,
                    "biography": user.biography,
                    "id": user.id,
                    "blogs": [blog_summary(b, viewer_id, with_author=False) for b in blogs],
                    "isProfileOwner": viewer_id == user.id,
                }
            )
    except SQLAlchemyError:
        current_app.logger.exception("profile failed")
        return _server_error()
