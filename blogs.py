# blogs.py
from flask import Blueprint, current_app, jsonify, request
from sqlalchemy import select, insert, update, func, literal, DateTime, String
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from auth import session_required, session_optional
from core.db import engine
from core.helpers import _now, _json_error, _server_error, _json_body, _utf16_len
from core.pagination import (
    InvalidPage,
    parse_page,
    skip_for,
    window_limit,
    count_page,
    window_page,
    PAGE_SIZE,
)
from models import Blog, BlogLike, Comment, User
from serializers import blog_summary, blog_detail, comment_to_json

bp = Blueprint("blogs", __name__, url_prefix="/blogs")

MAX_TITLE_CHARS = 100
MAX_DESCRIPTION_CHARS = 500
MAX_COMMENT_UNITS = 1000


def _page_arg():
    try:
        return parse_page(request.args.get("page")), None
    except InvalidPage:
        return None, _json_error("Invalid page number")


def _page_json(key: str, page, items) -> dict:
    return {key: items, "hasMore": page.has_more, "nextPage": page.next_page}


# --------------------------------------------------------
# Feed
# --------------------------------------------------------
@bp.get("")
@bp.get("/")
@session_optional
def list_blogs(session):
    page_no, err = _page_arg()
    if err:
        return err

    viewer_id = session.user_id if session else None
    try:
        with Session(engine) as s:
            blogs = s.scalars(
                select(Blog)
                .order_by(Blog.date_published.desc())
                .offset(skip_for(page_no))
                .limit(PAGE_SIZE)
                .options(selectinload(Blog.author), selectinload(Blog.likes))
            ).all()
            total = s.scalar(select(func.count()).select_from(Blog))

            page = count_page(blogs, page_no, total)
            items = [blog_summary(b, viewer_id) for b in page.items]
    except SQLAlchemyError:
        current_app.logger.exception("list_blogs failed")
        return _server_error("Something went wrong!")

    return jsonify(_page_json("blogs", page, items))


# --------------------------------------------------------
# Likes
# --------------------------------------------------------
@bp.post("/like/<blog_id>")
@session_required
def like(blog_id, session):
    uid = session.user_id
    # nur einfügen, wenn der Blog existiert und noch kein Like von uid vorliegt
    already = (
        select(BlogLike.id)
        .where(BlogLike.blog_id == blog_id, BlogLike.user_id == uid)
        .correlate(None)
        .exists()
    )
    stmt = insert(BlogLike.__table__).from_select(
        ["blog_id", "user_id", "liked_at"],
        select(Blog.id, literal(uid, String), literal(_now(), DateTime(timezone=True)))
        .where(Blog.id == blog_id)
        .where(~already),
    )
    try:
        with Session(engine) as s:
            try:
                inserted = s.execute(stmt).rowcount
            except IntegrityError:
                # paralleler Like derselben Person
                s.rollback()
                inserted = 0

            if not inserted:
                return _json_error("You have already liked this blog")

            s.commit()
            likes = s.scalar(
                select(func.count()).select_from(BlogLike).where(BlogLike.blog_id == blog_id)
            )
    except SQLAlchemyError:
        current_app.logger.exception("like failed")
        return _server_error("Internal Server Error!")

    return jsonify({"likes": likes})


@bp.get("/likedBy/<blog_id>")
def liked_by(blog_id):
    page_no, err = _page_arg()
    if err:
        return err

    try:
        with Session(engine) as s:
            if s.get(Blog, blog_id) is None:
                return _json_error("Blog not found", 404)

            window = s.scalars(
                select(User)
                .join(BlogLike, BlogLike.user_id == User.id)
                .where(BlogLike.blog_id == blog_id)
                .order_by(BlogLike.id)
                .offset(skip_for(page_no))
                .limit(window_limit())
            ).all()

            page = window_page(window, page_no)
            items = [u.to_summary_dict() for u in page.items]
    except SQLAlchemyError:
        current_app.logger.exception("liked_by failed")
        return _server_error("Internal Server Error")

    return jsonify(_page_json("users", page, items))


# --------------------------------------------------------
# Kommentare
# --------------------------------------------------------
@bp.get("/comments/<blog_id>")
def list_comments(blog_id):
    page_no, err = _page_arg()
    if err:
        return err

    try:
        with Session(engine) as s:
            window = s.scalars(
                select(Comment)
                .where(Comment.blog_id == blog_id)
                .order_by(Comment.date_posted.desc(), Comment.id)
                .offset(skip_for(page_no))
                .limit(window_limit())
                .options(selectinload(Comment.author))
            ).all()

            page = window_page(window, page_no)
            items = [comment_to_json(c) for c in page.items]
    except SQLAlchemyError:
        current_app.logger.exception("list_comments failed")
        return _server_error("Internal Server Error!")

    return jsonify(_page_json("comments", page, items))


@bp.post("/comment/<blog_id>")
@session_required
def add_comment(blog_id, session):
    content = _json_body().get("content")
    if not isinstance(content, str) or not content.strip():
        return _json_error("Comment cannot be empty!")
    if _utf16_len(content) > MAX_COMMENT_UNITS:
        return _json_error("Comment too long!")

    try:
        with Session(engine) as s:
            if s.get(Blog, blog_id) is None:
                return _json_error("Blog not found", 404)
            s.add(
                Comment(
                    content=content,
                    author_id=session.user_id,
                    blog_id=blog_id,
                    date_posted=_now(),
                )
            )
            s.commit()

        # zweiter, eigenständiger Schreibvorgang: nicht transaktional mit dem Insert
        with Session(engine) as s:
            s.execute(
                update(Blog)
                .where(Blog.id == blog_id)
                .values(comment_count=Blog.comment_count + 1)
            )
            s.commit()
            comments = s.scalar(select(Blog.comment_count).where(Blog.id == blog_id))
    except SQLAlchemyError:
        current_app.logger.exception("add_comment failed")
        return _server_error("Internal Server Error!")

    return jsonify({"comments": comments})


# --------------------------------------------------------
# Schreiben
# --------------------------------------------------------
@bp.get("/add")
@session_required
def write_limits(session):
    return jsonify(
        {
            "titleMaxLength": MAX_TITLE_CHARS,
            "descriptionMaxLength": MAX_DESCRIPTION_CHARS,
            "commentMaxLength": MAX_COMMENT_UNITS,
        }
    )


@bp.post("/add")
@session_required
def add_blog(session):
    data = _json_body()
    title = data.get("title")
    content = data.get("content")
    description = data.get("description")
    image = data.get("image") or None

    if not all(isinstance(v, str) and v for v in (title, content, description)):
        return _json_error("Missing required fields!")
    if len(title) > MAX_TITLE_CHARS:
        return _json_error("Title too long!")
    if len(description) > MAX_DESCRIPTION_CHARS:
        return _json_error("Description too long!")
    if image is not None and not isinstance(image, str):
        return _json_error("Invalid image")

    try:
        with Session(engine) as s:
            blog = Blog(
                title=title,
                content=content,
                description=description,
                image=image,
                date_published=_now(),
                author_id=session.user_id,
                comment_count=0,
            )
            s.add(blog)
            s.commit()
            blog_id = blog.id
    except SQLAlchemyError:
        current_app.logger.exception("add_blog failed")
        return _server_error("Internal Server Error!")

    return jsonify({"message": "Blog created successfully!", "id": blog_id})


# --------------------------------------------------------
# Einzelansicht
# --------------------------------------------------------
@bp.get("/<username>/<title>")
@session_optional
def get_blog(username, title, session):
    viewer_id = session.user_id if session else None
    try:
        with Session(engine) as s:
            author = s.scalar(select(User).where(User.username == username))
            if not author:
                return _json_error("User does not exist!")

            # Titel sind pro Autor nicht eindeutig: der neueste gewinnt
            blog = s.scalars(
                select(Blog)
                .where(Blog.author_id == author.id, Blog.title == title)
                .order_by(Blog.date_published.desc())
                .limit(1)
                .options(selectinload(Blog.author), selectinload(Blog.likes))
            ).first()
            if not blog:
                return _json_error("Blog not found", 404)

            return jsonify(blog_detail(blog, viewer_id))
    except SQLAlchemyError:
        current_app.logger.exception("get_blog failed")
        return _server_error("Internal Server Error!")
