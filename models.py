from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import (
    Text,
    String,
    Integer,
    Boolean,
    DateTime,
    ForeignKey,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid4())


class Base(DeclarativeBase):
    """Basis aller SQLAlchemy-Modelle."""
    pass


# ------------------------------------------------------------
# User
# ------------------------------------------------------------
class User(Base):
    """Konto eines Autors / Lesers."""
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    username: Mapped[str] = mapped_column(String(100), index=True, nullable=False)
    password: Mapped[str] = mapped_column(Text, nullable=False)
    profile_picture: Mapped[str] = mapped_column(Text, nullable=False)
    biography: Mapped[str] = mapped_column(
        Text, nullable=False, default="This user has no biography"
    )
    verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
    )

    blogs: Mapped[list["Blog"]] = relationship(
        "Blog",
        back_populates="author",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def to_public_dict(self) -> dict:
        """Eigene Sicht (/users/me, Login) ohne Passworthash."""
        return {
            "username": self.username,
            "email": self.email,
            "profilePicture": self.profile_picture,
            "biography": self.biography,
            "id": self.id,
        }

    def to_author_dict(self) -> dict:
        return {
            "username": self.username,
            "profilePicture": self.profile_picture,
        }

    def to_summary_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "profilePicture": self.profile_picture,
        }


# ------------------------------------------------------------
# ValidationCode (OTP für die E-Mail-Bestätigung)
# ------------------------------------------------------------
class ValidationCode(Base):
    __tablename__ = "validation_codes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    code: Mapped[int] = mapped_column(Integer, nullable=False)
    expiration: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


# ------------------------------------------------------------
# UserSession (Cookie-Session)
# ------------------------------------------------------------
class UserSession(Base):
    __tablename__ = "user_sessions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


# ------------------------------------------------------------
# Blog
# ------------------------------------------------------------
class Blog(Base):
    __tablename__ = "blogs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    image: Mapped[str | None] = mapped_column(Text)
    date_published: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        index=True,
        nullable=False,
    )

    author_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )

    # Länge der Kommentarliste; wird nach dem Anlegen eines Kommentars separat erhöht
    comment_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    author: Mapped["User"] = relationship("User", back_populates="blogs")
    likes: Mapped[list["BlogLike"]] = relationship(
        "BlogLike",
        order_by="BlogLike.id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def liked_by(self, user_id: str | None) -> bool:
        if not user_id:
            return False
        return any(like.user_id == user_id for like in self.likes)

    def __repr__(self):
        return f"<Blog {self.title}>"


# ------------------------------------------------------------
# BlogLike (Like-Menge eines Blogs, Reihenfolge = Einfügereihenfolge)
# ------------------------------------------------------------
class BlogLike(Base):
    __tablename__ = "blog_likes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    blog_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("blogs.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    liked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("blog_id", "user_id", name="uq_blog_likes_blog_user"),
    )


# ------------------------------------------------------------
# Comment
# ------------------------------------------------------------
class Comment(Base):
    __tablename__ = "comments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    author_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    # kein FK: der Kommentar wird vor dem Anhängen an den Blog geschrieben
    blog_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    date_posted: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        index=True,
        nullable=False,
    )

    author: Mapped["User"] = relationship("User")
