from core.helpers import _from_db_as_iso_utc
from models import Blog, Comment


def blog_summary(b: Blog, viewer_id: str | None = None, with_author: bool = True) -> dict:
    data = {
        "id": b.id,
        "title": b.title,
        "description": b.description,
        "datePublished": _from_db_as_iso_utc(b.date_published),
        "likes": len(b.likes),
        "image": b.image,
        "hasLiked": b.liked_by(viewer_id),
    }
    if with_author:
        data["author"] = b.author.to_author_dict()
    return data


def blog_detail(b: Blog, viewer_id: str | None = None) -> dict:
    data = blog_summary(b, viewer_id)
    data["content"] = b.content
    data["comments"] = b.comment_count
    return data


def comment_to_json(c: Comment) -> dict:
    return {
        "id": c.id,
        "content": c.content,
        "author": c.author.to_author_dict(),
        "datePosted": _from_db_as_iso_utc(c.date_posted),
    }
