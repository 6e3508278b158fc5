"""
Comment service — anonymous, append-only comments on an article.

There is no identity system, so every comment is authored by
``ANONYMOUS``.  Comments cannot be edited; they disappear only when the
owning article is deleted.
"""
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cms_api.errors import ValidationError
from cms_api.models import Article, Comment
from cms_api.schemas import isoformat
from cms_api.services.article_service import find_article

ANONYMOUS = "Anonymous"
TEXT_MAX_LENGTH = 1000


def _comment_to_dict(comment: Comment) -> dict:
    return {
        "id": comment.id,
        "articleId": comment.article_id,
        "text": comment.text,
        "author": comment.author,
        "createdAt": isoformat(comment.created_at),
    }


async def comments_for_article(db: AsyncSession, article_id: int) -> list[dict]:
    """Comments attached to *article_id*, newest first (empty when there are none)."""
    q = (
        select(Comment)
        .where(Comment.article_id == article_id)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
    )
    result = await db.execute(q)
    return [_comment_to_dict(c) for c in result.scalars().all()]


async def count_comments(db: AsyncSession, article_id: int) -> int:
    q = select(func.count()).select_from(Comment).where(Comment.article_id == article_id)
    return (await db.execute(q)).scalar_one()


async def get_comments(db: AsyncSession, identifier: str) -> list[dict]:
    row = await find_article(db, identifier, columns=(Article.id,))
    return await comments_for_article(db, row.id)


async def add_comment(db: AsyncSession, identifier: str, text: str | None) -> tuple[dict, int]:
    """
    Attach a comment to the article addressed by *identifier*.

    Returns the serialised comment and the article's new comment total.
    """
    text = (text or "").strip()
    if not text:
        raise ValidationError("Comment text is required")
    if len(text) > TEXT_MAX_LENGTH:
        raise ValidationError(f"Comment must be less than {TEXT_MAX_LENGTH} characters")

    row = await find_article(db, identifier, columns=(Article.id,))

    comment = Comment(article_id=row.id, text=text, author=ANONYMOUS)
    db.add(comment)
    await db.flush()

    return _comment_to_dict(comment), await count_comments(db, row.id)
