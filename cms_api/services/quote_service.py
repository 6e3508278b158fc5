"""
Quote service.

Quotes are soft-deleted: ``delete_quote`` flips ``is_visible`` and every
read path filters on it, but the row stays.  Their ``quote-<n>`` ids
are seeded from the most recently *created* quote rather than the numeric
maximum (see ``sequence.SEED_LATEST``).
"""
import logging
import math

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cms_api.errors import NotFoundError, ValidationError, conflict_from_integrity
from cms_api.models import Quote
from cms_api.schemas import isoformat
from cms_api.services.identifiers import parse_database_id
from cms_api.services.sequence import SEED_LATEST, next_sequence_id

logger = logging.getLogger(__name__)

QUOTE_PARTITION = "quote"
CONTENT_MIN_LENGTH = 10
CONTENT_MAX_LENGTH = 600


def _quote_to_dict(quote: Quote) -> dict:
    return {
        "id": quote.id,
        "sequenceId": quote.sequence_id,
        "content": quote.content,
        "author": quote.author,
        "isVisible": quote.is_visible,
        "createdAt": isoformat(quote.created_at),
        "updatedAt": isoformat(quote.updated_at),
    }


async def _find(db: AsyncSession, identifier: str, *, visible_only: bool) -> Quote | None:
    """Look up by sequence id first, then by database id."""
    q = select(Quote).where(Quote.sequence_id == identifier)
    if visible_only:
        q = q.where(Quote.is_visible.is_(True))
    quote = (await db.execute(q)).scalar_one_or_none()
    if quote is not None:
        return quote

    database_id = parse_database_id(identifier)
    if database_id is None:
        return None
    q = select(Quote).where(Quote.id == database_id)
    if visible_only:
        q = q.where(Quote.is_visible.is_(True))
    return (await db.execute(q)).scalar_one_or_none()


async def create_quote(db: AsyncSession, content: str | None, author: str | None) -> dict:
    content = (content or "").strip()
    if not content:
        raise ValidationError("Quote content is required")
    if len(content) < CONTENT_MIN_LENGTH:
        raise ValidationError(f"Quote must be at least {CONTENT_MIN_LENGTH} characters")
    if len(content) > CONTENT_MAX_LENGTH:
        raise ValidationError(f"Quote must not exceed {CONTENT_MAX_LENGTH} characters")

    try:
        sequence_id = await next_sequence_id(
            db,
            QUOTE_PARTITION,
            Quote.sequence_id,
            seed=SEED_LATEST,
            created_at_column=Quote.created_at,
        )
        quote = Quote(
            content=content,
            author=(author or "").strip() or "Anonymous",
            sequence_id=sequence_id,
        )
        db.add(quote)
        await db.flush()
    except IntegrityError as exc:
        raise conflict_from_integrity(exc, "Duplicate quote ID, try again") from exc

    logger.info("Created quote %s", quote.sequence_id)
    return _quote_to_dict(quote)


async def get_quotes(db: AsyncSession, page: int = 1, limit: int = 50) -> dict:
    visible = Quote.is_visible.is_(True)
    total: int = (
        await db.execute(select(func.count()).select_from(Quote).where(visible))
    ).scalar_one()

    q = (
        select(Quote)
        .where(visible)
        .order_by(Quote.created_at.desc(), Quote.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    quotes = (await db.execute(q)).scalars().all()
    return {
        "items": [_quote_to_dict(quote) for quote in quotes],
        "total": total,
        "page": page,
        "pages": math.ceil(total / limit),
    }


async def get_random_quote(db: AsyncSession) -> dict:
    q = select(Quote).where(Quote.is_visible.is_(True)).order_by(func.random()).limit(1)
    quote = (await db.execute(q)).scalar_one_or_none()
    if quote is None:
        raise NotFoundError("No quotes available")
    return _quote_to_dict(quote)


async def get_quote(db: AsyncSession, identifier: str) -> dict:
    quote = await _find(db, identifier, visible_only=True)
    if quote is None:
        raise NotFoundError("Quote not found")
    return _quote_to_dict(quote)


async def delete_quote(db: AsyncSession, identifier: str) -> None:
    """Soft delete: hide the quote, keep the row."""
    quote = await _find(db, identifier, visible_only=False)
    if quote is None:
        raise NotFoundError("Quote not found")
    quote.is_visible = False
    await db.flush()
