"""
Article service — business logic for the Article aggregate.

Design notes
------------
- Articles are addressable three ways (database id, sequence id such as
  ``technology-3``, slug); write paths resolve through
  ``identifiers.resolve_identifier``.
- The comment count is computed at read time: a grouped sub-query over
  ``comments`` is outer-joined onto the page of articles, so the count
  can never drift from the real rows.  The owning category is outer-joined
  too and inlined as an object, or ``None`` once the category is gone.
- ``sequence_id`` is ``<category slug>-<n>``, reserved per category from
  ``sequence.next_sequence_id``; ``slug`` falls back to it when the title
  has nothing slug-able.  Both are immutable and there is no update path.
- Service functions flush but do not commit; the transaction boundary is
  owned by the ``get_db`` dependency in the router layer.
"""
import logging
import math

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cms_api.errors import NotFoundError, ValidationError, conflict_from_integrity
from cms_api.media import ARTICLE_IMAGES, UploadedImage, delete_quietly
from cms_api.models import Article, Category, Comment
from cms_api.schemas import isoformat
from cms_api.services.category_service import category_to_dict, get_category_by_slug
from cms_api.services.identifiers import parse_database_id, resolve_identifier
from cms_api.services.sequence import next_sequence_id
from cms_api.services.slugs import derive_slug

logger = logging.getLogger(__name__)

TITLE_MIN_LENGTH = 5
DESCRIPTION_MIN_LENGTH = 20


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _article_to_dict(article: Article, comment_count: int, category: Category | None) -> dict:
    return {
        "id": article.id,
        "title": article.title,
        "description": article.description,
        "slug": article.slug,
        "sequenceId": article.sequence_id,
        "imageUrl": article.image_url,
        "author": article.author,
        "views": article.view_count,
        "comments": comment_count,
        "category": category_to_dict(category),
        "createdAt": isoformat(article.created_at),
        "updatedAt": isoformat(article.updated_at),
    }


# ---------------------------------------------------------------------------
# Query composition
# ---------------------------------------------------------------------------

def _aggregate_query():
    """
    ``SELECT article, comment_count, category`` with both joins applied.

    Callers add their own WHERE / ORDER BY / LIMIT.
    """
    counts = (
        select(Comment.article_id, func.count(Comment.id).label("comment_count"))
        .group_by(Comment.article_id)
        .subquery()
    )
    return (
        select(Article, func.coalesce(counts.c.comment_count, 0), Category)
        .outerjoin(counts, counts.c.article_id == Article.id)
        .outerjoin(Category, Category.id == Article.category_id)
    )


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


async def _build_filters(
    db: AsyncSession,
    category: str | None,
    category_slug: str | None,
    search: str | None,
) -> list:
    filters = []
    if category:
        category_id = parse_database_id(category)
        if category_id is None:
            raise ValidationError("Invalid category ID")
        filters.append(Article.category_id == category_id)
    elif category_slug:
        found = await get_category_by_slug(db, category_slug)
        if found is None:
            raise NotFoundError(f'Category "{category_slug}" not found')
        filters.append(Article.category_id == found.id)

    if search and search.strip():
        pattern = f"%{_escape_like(search.strip().lower())}%"
        filters.append(func.lower(Article.title).like(pattern, escape="\\"))
    return filters


# ---------------------------------------------------------------------------
# Read side
# ---------------------------------------------------------------------------

async def get_articles(
    db: AsyncSession,
    page: int = 1,
    limit: int = 0,
    search: str | None = None,
    category: str | None = None,
    category_slug: str | None = None,
) -> dict:
    """
    Return one page of articles, newest first, plus paging totals.

    ``limit == 0`` means "everything that matches": no OFFSET/LIMIT is
    applied and ``totalPages`` is 1.  Two statements are issued: the
    COUNT over the filter and the joined page query.
    """
    filters = await _build_filters(db, category, category_slug, search)

    count_q = select(func.count()).select_from(Article).where(*filters)
    total: int = (await db.execute(count_q)).scalar_one()

    q = (
        _aggregate_query()
        .where(*filters)
        .order_by(Article.created_at.desc(), Article.id.desc())
    )
    if limit > 0:
        q = q.offset((page - 1) * limit).limit(limit)

    rows = (await db.execute(q)).all()
    items = [_article_to_dict(a, n, c) for a, n, c in rows]

    return {
        "items": items,
        "total": total,
        "page": page,
        "pages": math.ceil(total / limit) if limit > 0 else 1,
    }


async def get_article(db: AsyncSession, identifier: str) -> dict:
    """
    Detail view.  A syntactically valid database id is matched by id first;
    anything else, or a digit string with no such id, matches
    ``sequence_id = identifier OR slug = identifier``.
    """
    row = None
    database_id = parse_database_id(identifier)
    if database_id is not None:
        q = _aggregate_query().where(Article.id == database_id).limit(1)
        row = (await db.execute(q)).first()
    if row is None:
        q = _aggregate_query().where(
            or_(Article.sequence_id == identifier, Article.slug == identifier)
        ).limit(1)
        row = (await db.execute(q)).first()
    if row is None:
        raise NotFoundError("Article not found")
    article, comment_count, category = row
    return _article_to_dict(article, comment_count, category)


async def find_article(db: AsyncSession, identifier: str, *, columns: tuple = ()):
    """Resolve *identifier* (id, sequence id or slug) or raise NotFoundError."""
    article = await resolve_identifier(db, Article, identifier, columns=columns)
    if article is None:
        raise NotFoundError("Article not found")
    return article


# ---------------------------------------------------------------------------
# Write side
# ---------------------------------------------------------------------------

def validate_article_input(
    title: str | None,
    description: str | None,
    category_id: str | None,
    has_image: bool,
) -> tuple[str, str, int]:
    """Eager field checks; returns the trimmed title/description and the category id."""
    title = (title or "").strip()
    description = (description or "").strip()
    if not title or not description or not category_id or not has_image:
        raise ValidationError("Title, description, categoryId, and image are required")

    database_id = parse_database_id(category_id.strip())
    if database_id is None:
        raise ValidationError("Invalid category ID")
    if len(title) < TITLE_MIN_LENGTH:
        raise ValidationError(f"Title min {TITLE_MIN_LENGTH} characters")
    if len(description) < DESCRIPTION_MIN_LENGTH:
        raise ValidationError(f"Description min {DESCRIPTION_MIN_LENGTH} characters")
    return title, description, database_id


async def create_article(
    db: AsyncSession,
    media,
    *,
    title: str | None,
    description: str | None,
    category_id: str | None,
    author: str | None,
    image_data: bytes | None,
    image_type: str | None,
) -> dict:
    """
    Create an article and return it with its category inlined.

    Order: field validation, category lookup, image pipeline, sequence id,
    slug, insert.  Nothing is written if validation or the upload fails.
    If the insert hits a uniqueness constraint the uploaded image is
    removed again and a ConflictError is raised.
    """
    title, description, database_id = validate_article_input(
        title, description, category_id, bool(image_data)
    )

    category = await db.get(Category, database_id)
    if category is None:
        raise NotFoundError("Category not found")

    image: UploadedImage = await media.upload_image(image_data, image_type, ARTICLE_IMAGES)

    try:
        sequence_id = await next_sequence_id(db, category.slug, Article.sequence_id)
        article = Article(
            title=title,
            description=description,
            slug=derive_slug(title, sequence_id),
            sequence_id=sequence_id,
            author=(author or "").strip(),
            category_id=category.id,
            image_url=image.url,
            image_public_id=image.public_id,
        )
        db.add(article)
        await db.flush()
    except IntegrityError as exc:
        await delete_quietly(media, image.public_id)
        raise conflict_from_integrity(exc) from exc
    except Exception:
        await delete_quietly(media, image.public_id)
        raise

    logger.info("Created article %s (%s) in %s", article.id, article.sequence_id, category.slug)
    return _article_to_dict(article, 0, category)


async def increment_views(db: AsyncSession, identifier: str) -> int:
    """Atomically add one view and return the new counter value."""
    row = await find_article(db, identifier, columns=(Article.id,))
    await db.execute(
        update(Article)
        .where(Article.id == row.id)
        .values(view_count=Article.view_count + 1)
        .execution_options(synchronize_session=False)
    )
    views = (
        await db.execute(select(Article.view_count).where(Article.id == row.id))
    ).scalar_one()
    return views


async def delete_article(db: AsyncSession, media, identifier: str) -> dict:
    """
    Delete the article, then its comments, then its remote image.

    The two deletes are separate statements in that order; the remote
    image removal is best-effort and never fails the request.
    """
    article = await find_article(db, identifier)
    data = await get_article(db, str(article.id))

    await db.execute(
        delete(Article).where(Article.id == article.id).execution_options(synchronize_session=False)
    )
    result = await db.execute(
        delete(Comment).where(Comment.article_id == article.id).execution_options(synchronize_session=False)
    )
    logger.info("Deleted article %s and %d comment(s)", article.id, result.rowcount)

    await delete_quietly(media, article.image_public_id)
    return data
