"""
Category service — the partition owner for article sequence ids.

The slug is always ``slugify(name)`` of the current name: it is derived on
create and re-derived on rename.  Deleting a category never touches its
articles; they keep their ``category_id`` and read back with a null
category.
"""
import logging

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cms_api.errors import ConflictError, NotFoundError, ValidationError, conflict_from_integrity
from cms_api.models import Category
from cms_api.schemas import isoformat
from cms_api.services.identifiers import parse_database_id
from cms_api.services.slugs import slugify

logger = logging.getLogger(__name__)

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50


def category_to_dict(category: Category | None) -> dict | None:
    if category is None:
        return None
    return {
        "id": category.id,
        "name": category.name,
        "slug": category.slug,
        "createdAt": isoformat(category.created_at),
        "updatedAt": isoformat(category.updated_at),
    }


def _clean_name(name: str | None) -> tuple[str, str]:
    name = (name or "").strip()
    if len(name) < NAME_MIN_LENGTH:
        raise ValidationError(f"Category name is required (min {NAME_MIN_LENGTH} chars)")
    if len(name) > NAME_MAX_LENGTH:
        raise ValidationError(f"Category name must be at most {NAME_MAX_LENGTH} chars")
    slug = slugify(name)
    if not slug:
        raise ValidationError("Category name must contain letters or digits")
    return name, slug


async def _ensure_unique(db: AsyncSession, name: str, slug: str, exclude_id: int | None = None) -> None:
    q = select(Category.id).where(or_(Category.name == name, Category.slug == slug))
    if exclude_id is not None:
        q = q.where(Category.id != exclude_id)
    if (await db.execute(q.limit(1))).first() is not None:
        raise ConflictError("Category already exists")


async def _get(db: AsyncSession, category_id: str) -> Category:
    database_id = parse_database_id(category_id)
    if database_id is None:
        raise ValidationError("Invalid category ID")
    category = await db.get(Category, database_id)
    if category is None:
        raise NotFoundError("Category not found")
    return category


async def get_categories(db: AsyncSession) -> list[dict]:
    q = select(Category).order_by(Category.created_at.desc(), Category.id.desc())
    result = await db.execute(q)
    return [category_to_dict(c) for c in result.scalars().all()]


async def get_category_by_slug(db: AsyncSession, slug: str) -> Category | None:
    result = await db.execute(select(Category).where(Category.slug == slug))
    return result.scalar_one_or_none()


async def create_category(db: AsyncSession, name: str | None) -> dict:
    name, slug = _clean_name(name)
    await _ensure_unique(db, name, slug)

    category = Category(name=name, slug=slug)
    db.add(category)
    try:
        await db.flush()
    except IntegrityError as exc:
        raise conflict_from_integrity(exc, "Category already exists") from exc

    logger.info("Created category %s (%s)", category.id, category.slug)
    return category_to_dict(category)


async def rename_category(db: AsyncSession, category_id: str, name: str | None) -> dict:
    category = await _get(db, category_id)
    name, slug = _clean_name(name)
    await _ensure_unique(db, name, slug, exclude_id=category.id)

    category.name = name
    category.slug = slug
    try:
        await db.flush()
    except IntegrityError as exc:
        raise conflict_from_integrity(exc, "Category already exists") from exc
    return category_to_dict(category)


async def delete_category(db: AsyncSession, category_id: str) -> dict:
    category = await _get(db, category_id)
    data = category_to_dict(category)
    await db.delete(category)
    await db.flush()
    logger.info("Deleted category %s; its articles are left in place", category.id)
    return data
