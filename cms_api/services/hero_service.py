"""
Hero banner service.

Heroes carry a ``hero-<n>`` sequence id and a remote image.  Remote
deletions (on delete, or when an update replaces the image) are
best-effort: a failure is logged and the database change still happens.
"""
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cms_api.errors import NotFoundError, ValidationError, conflict_from_integrity
from cms_api.media import HERO_IMAGES, delete_quietly
from cms_api.models import Hero
from cms_api.schemas import isoformat
from cms_api.services.identifiers import parse_database_id
from cms_api.services.sequence import next_sequence_id

logger = logging.getLogger(__name__)

HERO_PARTITION = "hero"


def _hero_to_dict(hero: Hero) -> dict:
    return {
        "id": hero.id,
        "title": hero.title,
        "sequenceId": hero.sequence_id,
        "imageUrl": hero.image_url,
        "imagePublicId": hero.image_public_id,
        "createdAt": isoformat(hero.created_at),
        "updatedAt": isoformat(hero.updated_at),
    }


async def _get(db: AsyncSession, hero_id: str) -> Hero:
    database_id = parse_database_id(hero_id)
    hero = await db.get(Hero, database_id) if database_id is not None else None
    if hero is None:
        raise NotFoundError("Hero not found")
    return hero


async def create_hero(
    db: AsyncSession,
    media,
    title: str | None,
    image_data: bytes | None,
    image_type: str | None,
) -> dict:
    title = (title or "").strip()
    if not title:
        raise ValidationError("Title is required")
    if not image_data:
        raise ValidationError("Image file is required")

    image = await media.upload_image(image_data, image_type, HERO_IMAGES)

    try:
        sequence_id = await next_sequence_id(db, HERO_PARTITION, Hero.sequence_id)
        hero = Hero(
            title=title,
            sequence_id=sequence_id,
            image_url=image.url,
            image_public_id=image.public_id,
        )
        db.add(hero)
        await db.flush()
    except IntegrityError as exc:
        await delete_quietly(media, image.public_id)
        raise conflict_from_integrity(exc, "A hero with this uniqueID already exists") from exc
    except Exception:
        await delete_quietly(media, image.public_id)
        raise

    logger.info("Created hero %s", hero.sequence_id)
    return _hero_to_dict(hero)


async def get_heroes(db: AsyncSession) -> list[dict]:
    q = select(Hero).order_by(Hero.created_at.desc(), Hero.id.desc())
    return [_hero_to_dict(h) for h in (await db.execute(q)).scalars().all()]


async def get_hero(db: AsyncSession, hero_id: str) -> dict:
    return _hero_to_dict(await _get(db, hero_id))


async def get_hero_by_sequence_id(db: AsyncSession, sequence_id: str) -> dict:
    q = select(Hero).where(Hero.sequence_id == sequence_id)
    hero = (await db.execute(q)).scalar_one_or_none()
    if hero is None:
        raise NotFoundError(f'Hero with uniqueID "{sequence_id}" not found')
    return _hero_to_dict(hero)


async def update_hero(
    db: AsyncSession,
    media,
    hero_id: str,
    title: str | None,
    image_data: bytes | None,
    image_type: str | None,
) -> dict:
    """
    Change the title and/or swap the image.

    The replacement is uploaded and validated first; the old remote image
    is removed only once the row points at the new one.
    """
    hero = await _get(db, hero_id)

    if title is not None and title.strip():
        hero.title = title.strip()

    old_public_id = None
    if image_data:
        image = await media.upload_image(image_data, image_type, HERO_IMAGES)
        old_public_id = hero.image_public_id
        hero.image_url = image.url
        hero.image_public_id = image.public_id

    try:
        await db.flush()
    except Exception:
        if old_public_id is not None:
            await delete_quietly(media, hero.image_public_id)
        raise

    if old_public_id is not None:
        await delete_quietly(media, old_public_id)
    return _hero_to_dict(hero)


async def delete_hero(db: AsyncSession, media, hero_id: str) -> None:
    hero = await _get(db, hero_id)
    await delete_quietly(media, hero.image_public_id)
    await db.delete(hero)
    await db.flush()
    logger.info("Deleted hero %s", hero.sequence_id)
