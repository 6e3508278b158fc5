"""
Photography service — gallery images uploaded in batches.

Each file in a batch is uploaded and stored on its own; one bad file does
not sink the others.  Width, height, format and size come straight from
the media service's upload result.  ``is_active`` hides a photo from the
public listing without deleting it.
"""
import asyncio
import logging
import math
from dataclasses import dataclass
from pathlib import PurePath

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from cms_api.config import settings
from cms_api.errors import NotFoundError, ValidationError
from cms_api.media import PHOTOGRAPHY_IMAGES, delete_quietly
from cms_api.models import Photography
from cms_api.schemas import PhotoUpdate, isoformat
from cms_api.services.identifiers import parse_database_id

logger = logging.getLogger(__name__)


@dataclass
class PhotoFile:
    filename: str
    content_type: str | None
    data: bytes


def _photo_to_dict(photo: Photography) -> dict:
    return {
        "id": photo.id,
        "imageUrl": photo.image_url,
        "publicId": photo.public_id,
        "title": photo.title,
        "description": photo.description,
        "tags": list(photo.tags or []),
        "width": photo.width,
        "height": photo.height,
        "format": photo.format,
        "size": photo.size,
        "views": photo.view_count,
        "isActive": photo.is_active,
        "createdAt": isoformat(photo.created_at),
        "updatedAt": isoformat(photo.updated_at),
    }


def _parse_id(photo_id: str) -> int:
    database_id = parse_database_id(photo_id)
    if database_id is None:
        raise ValidationError("Invalid photo ID")
    return database_id


async def _get(db: AsyncSession, photo_id: str) -> Photography:
    photo = await db.get(Photography, _parse_id(photo_id))
    if photo is None:
        raise NotFoundError("Photo not found")
    return photo


# ---------------------------------------------------------------------------
# Upload
# ---------------------------------------------------------------------------

async def upload_photos(db: AsyncSession, media, files: list[PhotoFile]) -> dict:
    """
    Upload every file, store the successful ones, report the rest.

    Remote uploads run concurrently; database rows are added afterwards in
    file order since one session cannot be shared between tasks.
    """
    if not files:
        raise ValidationError("No images provided. Please select at least one image.")
    if len(files) > settings.MAX_PHOTOS_PER_UPLOAD:
        raise ValidationError(f"Maximum {settings.MAX_PHOTOS_PER_UPLOAD} images allowed per upload")

    results = await asyncio.gather(
        *(media.upload_image(f.data, f.content_type, PHOTOGRAPHY_IMAGES) for f in files),
        return_exceptions=True,
    )

    stored: list[Photography] = []
    failed: list[dict] = []
    for file, result in zip(files, results):
        if isinstance(result, BaseException):
            # Cancellation and the like must still propagate.
            if not isinstance(result, Exception):
                raise result
            logger.warning("Upload of %s failed: %s", file.filename, result)
            failed.append({"filename": file.filename, "error": str(result)})
            continue
        photo = Photography(
            image_url=result.url,
            public_id=result.public_id,
            title=PurePath(file.filename).stem or None,
            tags=[],
            width=result.width,
            height=result.height,
            format=result.format,
            size=result.bytes,
        )
        db.add(photo)
        stored.append(photo)

    if stored:
        await db.flush()

    return {
        "stored": [_photo_to_dict(p) for p in stored],
        "failed": failed,
        "summary": {"total": len(files), "successful": len(stored), "failed": len(failed)},
    }


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def get_photos(db: AsyncSession, page: int = 1, limit: int = 20) -> dict:
    active = Photography.is_active.is_(True)
    total: int = (
        await db.execute(select(func.count()).select_from(Photography).where(active))
    ).scalar_one()

    skip = (page - 1) * limit
    q = (
        select(Photography)
        .where(active)
        .order_by(Photography.created_at.desc(), Photography.id.desc())
        .offset(skip)
        .limit(limit)
    )
    photos = (await db.execute(q)).scalars().all()
    return {
        "items": [_photo_to_dict(p) for p in photos],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit),
            "hasMore": skip + len(photos) < total,
        },
    }


async def get_all_photos(db: AsyncSession) -> list[dict]:
    q = select(Photography).order_by(Photography.created_at.desc(), Photography.id.desc())
    return [_photo_to_dict(p) for p in (await db.execute(q)).scalars().all()]


async def get_photo(db: AsyncSession, photo_id: str) -> dict:
    return _photo_to_dict(await _get(db, photo_id))


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

async def increment_views(db: AsyncSession, photo_id: str) -> int:
    database_id = _parse_id(photo_id)
    result = await db.execute(
        update(Photography)
        .where(Photography.id == database_id)
        .values(view_count=Photography.view_count + 1)
        .execution_options(synchronize_session=False)
    )
    if not result.rowcount:
        raise NotFoundError("Photo not found")
    return (
        await db.execute(select(Photography.view_count).where(Photography.id == database_id))
    ).scalar_one()


async def update_photo(db: AsyncSession, photo_id: str, data: PhotoUpdate) -> dict:
    photo = await _get(db, photo_id)
    changes = data.model_dump(exclude_unset=True)

    if changes.get("title") is not None:
        photo.title = changes["title"].strip()
    if changes.get("description") is not None:
        photo.description = changes["description"].strip()
    if changes.get("tags") is not None:
        photo.tags = [t.strip() for t in changes["tags"] if t.strip()]
    if changes.get("is_active") is not None:
        photo.is_active = changes["is_active"]

    await db.flush()
    return _photo_to_dict(photo)


async def delete_photo(db: AsyncSession, media, photo_id: str) -> None:
    photo = await _get(db, photo_id)
    await delete_quietly(media, photo.public_id)
    await db.delete(photo)
    await db.flush()


async def delete_photos(db: AsyncSession, media, ids: list | None) -> int:
    """Batch delete; returns how many rows were removed."""
    if not ids or not isinstance(ids, list):
        raise ValidationError("Please provide an array of photo IDs")

    invalid = [i for i in ids if parse_database_id(str(i)) is None]
    if invalid:
        raise ValidationError(
            "Invalid photo IDs provided",
            errors=[{"field": "ids", "message": f"Invalid photo ID: {i}"} for i in invalid],
        )
    database_ids = [int(str(i)) for i in ids]

    photos = (
        await db.execute(select(Photography).where(Photography.id.in_(database_ids)))
    ).scalars().all()
    if not photos:
        raise NotFoundError("No photos found")

    await asyncio.gather(*(delete_quietly(media, p.public_id) for p in photos))

    result = await db.execute(
        delete(Photography)
        .where(Photography.id.in_(database_ids))
        .execution_options(synchronize_session=False)
    )
    return result.rowcount
