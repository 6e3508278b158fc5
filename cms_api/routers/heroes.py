from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from cms_api.database import get_db
from cms_api.dependencies import get_media_client
from cms_api.media import MediaClient
from cms_api.schemas import envelope
from cms_api.services import hero_service

router = APIRouter(prefix="/api/heroes", tags=["heroes"])


async def _read(upload: UploadFile | None) -> tuple[bytes | None, str | None]:
    if upload is None:
        return None, None
    return await upload.read(), upload.content_type


@router.post("", status_code=201)
async def create_hero(
    title: str | None = Form(None),
    img: UploadFile | None = File(None),
    db: AsyncSession = Depends(get_db),
    media: MediaClient = Depends(get_media_client),
):
    data, content_type = await _read(img)
    hero = await hero_service.create_hero(db, media, title, data, content_type)
    return envelope(hero, "Hero created successfully")


@router.get("")
async def list_heroes(db: AsyncSession = Depends(get_db)):
    heroes = await hero_service.get_heroes(db)
    return envelope(heroes, count=len(heroes))


@router.get("/unique/{sequence_id}")
async def get_hero_by_sequence_id(sequence_id: str, db: AsyncSession = Depends(get_db)):
    return envelope(await hero_service.get_hero_by_sequence_id(db, sequence_id))


@router.get("/{hero_id}")
async def get_hero(hero_id: str, db: AsyncSession = Depends(get_db)):
    return envelope(await hero_service.get_hero(db, hero_id))


@router.put("/{hero_id}")
async def update_hero(
    hero_id: str,
    title: str | None = Form(None),
    img: UploadFile | None = File(None),
    db: AsyncSession = Depends(get_db),
    media: MediaClient = Depends(get_media_client),
):
    data, content_type = await _read(img)
    hero = await hero_service.update_hero(db, media, hero_id, title, data, content_type)
    return envelope(hero, "Hero updated successfully")


@router.delete("/{hero_id}")
async def delete_hero(
    hero_id: str,
    db: AsyncSession = Depends(get_db),
    media: MediaClient = Depends(get_media_client),
):
    await hero_service.delete_hero(db, media, hero_id)
    return envelope({}, "Hero deleted successfully")
