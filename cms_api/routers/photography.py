from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from cms_api.config import settings
from cms_api.database import get_db
from cms_api.dependencies import PaginationParams, get_media_client, pagination
from cms_api.errors import error_body
from cms_api.media import MediaClient
from cms_api.schemas import PhotoBatchDelete, PhotoUpdate, envelope
from cms_api.services import photography_service
from cms_api.services.photography_service import PhotoFile

router = APIRouter(prefix="/api/photography", tags=["photography"])


@router.post("", status_code=201)
async def upload_photos(
    images: list[UploadFile] | None = File(None),
    db: AsyncSession = Depends(get_db),
    media: MediaClient = Depends(get_media_client),
):
    files = [
        PhotoFile(filename=f.filename or "", content_type=f.content_type, data=await f.read())
        for f in images or []
    ]
    result = await photography_service.upload_photos(db, media, files)

    if not result["stored"]:
        body = error_body("All uploads failed")
        body["failed"] = result["failed"]
        return JSONResponse(status_code=500, content=body)

    return envelope(
        result["stored"],
        f"Successfully uploaded {len(result['stored'])} photo(s)",
        failed=result["failed"] or None,
        summary=result["summary"],
    )


@router.get("")
async def list_photos(
    paging: PaginationParams = Depends(pagination(settings.DEFAULT_PAGE_SIZE)),
    db: AsyncSession = Depends(get_db),
):
    result = await photography_service.get_photos(db, paging.page, paging.limit)
    return envelope(result["items"], pagination=result["pagination"])


# Static paths before /{photo_id}.
@router.get("/admin")
async def list_photos_admin(db: AsyncSession = Depends(get_db)):
    photos = await photography_service.get_all_photos(db)
    return envelope(photos, total=len(photos))


@router.post("/batch/delete")
async def delete_photos(
    data: PhotoBatchDelete,
    db: AsyncSession = Depends(get_db),
    media: MediaClient = Depends(get_media_client),
):
    deleted = await photography_service.delete_photos(db, media, data.ids)
    return envelope(message=f"Successfully deleted {deleted} photo(s)", deletedCount=deleted)


@router.get("/{photo_id}")
async def get_photo(photo_id: str, db: AsyncSession = Depends(get_db)):
    return envelope(await photography_service.get_photo(db, photo_id))


@router.post("/{photo_id}/view")
async def increment_view(photo_id: str, db: AsyncSession = Depends(get_db)):
    views = await photography_service.increment_views(db, photo_id)
    return envelope({"views": views}, "View count incremented")


@router.patch("/{photo_id}")
async def update_photo(photo_id: str, data: PhotoUpdate, db: AsyncSession = Depends(get_db)):
    photo = await photography_service.update_photo(db, photo_id, data)
    return envelope(photo, "Photo updated successfully")


@router.delete("/{photo_id}")
async def delete_photo(
    photo_id: str,
    db: AsyncSession = Depends(get_db),
    media: MediaClient = Depends(get_media_client),
):
    await photography_service.delete_photo(db, media, photo_id)
    return envelope(message="Photo deleted successfully")
