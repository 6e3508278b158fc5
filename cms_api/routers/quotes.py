from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from cms_api.config import settings
from cms_api.database import get_db
from cms_api.dependencies import PaginationParams, pagination
from cms_api.schemas import QuoteCreate, envelope
from cms_api.services import quote_service

router = APIRouter(prefix="/api/quotes", tags=["quotes"])


@router.post("", status_code=201)
async def create_quote(data: QuoteCreate, db: AsyncSession = Depends(get_db)):
    quote = await quote_service.create_quote(db, data.content, data.author)
    return envelope(quote, "Quote added successfully")


@router.get("")
async def list_quotes(
    paging: PaginationParams = Depends(pagination(settings.QUOTE_PAGE_SIZE)),
    db: AsyncSession = Depends(get_db),
):
    result = await quote_service.get_quotes(db, paging.page, paging.limit)
    return envelope(
        result["items"],
        count=len(result["items"]),
        total=result["total"],
        current_page=result["page"],
        total_pages=result["pages"],
    )


# Must be declared before /{identifier}.
@router.get("/random")
async def random_quote(db: AsyncSession = Depends(get_db)):
    return envelope(await quote_service.get_random_quote(db))


@router.get("/{identifier}")
async def get_quote(identifier: str, db: AsyncSession = Depends(get_db)):
    return envelope(await quote_service.get_quote(db, identifier))


@router.delete("/{identifier}")
async def delete_quote(identifier: str, db: AsyncSession = Depends(get_db)):
    await quote_service.delete_quote(db, identifier)
    return envelope(message="Quote deleted successfully")
