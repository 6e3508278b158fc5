from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from cms_api.database import get_db
from cms_api.schemas import CategoryCreate, CategoryUpdate, envelope
from cms_api.services import category_service

router = APIRouter(prefix="/api/categories", tags=["categories"])


@router.get("")
async def list_categories(db: AsyncSession = Depends(get_db)):
    categories = await category_service.get_categories(db)
    return envelope(categories, count=len(categories))


@router.post("", status_code=201)
async def create_category(data: CategoryCreate, db: AsyncSession = Depends(get_db)):
    category = await category_service.create_category(db, data.name)
    return envelope(category, "Category created")


@router.patch("/{category_id}")
async def rename_category(category_id: str, data: CategoryUpdate, db: AsyncSession = Depends(get_db)):
    category = await category_service.rename_category(db, category_id, data.name)
    return envelope(category, "Category updated")


@router.delete("/{category_id}")
async def delete_category(category_id: str, db: AsyncSession = Depends(get_db)):
    category = await category_service.delete_category(db, category_id)
    return envelope(category, "Category deleted")
