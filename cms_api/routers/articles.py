from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from cms_api.database import get_db
from cms_api.dependencies import PaginationParams, get_media_client, pagination
from cms_api.media import MediaClient
from cms_api.schemas import CommentCreate, envelope
from cms_api.services import article_service, comment_service

router = APIRouter(prefix="/api/articles", tags=["articles"])


@router.post("", status_code=201)
async def create_article(
    title: str | None = Form(None),
    description: str | None = Form(None),
    categoryId: str | None = Form(None),
    author: str | None = Form(None),
    img: UploadFile | None = File(None),
    db: AsyncSession = Depends(get_db),
    media: MediaClient = Depends(get_media_client),
):
    image_data = await img.read() if img is not None else None
    article = await article_service.create_article(
        db,
        media,
        title=title,
        description=description,
        category_id=categoryId,
        author=author,
        image_data=image_data,
        image_type=img.content_type if img is not None else None,
    )
    return envelope(article, "Article created")


@router.get("")
async def list_articles(
    paging: PaginationParams = Depends(pagination(0, allow_unbounded=True)),
    search: str | None = Query(None),
    category: str | None = Query(None),
    categorySlug: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    result = await article_service.get_articles(
        db,
        page=paging.page,
        limit=paging.limit,
        search=search,
        category=category,
        category_slug=categorySlug,
    )
    return envelope(
        result["items"],
        count=len(result["items"]),
        total=result["total"],
        current_page=result["page"],
        total_pages=result["pages"],
    )


# Sub-resource routes are declared before the bare ``/{identifier}`` routes.

@router.post("/{identifier}/view")
async def increment_view(identifier: str, db: AsyncSession = Depends(get_db)):
    views = await article_service.increment_views(db, identifier)
    return envelope({"views": views}, "View count updated")


@router.get("/{identifier}/comments")
async def list_comments(identifier: str, db: AsyncSession = Depends(get_db)):
    comments = await comment_service.get_comments(db, identifier)
    return envelope(comments, count=len(comments))


@router.post("/{identifier}/comments", status_code=201)
async def add_comment(identifier: str, data: CommentCreate, db: AsyncSession = Depends(get_db)):
    comment, total = await comment_service.add_comment(db, identifier, data.text)
    return envelope(comment, "Comment added successfully", totalComments=total)


@router.get("/{identifier}")
async def get_article(identifier: str, db: AsyncSession = Depends(get_db)):
    return envelope(await article_service.get_article(db, identifier))


@router.delete("/{identifier}")
async def delete_article(
    identifier: str,
    db: AsyncSession = Depends(get_db),
    media: MediaClient = Depends(get_media_client),
):
    article = await article_service.delete_article(db, media, identifier)
    return envelope(article, "Article deleted")
