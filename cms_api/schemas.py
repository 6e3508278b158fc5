from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Length rules are checked in the service layer on trimmed values so the
# error messages stay specific; the models here only fix the body shape.


# --- Category ---

class CategoryCreate(BaseModel):
    name: str | None = None


class CategoryUpdate(CategoryCreate):
    pass


# --- Comment ---

class CommentCreate(BaseModel):
    text: str | None = None


# --- Quote ---

class QuoteCreate(BaseModel):
    content: str | None = None
    author: str | None = Field(None, max_length=100)


# --- Photography ---

class PhotoUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str | None = Field(None, max_length=200)
    description: str | None = Field(None, max_length=1000)
    tags: list[str] | None = None
    is_active: bool | None = Field(None, alias="isActive")


class PhotoBatchDelete(BaseModel):
    ids: list[Any] | None = None


# --- Envelope ---

def isoformat(value) -> str | None:
    return value.isoformat() if value else None


def envelope(
    data: Any = None,
    message: str | None = None,
    *,
    count: int | None = None,
    total: int | None = None,
    current_page: int | None = None,
    total_pages: int | None = None,
    **extra: Any,
) -> dict:
    """
    Build the uniform success body::

        {"success": true, "message": ..., "data": ..., "count": ...,
         "total": ..., "currentPage": ..., "totalPages": ...}

    Keys whose value is None are left out.  Resource-specific keys
    (``totalComments``, ``pagination``, ``summary`` ...) go in *extra*.
    """
    body = {
        "success": True,
        "message": message,
        "data": data,
        "count": count,
        "total": total,
        "currentPage": current_page,
        "totalPages": total_pages,
        **extra,
    }
    return {key: value for key, value in body.items() if value is not None}
