from dataclasses import dataclass

from fastapi import Query, Request

from cms_api.config import settings
from cms_api.media import MediaClient


@dataclass
class PaginationParams:
    """
    Parsed ``page`` / ``limit`` query parameters.

    Attributes
    ----------
    page:
        1-based page number (minimum 1).
    limit:
        Page size.  Capped at ``settings.MAX_PAGE_SIZE`` unless the endpoint
        allows "return every match", where ``0`` means no limit and any
        larger value is accepted as is.
    """

    page: int
    limit: int


def pagination(default_limit: int, *, allow_unbounded: bool = False):
    """
    Build a FastAPI dependency that parses pagination for one endpoint.

    Usage in a router::

        @router.get("")
        async def list_quotes(paging: PaginationParams = Depends(pagination(50))):
            ...
    """
    min_limit = 0 if allow_unbounded else 1

    def dependency(
        page: int = Query(1, ge=1, description="Page number (1-based)."),
        limit: int = Query(
            default_limit,
            ge=min_limit,
            le=None if allow_unbounded else settings.MAX_PAGE_SIZE,
            description="Items per page" + (" (0 = all)." if allow_unbounded else "."),
        ),
    ) -> PaginationParams:
        return PaginationParams(page=page, limit=limit)

    return dependency


def get_media_client(request: Request) -> MediaClient:
    """The process-wide media client created in the application lifespan."""
    return request.app.state.media
