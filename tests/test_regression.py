"""
Regression tests for issues found during code review.

1. Unique constraint violations, including a lost sequence-seeding race,
   must return 409 (not 500)
2. Error bodies keep one shape and only leak internals in development
3. X-Query-Count header must report the actual query count
4. CORS must not set allow_credentials=true with allow_origins=*
"""
import pytest
from httpx import AsyncClient
from sqlalchemy import insert

from cms_api.config import Settings, settings
from cms_api.models import SequenceCounter
from cms_api.services import sequence

IMAGE = ("cover.jpg", b"\xff\xd8\xff\xe0fake-jpeg-bytes", "image/jpeg")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def _create_category(client: AsyncClient, name: str) -> int:
    resp = await client.post("/api/categories", json={"name": name})
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]["id"]


async def _post_article(client: AsyncClient, category_id: int, title: str):
    return await client.post(
        "/api/articles",
        data={
            "title": title,
            "description": "Description comfortably above the minimum.",
            "categoryId": str(category_id),
        },
        files={"img": IMAGE},
    )


# ---------------------------------------------------------------------------
# 1. Unique constraint violations -> 409
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_same_title_in_two_categories_returns_409(async_client: AsyncClient, media):
    """Two articles deriving the same slug: the second is a 409 and leaves no trace."""
    tech = await _create_category(async_client, "Technology")
    sport = await _create_category(async_client, "Sport")

    first = await _post_article(async_client, tech, "Shared headline")
    assert first.status_code == 201

    second = await _post_article(async_client, sport, "Shared headline")
    assert second.status_code == 409
    body = second.json()
    assert body["success"] is False
    assert body["message"] == "Slug already exists"
    assert body["errors"] == [{"field": "slug", "message": "Slug already exists"}]

    # The image uploaded for the rejected article is removed again.
    assert media.deleted == ["articles/img2"]
    listing = await async_client.get("/api/articles")
    assert listing.json()["total"] == 1


@pytest.mark.asyncio
async def test_rejected_article_does_not_consume_sequence_number(async_client: AsyncClient):
    tech = await _create_category(async_client, "Technology")
    await _post_article(async_client, tech, "Shared headline")
    assert (await _post_article(async_client, tech, "Shared headline")).status_code == 409

    third = await _post_article(async_client, tech, "A different headline")
    assert third.json()["data"]["sequenceId"] == "technology-2"


@pytest.mark.asyncio
async def test_concurrent_sequence_seed_returns_409(async_client: AsyncClient, media, monkeypatch):
    """Losing the race to create a partition's counter row is a clean 409."""
    tech = await _create_category(async_client, "Technology")

    async def seeded_by_another_request(db, partition, column):
        await db.execute(insert(SequenceCounter).values(partition=partition, value=1))
        return 0

    monkeypatch.setattr(sequence, "_seed_from_max", seeded_by_another_request)
    resp = await _post_article(async_client, tech, "Racing headline")
    assert resp.status_code == 409
    body = resp.json()
    assert body["success"] is False
    assert "try again" in body["message"]
    assert media.deleted == ["articles/img1"]
    listing = await async_client.get("/api/articles")
    assert listing.json()["total"] == 0

    monkeypatch.undo()
    retry = await _post_article(async_client, tech, "Racing headline")
    assert retry.status_code == 201
    assert retry.json()["data"]["sequenceId"] == "technology-1"


# ---------------------------------------------------------------------------
# 2. Error body shape
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(async_client: AsyncClient):
    resp = await async_client.get("/api/nothing-here")
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "message": "Route not found: GET /api/nothing-here"}


@pytest.mark.asyncio
async def test_malformed_json_is_a_400(async_client: AsyncClient):
    resp = await async_client.post(
        "/api/categories", content=b"{not json", headers={"content-type": "application/json"}
    )
    assert resp.status_code == 400
    assert resp.json()["message"] == "Validation Error"


@pytest.mark.asyncio
async def test_error_detail_only_in_development(async_client: AsyncClient, monkeypatch):
    tech = await _create_category(async_client, "Technology")
    sport = await _create_category(async_client, "Sport")
    await _post_article(async_client, tech, "Shared headline")

    monkeypatch.setattr(settings, "APP_ENV", "development")
    resp = await _post_article(async_client, sport, "Shared headline")
    assert resp.status_code == 409
    assert "error" in resp.json()

    monkeypatch.setattr(settings, "APP_ENV", "production")
    resp = await _post_article(async_client, sport, "Shared headline")
    assert resp.status_code == 409
    assert "error" not in resp.json()


def test_error_detail_is_off_unless_configured(monkeypatch):
    """An unset APP_ENV must not expose exception text."""
    monkeypatch.delenv("APP_ENV", raising=False)
    configured = Settings(_env_file=None)
    assert configured.APP_ENV == "production"
    assert configured.is_development is False


# ---------------------------------------------------------------------------
# 3. X-Query-Count reports actual query count
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_query_count_header_exact_for_article_list(async_client: AsyncClient):
    """Article list issues COUNT + one joined page query = 2 queries."""
    tech = await _create_category(async_client, "Technology")
    await _post_article(async_client, tech, "Counted article")

    resp = await async_client.get("/api/articles")
    assert resp.status_code == 200
    count = int(resp.headers["x-query-count"])
    assert count == 2, f"Expected exactly 2 queries for article list, got {count}"
    assert float(resp.headers["x-response-time-ms"]) >= 0


@pytest.mark.asyncio
async def test_query_count_header_exact_for_article_detail(async_client: AsyncClient):
    """Comment count and category come back in the same statement as the article."""
    tech = await _create_category(async_client, "Technology")
    created = (await _post_article(async_client, tech, "Counted detail")).json()["data"]
    await async_client.post(f"/api/articles/{created['id']}/comments", json={"text": "hi"})

    resp = await async_client.get(f"/api/articles/{created['slug']}")
    assert resp.status_code == 200
    count = int(resp.headers["x-query-count"])
    assert count == 1, f"Expected exactly 1 query for article detail, got {count}"


# ---------------------------------------------------------------------------
# 4. CORS headers
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_cors_no_credentials_with_wildcard_origin(async_client: AsyncClient):
    """
    When allow_origins=["*"], the response must NOT include
    Access-Control-Allow-Credentials: true, per the CORS specification.
    """
    resp = await async_client.options(
        "/api/articles",
        headers={
            "Origin": "https://example.com",
            "Access-Control-Request-Method": "GET",
        },
    )
    cred_header = resp.headers.get("access-control-allow-credentials", "").lower()
    assert cred_header != "true", (
        "CORS must not combine allow_origins=* with allow_credentials=true"
    )
