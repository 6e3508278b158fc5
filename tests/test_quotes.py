"""
Quote endpoint tests — sequence ids, pagination, random pick and soft delete.
"""
import pytest
from httpx import AsyncClient
from sqlalchemy import select

from cms_api.models import Quote


async def _create_quote(client: AsyncClient, content: str = "Simplicity is the soul of efficiency.", author=None) -> dict:
    payload = {"content": content}
    if author is not None:
        payload["author"] = author
    resp = await client.post("/api/quotes", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


@pytest.mark.asyncio
async def test_create_quote(async_client: AsyncClient):
    quote = await _create_quote(async_client, author="  Austin Freeman ")
    assert quote["sequenceId"] == "quote-1"
    assert quote["author"] == "Austin Freeman"
    assert quote["isVisible"] is True


@pytest.mark.asyncio
async def test_quote_author_defaults_to_anonymous(async_client: AsyncClient):
    quote = await _create_quote(async_client)
    assert quote["author"] == "Anonymous"


@pytest.mark.asyncio
async def test_quote_sequence_ids_increase(async_client: AsyncClient):
    first = await _create_quote(async_client, "First quote content here")
    second = await _create_quote(async_client, "Second quote content here")
    assert (first["sequenceId"], second["sequenceId"]) == ("quote-1", "quote-2")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "content, message",
    [
        ("", "Quote content is required"),
        ("too short", "Quote must be at least 10 characters"),
        ("q" * 601, "Quote must not exceed 600 characters"),
    ],
)
async def test_create_quote_validation(async_client: AsyncClient, content, message):
    resp = await async_client.post("/api/quotes", json={"content": content})
    assert resp.status_code == 400
    assert resp.json()["message"] == message


@pytest.mark.asyncio
async def test_list_quotes_paginated(async_client: AsyncClient):
    for i in range(5):
        await _create_quote(async_client, f"Quote number {i} is long enough")

    resp = await async_client.get("/api/quotes?page=2&limit=2")
    assert resp.status_code == 200
    body = resp.json()
    assert body["count"] == 2
    assert body["total"] == 5
    assert body["currentPage"] == 2
    assert body["totalPages"] == 3
    assert [q["sequenceId"] for q in body["data"]] == ["quote-3", "quote-2"]


@pytest.mark.asyncio
async def test_get_quote_by_sequence_id_and_database_id(async_client: AsyncClient):
    quote = await _create_quote(async_client)

    by_seq = await async_client.get(f"/api/quotes/{quote['sequenceId']}")
    by_id = await async_client.get(f"/api/quotes/{quote['id']}")
    assert by_seq.status_code == by_id.status_code == 200
    assert by_seq.json()["data"] == by_id.json()["data"]


@pytest.mark.asyncio
async def test_get_missing_quote(async_client: AsyncClient):
    resp = await async_client.get("/api/quotes/quote-99")
    assert resp.status_code == 404
    assert resp.json()["message"] == "Quote not found"


@pytest.mark.asyncio
async def test_random_quote(async_client: AsyncClient):
    quote = await _create_quote(async_client)
    resp = await async_client.get("/api/quotes/random")
    assert resp.status_code == 200
    assert resp.json()["data"]["id"] == quote["id"]


@pytest.mark.asyncio
async def test_random_quote_when_empty(async_client: AsyncClient):
    resp = await async_client.get("/api/quotes/random")
    assert resp.status_code == 404
    assert resp.json()["message"] == "No quotes available"


@pytest.mark.asyncio
async def test_soft_delete_hides_quote(async_client: AsyncClient, db_session):
    hidden = await _create_quote(async_client, "This one will be hidden")
    kept = await _create_quote(async_client, "This one stays visible")

    resp = await async_client.delete(f"/api/quotes/{hidden['sequenceId']}")
    assert resp.status_code == 200
    assert resp.json()["message"] == "Quote deleted successfully"

    listing = (await async_client.get("/api/quotes")).json()
    assert [q["id"] for q in listing["data"]] == [kept["id"]]
    assert listing["total"] == 1

    for _ in range(5):
        resp = await async_client.get("/api/quotes/random")
        assert resp.json()["data"]["id"] == kept["id"]

    assert (await async_client.get(f"/api/quotes/{hidden['id']}")).status_code == 404

    # The row itself is still there.
    row = (
        await db_session.execute(select(Quote).where(Quote.id == hidden["id"]))
    ).scalar_one()
    assert row.is_visible is False


@pytest.mark.asyncio
async def test_soft_deleted_quote_keeps_its_number(async_client: AsyncClient):
    first = await _create_quote(async_client, "Deleted but not forgotten")
    await async_client.delete(f"/api/quotes/{first['id']}")

    second = await _create_quote(async_client, "Numbering carries on")
    assert second["sequenceId"] == "quote-2"


@pytest.mark.asyncio
async def test_delete_missing_quote(async_client: AsyncClient):
    resp = await async_client.delete("/api/quotes/quote-1")
    assert resp.status_code == 404
