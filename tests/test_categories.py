"""
Category endpoint tests — creation, slug derivation, rename, uniqueness
and deletion (which leaves articles in place).
"""
import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_create_category(async_client: AsyncClient):
    resp = await async_client.post("/api/categories", json={"name": "  Web Development "})
    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert body["data"]["name"] == "Web Development"
    assert body["data"]["slug"] == "web-development"


@pytest.mark.asyncio
async def test_list_categories_newest_first(async_client: AsyncClient):
    for name in ("Alpha", "Beta", "Gamma"):
        await async_client.post("/api/categories", json={"name": name})

    resp = await async_client.get("/api/categories")
    assert resp.status_code == 200
    body = resp.json()
    assert body["count"] == 3
    assert [c["name"] for c in body["data"]] == ["Gamma", "Beta", "Alpha"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [{}, {"name": ""}, {"name": "x"}, {"name": "  y  "}, {"name": "z" * 51}],
)
async def test_create_category_rejects_bad_names(async_client: AsyncClient, payload):
    resp = await async_client.post("/api/categories", json=payload)
    assert resp.status_code == 400
    assert resp.json()["success"] is False


@pytest.mark.asyncio
async def test_create_category_without_sluggable_characters(async_client: AsyncClient):
    resp = await async_client.post("/api/categories", json={"name": "!!!"})
    assert resp.status_code == 400
    assert resp.json()["message"] == "Category name must contain letters or digits"


@pytest.mark.asyncio
async def test_duplicate_category_name(async_client: AsyncClient):
    await async_client.post("/api/categories", json={"name": "Science"})
    resp = await async_client.post("/api/categories", json={"name": "Science"})
    assert resp.status_code == 409
    assert resp.json()["message"] == "Category already exists"


@pytest.mark.asyncio
async def test_duplicate_category_slug(async_client: AsyncClient):
    await async_client.post("/api/categories", json={"name": "Science Fiction"})
    resp = await async_client.post("/api/categories", json={"name": "science-fiction"})
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_rename_category_recomputes_slug(async_client: AsyncClient):
    created = (await async_client.post("/api/categories", json={"name": "Tech"})).json()["data"]

    resp = await async_client.patch(
        f"/api/categories/{created['id']}", json={"name": "Technology News"}
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["id"] == created["id"]
    assert data["name"] == "Technology News"
    assert data["slug"] == "technology-news"

    by_old_slug = await async_client.get("/api/articles", params={"categorySlug": "tech"})
    assert by_old_slug.status_code == 404


@pytest.mark.asyncio
async def test_rename_category_to_same_name(async_client: AsyncClient):
    created = (await async_client.post("/api/categories", json={"name": "Music"})).json()["data"]
    resp = await async_client.patch(f"/api/categories/{created['id']}", json={"name": "Music"})
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_rename_category_conflict(async_client: AsyncClient):
    await async_client.post("/api/categories", json={"name": "Books"})
    other = (await async_client.post("/api/categories", json={"name": "Films"})).json()["data"]

    resp = await async_client.patch(f"/api/categories/{other['id']}", json={"name": "Books"})
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_rename_missing_category(async_client: AsyncClient):
    resp = await async_client.patch("/api/categories/404", json={"name": "Whatever"})
    assert resp.status_code == 404

    resp = await async_client.patch("/api/categories/abc", json={"name": "Whatever"})
    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid category ID"


@pytest.mark.asyncio
async def test_delete_category(async_client: AsyncClient):
    created = (await async_client.post("/api/categories", json={"name": "Travel"})).json()["data"]

    resp = await async_client.delete(f"/api/categories/{created['id']}")
    assert resp.status_code == 200
    assert resp.json()["data"]["slug"] == "travel"

    listing = await async_client.get("/api/categories")
    assert listing.json()["data"] == []

    resp = await async_client.delete(f"/api/categories/{created['id']}")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_delete_category_keeps_articles(async_client: AsyncClient):
    created = (await async_client.post("/api/categories", json={"name": "Food"})).json()["data"]
    article = await async_client.post(
        "/api/articles",
        data={
            "title": "Best street food",
            "description": "A tour of the best street food around.",
            "categoryId": str(created["id"]),
        },
        files={"img": ("food.webp", b"RIFFfake-webp", "image/webp")},
    )
    assert article.status_code == 201

    await async_client.delete(f"/api/categories/{created['id']}")

    listing = await async_client.get("/api/articles")
    body = listing.json()
    assert body["total"] == 1
    assert body["data"][0]["sequenceId"] == "food-1"
    assert body["data"][0]["category"] is None
