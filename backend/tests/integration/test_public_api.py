import pytest
from httpx import AsyncClient

from factories import API

# === 集成测试: 公开接口（无需登录） ===


@pytest.mark.asyncio
async def test_public_listing_only_shows_published(client: AsyncClient, seed):
    published = seed(status="Published", journal_category_id="math")
    seed(status="Accepted", journal_category_id="math")

    response = await client.get(f"{API}/public/manuscripts", params={"categoryId": "math"})

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    item = body["items"][0]
    assert item["id"] == published.id
    assert item["journalCategoryId"] == "math"
    assert item["authors"] == ["Ada Lovelace", "Alan Turing"]


@pytest.mark.asyncio
async def test_public_get_hides_unpublished(client: AsyncClient, seed):
    draft = seed(status="Submitted")
    response = await client.get(f"{API}/public/manuscripts/{draft.id}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_increment_counter(client: AsyncClient, seed):
    m = seed(status="Published")

    response = await client.post(f"{API}/public/manuscripts/{m.id}/increment", json={"type": "citations"})

    assert response.status_code == 200
    assert response.json() == {"views": 0, "downloads": 0, "citations": 1}

    bad = await client.post(f"{API}/public/manuscripts/{m.id}/increment", json={"type": "likes"})
    assert bad.status_code == 422
    assert bad.json()["field"] == "type"


@pytest.mark.asyncio
async def test_search_suggestions(client: AsyncClient, seed):
    hit = seed(status="Published", article_title="Peer review at scale", abstract="x" * 150)
    seed(status="In Review", article_title="Peer review drafts")

    response = await client.get(f"{API}/public/manuscripts/search", params={"query": "peer REVIEW"})

    assert response.status_code == 200
    suggestions = response.json()["suggestions"]
    assert [s["id"] for s in suggestions] == [hit.id]
    assert suggestions[0]["title"] == "Peer review at scale"
    assert suggestions[0]["excerpt"] == "x" * 100 + "..."


@pytest.mark.asyncio
async def test_search_with_short_query_is_empty(client: AsyncClient, seed):
    seed(status="Published", article_title="P")
    response = await client.get(f"{API}/public/manuscripts/search", params={"query": "p"})
    assert response.status_code == 200
    assert response.json() == {"suggestions": []}
