import pytest
from httpx import AsyncClient

from factories import (
    ADMIN_ID,
    API,
    AUTHOR_ID,
    OTHER_AUTHOR_ID,
    PENDING_REVIEWER_ID,
    REVIEWER_ID,
    auth_headers,
    submission_payload,
)

# === 集成测试: 投稿 / 读取 / 列表 / 删除 ===


@pytest.mark.asyncio
async def test_submit_then_get_round_trip(client: AsyncClient):
    payload = submission_payload()
    created = await client.post(f"{API}/manuscripts", json=payload, headers=auth_headers(AUTHOR_ID))

    assert created.status_code == 201
    body = created.json()
    assert body["status"] == "Submitted"
    assert body["submittedById"] == AUTHOR_ID
    assert body["version"] == 1

    fetched = await client.get(f"{API}/manuscripts/{body['id']}", headers=auth_headers(AUTHOR_ID))
    assert fetched.status_code == 200
    data = fetched.json()
    assert data["coAuthors"] == payload["coAuthors"]
    assert data["articleTitle"] == payload["articleTitle"]
    assert data["authorAgreement"] is True


@pytest.mark.asyncio
async def test_submit_without_agreement_creates_nothing(client: AsyncClient, store):
    response = await client.post(
        f"{API}/manuscripts",
        json=submission_payload(authorAgreement=False),
        headers=auth_headers(AUTHOR_ID),
    )

    assert response.status_code == 422
    body = response.json()
    assert body["kind"] == "InvalidInput"
    assert body["field"] == "authorAgreement"
    assert store.list_all(offset=0, limit=10)[1] == 0


@pytest.mark.asyncio
async def test_submit_with_unknown_category(client: AsyncClient):
    response = await client.post(
        f"{API}/manuscripts",
        json=submission_payload(journalCategoryId="nope"),
        headers=auth_headers(AUTHOR_ID),
    )
    assert response.status_code == 422
    assert response.json()["field"] == "journalCategoryId"


@pytest.mark.asyncio
async def test_submit_with_malformed_json_reports_body(client: AsyncClient, store):
    response = await client.post(
        f"{API}/manuscripts",
        content=b'{"articleTitle": "unterminated',
        headers={**auth_headers(AUTHOR_ID), "Content-Type": "application/json"},
    )

    assert response.status_code == 422
    body = response.json()
    assert body["kind"] == "InvalidInput"
    assert body["field"] == "body"
    assert store.list_all(offset=0, limit=10)[1] == 0


@pytest.mark.asyncio
async def test_reviewer_cannot_submit(client: AsyncClient):
    response = await client.post(f"{API}/manuscripts", json=submission_payload(), headers=auth_headers(REVIEWER_ID))
    assert response.status_code == 403
    assert response.json()["kind"] == "Forbidden.RoleNotPermitted"


@pytest.mark.asyncio
async def test_malformed_co_author_is_invalid_input(client: AsyncClient):
    response = await client.post(
        f"{API}/manuscripts",
        json=submission_payload(coAuthors=[{"givenName": "Only"}]),
        headers=auth_headers(AUTHOR_ID),
    )

    assert response.status_code == 422
    body = response.json()
    assert body["kind"] == "InvalidInput"
    assert body["field"].startswith("coAuthors.0")


@pytest.mark.asyncio
async def test_get_other_authors_manuscript_is_forbidden(client: AsyncClient, seed):
    m = seed(owner_id=OTHER_AUTHOR_ID)

    response = await client.get(f"{API}/manuscripts/{m.id}", headers=auth_headers(AUTHOR_ID))

    assert response.status_code == 403
    assert response.json()["kind"] == "Forbidden.NotOwner"


@pytest.mark.asyncio
async def test_get_missing_manuscript(client: AsyncClient):
    response = await client.get(f"{API}/manuscripts/does-not-exist", headers=auth_headers(ADMIN_ID))
    assert response.status_code == 404
    assert response.json()["kind"] == "NotFound"


@pytest.mark.asyncio
async def test_list_mine_only_returns_own(client: AsyncClient, seed):
    own = seed(owner_id=AUTHOR_ID)
    seed(owner_id=OTHER_AUTHOR_ID)

    response = await client.get(f"{API}/manuscripts/mine", headers=auth_headers(AUTHOR_ID))

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    assert body["page"] == 1
    assert body["pages"] == 1
    assert [i["id"] for i in body["items"]] == [own.id]


@pytest.mark.asyncio
async def test_list_all_for_editorial_roles(client: AsyncClient, seed):
    seed(status="Submitted")
    seed(status="Published", owner_id=OTHER_AUTHOR_ID)

    forbidden = await client.get(f"{API}/manuscripts", headers=auth_headers(AUTHOR_ID))
    assert forbidden.status_code == 403

    pending = await client.get(f"{API}/manuscripts", headers=auth_headers(PENDING_REVIEWER_ID))
    assert pending.status_code == 403

    response = await client.get(f"{API}/manuscripts", params={"status": "Published"}, headers=auth_headers(REVIEWER_ID))
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    assert body["items"][0]["status"] == "Published"

    bad = await client.get(f"{API}/manuscripts", params={"status": "Retracted"}, headers=auth_headers(ADMIN_ID))
    assert bad.status_code == 422
    assert bad.json()["field"] == "status"


@pytest.mark.asyncio
async def test_stats_endpoints(client: AsyncClient, seed):
    seed(status="Submitted", owner_id=AUTHOR_ID)
    seed(status="Accepted", owner_id=AUTHOR_ID)
    seed(status="In Review", owner_id=OTHER_AUTHOR_ID)

    mine = await client.get(f"{API}/manuscripts/stats/author", headers=auth_headers(AUTHOR_ID))
    assert mine.status_code == 200
    assert mine.json() == {"submitted": 1, "inReview": 0, "accepted": 1, "published": 0, "suspended": 0}

    reviewer = await client.get(f"{API}/manuscripts/stats/reviewer", headers=auth_headers(REVIEWER_ID))
    assert reviewer.status_code == 200
    assert reviewer.json() == {"totalAssigned": 2, "pendingReviews": 2, "completedReviews": 1}

    denied = await client.get(f"{API}/manuscripts/stats/reviewer", headers=auth_headers(AUTHOR_ID))
    assert denied.status_code == 403


@pytest.mark.asyncio
async def test_admin_dashboard_stats(client: AsyncClient, seed):
    seed(status="Submitted")
    seed(status="In Review", owner_id=OTHER_AUTHOR_ID)
    seed(status="Published")

    response = await client.get(f"{API}/admin/stats", headers=auth_headers(ADMIN_ID))

    assert response.status_code == 200
    body = response.json()
    assert body["totalManuscripts"] == 3
    assert body["pendingManuscripts"] == 2
    assert {"status": "Published", "count": 1} in body["statusDistribution"]
    assert len(body["submissionsOverTime"]) == 12
    assert body["submissionsOverTime"][-1]["count"] == 3

    for user_id in (REVIEWER_ID, AUTHOR_ID):
        denied = await client.get(f"{API}/admin/stats", headers=auth_headers(user_id))
        assert denied.status_code == 403
        assert denied.json()["kind"] == "Forbidden.RoleNotPermitted"


@pytest.mark.asyncio
async def test_owner_deletes_submitted_manuscript(client: AsyncClient, seed, store):
    m = seed(status="Submitted", owner_id=AUTHOR_ID)

    response = await client.delete(f"{API}/manuscripts/{m.id}", headers=auth_headers(AUTHOR_ID))

    assert response.status_code == 200
    assert response.json() == {"success": True, "id": m.id}
    assert store.get(m.id) is None

    again = await client.delete(f"{API}/manuscripts/{m.id}", headers=auth_headers(AUTHOR_ID))
    assert again.status_code == 404


@pytest.mark.asyncio
async def test_published_manuscript_cannot_be_deleted(client: AsyncClient, seed, store):
    m = seed(status="Published", owner_id=AUTHOR_ID)

    for user_id in (AUTHOR_ID, ADMIN_ID):
        response = await client.delete(f"{API}/manuscripts/{m.id}", headers=auth_headers(user_id))
        assert response.status_code == 409
        body = response.json()
        assert body["kind"] == "Conflict.PublishedNotDeletable"
        assert body["currentStatus"] == "Published"

    assert store.get(m.id) is not None
