import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_public_service
from app.models.manuscript import (
    CounterIncrementRequest,
    Manuscript,
    ManuscriptCounters,
    PublicManuscriptPage,
    SearchResults,
)
from app.services.public_service import PublicManuscriptService

router = APIRouter(prefix="/public", tags=["Public Resources"])

# 中文注释:
# - 公开接口不需要登录，只返回 Published 稿件。
# - 计数器递增只对 Published 稿件生效，其他状态按 404 处理。
# - 搜索参数沿用前端的 ?query=，过短时返回空建议列表。


@router.get("/manuscripts", response_model=PublicManuscriptPage)
async def list_published_manuscripts(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    category_id: Optional[str] = Query(None, alias="categoryId"),
    service: PublicManuscriptService = Depends(get_public_service),
):
    return await asyncio.to_thread(
        service.list_published, page=page, limit=limit, journal_category_id=category_id
    )


@router.get("/manuscripts/search", response_model=SearchResults)
async def search_published_manuscripts(
    query: Optional[str] = Query(None),
    service: PublicManuscriptService = Depends(get_public_service),
):
    # 必须注册在 /manuscripts/{manuscript_id} 之前
    return await asyncio.to_thread(service.search_published, query)


@router.get("/manuscripts/{manuscript_id}", response_model=Manuscript)
async def get_published_manuscript(
    manuscript_id: str,
    service: PublicManuscriptService = Depends(get_public_service),
):
    return await asyncio.to_thread(service.get_published, manuscript_id)


@router.post("/manuscripts/{manuscript_id}/increment", response_model=ManuscriptCounters)
async def increment_counter(
    manuscript_id: str,
    request: CounterIncrementRequest,
    service: PublicManuscriptService = Depends(get_public_service),
):
    return await asyncio.to_thread(service.increment, manuscript_id, request.type)
