import asyncio
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query

from app.api.deps import get_ingestion_service, get_lifecycle_service
from app.core.roles import get_current_identity
from app.models.manuscript import (
    AuthorStats,
    Manuscript,
    ManuscriptPage,
    ManuscriptSubmission,
    ReviewerStats,
    StatusUpdateRequest,
)
from app.models.user import Identity
from app.services.ingestion_service import IngestionService
from app.services.lifecycle_service import LifecycleService

router = APIRouter(tags=["Manuscripts"])

# 中文注释:
# - 路由层只负责：解析身份 -> 调用服务 -> 返回模型；授权判定全部在服务/role_matrix 内完成。
# - 存储调用是阻塞 I/O（Supabase HTTP），统一放进 asyncio.to_thread，避免卡住事件循环。
# - 固定路径（/mine、/stats/*）必须在 /{manuscript_id} 之前注册。


@router.post("/manuscripts", response_model=Manuscript, status_code=201)
async def submit_manuscript(
    payload: ManuscriptSubmission = Body(...),
    identity: Identity = Depends(get_current_identity),
    service: IngestionService = Depends(get_ingestion_service),
):
    """
    投稿：创建 Submitted 状态的稿件，归属作者取自当前登录身份。
    """
    return await asyncio.to_thread(service.submit, identity, payload)


@router.get("/manuscripts/mine", response_model=ManuscriptPage)
async def list_my_manuscripts(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    identity: Identity = Depends(get_current_identity),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    return await asyncio.to_thread(service.list_by_owner, identity, page=page, limit=limit)


@router.get("/manuscripts/stats/author", response_model=AuthorStats)
async def author_stats(
    identity: Identity = Depends(get_current_identity),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    return await asyncio.to_thread(service.author_stats, identity)


@router.get("/manuscripts/stats/reviewer", response_model=ReviewerStats)
async def reviewer_stats(
    identity: Identity = Depends(get_current_identity),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    return await asyncio.to_thread(service.reviewer_stats, identity)


@router.get("/manuscripts", response_model=ManuscriptPage)
async def list_all_manuscripts(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    status: Optional[str] = Query(None),
    identity: Identity = Depends(get_current_identity),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    """
    admin / reviewer 视图：全部稿件，按投稿时间倒序，可按状态精确过滤。
    """
    return await asyncio.to_thread(service.list_all, identity, page=page, limit=limit, status=status)


@router.get("/manuscripts/{manuscript_id}", response_model=Manuscript)
async def get_manuscript(
    manuscript_id: str,
    identity: Identity = Depends(get_current_identity),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    return await asyncio.to_thread(service.get_manuscript, identity, manuscript_id)


@router.patch("/manuscripts/{manuscript_id}/status", response_model=Manuscript)
async def update_manuscript_status(
    manuscript_id: str,
    request: StatusUpdateRequest,
    identity: Identity = Depends(get_current_identity),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    """
    受守卫的状态变更入口（admin / reviewer / author 共用）。
    """
    return await asyncio.to_thread(service.update_status, identity, manuscript_id, request.status)


@router.delete("/manuscripts/{manuscript_id}")
async def delete_manuscript(
    manuscript_id: str,
    identity: Identity = Depends(get_current_identity),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    await asyncio.to_thread(service.delete_manuscript, identity, manuscript_id)
    return {"success": True, "id": manuscript_id}
