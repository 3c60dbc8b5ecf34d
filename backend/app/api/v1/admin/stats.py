import asyncio

from fastapi import APIRouter, Depends

from app.api.deps import get_lifecycle_service
from app.core.roles import get_current_identity
from app.models.manuscript import AdminStats
from app.models.user import Identity
from app.services.lifecycle_service import LifecycleService

router = APIRouter(prefix="/admin", tags=["Admin Dashboard"])


@router.get("/stats", response_model=AdminStats)
async def get_admin_stats(
    identity: Identity = Depends(get_current_identity),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    """
    管理后台看板统计（仅 admin）。
    """
    return await asyncio.to_thread(service.admin_stats, identity)
