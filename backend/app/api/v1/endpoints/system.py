from fastapi import APIRouter

from app.core.config import app_config

router = APIRouter(tags=["System"])


@router.get("/system/health")
async def health():
    """
    存活探针：只报告进程与配置的存储绑定，不访问数据库。
    """
    return {"status": "ok", "env": app_config.env, "store": app_config.store_backend}
