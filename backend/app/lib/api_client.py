import os
from threading import Lock
from typing import Any, Callable, Optional

from supabase import Client, create_client

from app.core.config import app_config

url: str = app_config.supabase_url
# 兼容旧变量名 SUPABASE_KEY
service_role_key: str = app_config.supabase_key or os.environ.get("SUPABASE_KEY", "")


class _LazySupabaseClient:
    """
    首次访问属性时才创建的 Supabase Client 代理。

    中文注释:
    - 内存存储模式（本地/测试）永远不会触发创建，因此缺少 SUPABASE_* 变量时模块仍可导入。
    - 真实运行时缺少 URL/KEY，会在第一次查询时抛出明确的 RuntimeError。
    """

    def __init__(self, factory: Callable[[], Client], *, name: str):
        self._factory = factory
        self._name = name
        self._client: Optional[Client] = None
        self._init_lock = Lock()

    def __getattr__(self, item: str) -> Any:
        if self._client is None:
            with self._init_lock:
                if self._client is None:
                    self._client = self._factory()
        return getattr(self._client, item)

    def __repr__(self) -> str:
        state = "ready" if self._client is not None else "lazy"
        return f"<{self._name} ({state})>"


def _create_supabase_admin() -> Client:
    # 稿件存储/用户目录以 service_role 读写；授权在应用层 role_matrix 完成
    if not url:
        raise RuntimeError("SUPABASE_URL is required")
    if not service_role_key:
        raise RuntimeError("SUPABASE_SERVICE_ROLE_KEY (or SUPABASE_KEY) is required")
    return create_client(url, service_role_key)


supabase_admin: Client = _LazySupabaseClient(_create_supabase_admin, name="supabase_admin")  # type: ignore[assignment]
