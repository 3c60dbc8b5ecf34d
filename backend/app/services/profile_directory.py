from __future__ import annotations

import logging
from threading import Lock
from typing import Any, Optional

from app.lib.api_client import supabase_admin
from app.services.manuscript_store_supabase import INVALID_TEXT_REPRESENTATION, api_error_code, store_error

logger = logging.getLogger("manuscript_core.profiles")

DEFAULT_ROLE = "author"


class ProfileDirectory:
    """
    user_profiles 的最小读写接口：只关心 id / email / role。

    中文注释:
    - 账号本身（密码、token 签发）属于外部身份服务，这里只读写角色。
    - 首次访问时自动创建 profile，默认 role='author'。
    """

    def get_role(self, user_id: str) -> Optional[str]:
        raise NotImplementedError

    def ensure_profile(self, user_id: str, email: Optional[str]) -> str:
        raise NotImplementedError

    def set_role(self, user_id: str, role: str) -> bool:
        """更新角色；用户不存在时返回 False"""
        raise NotImplementedError


class InMemoryProfileDirectory(ProfileDirectory):
    def __init__(self, roles: Optional[dict[str, str]] = None) -> None:
        self._profiles: dict[str, dict[str, Any]] = {}
        self._lock = Lock()
        for user_id, role in (roles or {}).items():
            self._profiles[user_id] = {"id": user_id, "email": None, "role": role}

    def get_role(self, user_id: str) -> Optional[str]:
        with self._lock:
            profile = self._profiles.get(user_id)
            return profile["role"] if profile else None

    def ensure_profile(self, user_id: str, email: Optional[str]) -> str:
        with self._lock:
            profile = self._profiles.get(user_id)
            if profile is None:
                profile = {"id": user_id, "email": email, "role": DEFAULT_ROLE}
                self._profiles[user_id] = profile
            return profile["role"]

    def set_role(self, user_id: str, role: str) -> bool:
        with self._lock:
            profile = self._profiles.get(user_id)
            if profile is None:
                return False
            profile["role"] = role
            return True


class SupabaseProfileDirectory(ProfileDirectory):
    def __init__(self, client: Any = None) -> None:
        self.client = client if client is not None else supabase_admin

    def _execute(self, query: Any, action: str) -> Any:
        try:
            return query.execute()
        except Exception as e:
            # 22P02: user_id 不是合法 uuid，按“用户不存在”处理（返回 None，调用方读到空 data）
            if api_error_code(e) == INVALID_TEXT_REPRESENTATION:
                return None
            logger.error("[Profiles] %s failed: %s", action, e, exc_info=True)
            raise store_error(e, target="Profile directory", action=action) from e

    def get_role(self, user_id: str) -> Optional[str]:
        resp = self._execute(
            self.client.table("user_profiles").select("id,role").eq("id", user_id).limit(1),
            "get_role",
        )
        rows = getattr(resp, "data", None) or []
        if not rows:
            return None
        return rows[0].get("role") or DEFAULT_ROLE

    def ensure_profile(self, user_id: str, email: Optional[str]) -> str:
        role = self.get_role(user_id)
        if role is not None:
            return role
        inserted = self._execute(
            self.client.table("user_profiles").insert({"id": user_id, "email": email, "role": DEFAULT_ROLE}),
            "create_profile",
        )
        rows = getattr(inserted, "data", None) or []
        return (rows[0].get("role") if rows else None) or DEFAULT_ROLE

    def set_role(self, user_id: str, role: str) -> bool:
        resp = self._execute(
            self.client.table("user_profiles").update({"role": role}).eq("id", user_id),
            "set_role",
        )
        return bool(getattr(resp, "data", None))
