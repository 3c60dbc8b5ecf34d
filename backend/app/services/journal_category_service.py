from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from app.lib.api_client import supabase_admin
from app.services.manuscript_store_supabase import INVALID_TEXT_REPRESENTATION, api_error_code, store_error

logger = logging.getLogger("manuscript_core.categories")


class JournalCategoryDirectory:
    """期刊分类查询：投稿时只需要 exists(category_id)"""

    def exists(self, category_id: str) -> bool:
        raise NotImplementedError


class InMemoryJournalCategoryDirectory(JournalCategoryDirectory):
    def __init__(self, category_ids: Optional[Iterable[str]] = None) -> None:
        self._ids = {str(c) for c in (category_ids or [])}

    def exists(self, category_id: str) -> bool:
        return str(category_id or "") in self._ids


class SupabaseJournalCategoryDirectory(JournalCategoryDirectory):
    def __init__(self, client: Any = None) -> None:
        self.client = client if client is not None else supabase_admin

    def exists(self, category_id: str) -> bool:
        if not category_id:
            return False
        try:
            resp = (
                self.client.table("journal_categories")
                .select("id")
                .eq("id", category_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            if api_error_code(e) == INVALID_TEXT_REPRESENTATION:
                return False
            logger.error("[Categories] lookup failed: %s", e, exc_info=True)
            raise store_error(e, target="Journal category lookup", action="exists") from e
        return bool(getattr(resp, "data", None))
