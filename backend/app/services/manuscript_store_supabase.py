from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Any, Optional

from postgrest.exceptions import APIError
from pydantic import TypeAdapter

from app.core.exceptions import (
    ConcurrentModification,
    LifecycleError,
    ManuscriptNotFound,
    StoreRejected,
    StoreUnavailable,
)
from app.lib.api_client import supabase_admin
from app.models.manuscript import Manuscript, ManuscriptStatus
from app.services.manuscript_store import COUNTER_FIELDS, ManuscriptStore

logger = logging.getLogger("manuscript_core.store")

_TABLE = "manuscripts"
# 计数器 CAS 冲突时的最大重试次数（计数器之间互不阻塞，很少需要重试）
_COUNTER_CAS_ATTEMPTS = 5
# PostgREST or= 语法里有特殊含义的字符，搜索词中一律替换为空格
_SEARCH_RESERVED = re.compile(r"[,()*%\"\\]")
_SEARCH_COLUMNS = ("article_title", "abstract", "keywords")
_DATETIME = TypeAdapter(datetime)

UNIQUE_VIOLATION = "23505"
# id 列是 uuid：非法 uuid 文本会得到 22P02，这样的记录不可能存在
INVALID_TEXT_REPRESENTATION = "22P02"
# 连接异常 / 事务回滚 / 资源不足 / 运维干预 / 系统错误
_TRANSIENT_SQLSTATE_CLASSES = ("08", "40", "53", "57", "58")


def api_error_code(e: Exception) -> str:
    if not isinstance(e, APIError):
        return ""
    return str(getattr(e, "code", "") or "")


def is_transient_store_error(e: Exception) -> bool:
    """
    判断存储层异常是否为可重试的瞬时故障。

    中文注释:
    - 非 APIError（连接重置、超时等传输层异常）一律视为瞬时。
    - APIError 无错误码（网关返回非 JSON）或 PGRST0xx（连不上数据库）视为瞬时。
    - 纯数字 HTTP 状态码：5xx 瞬时，4xx 不是。
    - 其余按 SQLSTATE 前两位判断；22xxx / 23xxx / 42xxx 以及 PGRST1xx-3xx 重试也不会成功。
    """
    if not isinstance(e, APIError):
        return True
    code = api_error_code(e)
    if not code or code.startswith("PGRST0"):
        return True
    if code.isdigit() and len(code) == 3:
        return code.startswith("5")
    return code[:2] in _TRANSIENT_SQLSTATE_CLASSES


def store_error(e: Exception, *, target: str, action: str) -> LifecycleError:
    if is_transient_store_error(e):
        return StoreUnavailable(f"{target} unavailable during {action}")
    return StoreRejected(f"{target} rejected {action} (code {api_error_code(e)})")


class SupabaseManuscriptStore(ManuscriptStore):
    """
    基于 Supabase PostgREST 的稿件存储。

    中文注释:
    - 使用 service_role（supabase_admin）读写；授权已在 role_matrix 完成。
    - 比较交换：UPDATE/DELETE ... WHERE id = :id AND version = :expected，
      返回 0 行即说明并发写者已先成功（或记录已不存在）。
    - co_authors 是 jsonb 数组，读出即为 list[dict]，直接由 pydantic 校验为 list[CoAuthor]；
      不做任何字符串反解析。
    - 只有瞬时故障映射为 StoreUnavailable（可重试）；确定性拒绝映射为 StoreRejected。
    """

    def __init__(self, client: Any = None) -> None:
        self.client = client if client is not None else supabase_admin

    def _execute(self, query: Any, action: str, *, manuscript_id: Optional[str] = None) -> Any:
        try:
            return query.execute()
        except APIError as e:
            code = api_error_code(e)
            # 23505: 主键冲突，与内存存储保持一致（ValueError）
            if action == "insert" and code == UNIQUE_VIOLATION:
                raise ValueError(f"duplicate manuscript id: {getattr(e, 'message', e)}") from e
            if code == INVALID_TEXT_REPRESENTATION and manuscript_id is not None:
                raise ManuscriptNotFound(manuscript_id) from e
            logger.error("[Store] %s rejected by PostgREST: code=%s message=%s", action, code, getattr(e, "message", e))
            raise store_error(e, target="Manuscript store", action=action) from e
        except Exception as e:
            logger.error("[Store] %s failed: %s", action, e, exc_info=True)
            raise store_error(e, target="Manuscript store", action=action) from e

    @staticmethod
    def _rows(resp: Any) -> list[dict]:
        return getattr(resp, "data", None) or []

    @staticmethod
    def _to_models(rows: list[dict]) -> list[Manuscript]:
        return [Manuscript.model_validate(row) for row in rows]

    def get(self, manuscript_id: str) -> Optional[Manuscript]:
        # 中文注释: 不用 .single()（0 行会抛 PGRST116），用 limit(1) 统一处理“不存在”
        try:
            resp = self._execute(
                self.client.table(_TABLE).select("*").eq("id", manuscript_id).limit(1),
                "get",
                manuscript_id=manuscript_id,
            )
        except ManuscriptNotFound:
            return None
        rows = self._rows(resp)
        if not rows:
            return None
        return Manuscript.model_validate(rows[0])

    def insert(self, manuscript: Manuscript) -> Manuscript:
        resp = self._execute(self.client.table(_TABLE).insert(manuscript.to_row()), "insert")
        rows = self._rows(resp)
        if not rows:
            return manuscript
        return Manuscript.model_validate(rows[0])

    def _lost_race(self, manuscript_id: str) -> ConcurrentModification | ManuscriptNotFound:
        current = self.get(manuscript_id)
        if current is None:
            return ManuscriptNotFound(manuscript_id)
        return ConcurrentModification(manuscript_id, current_status=current.status.value)

    def compare_and_set_status(
        self, manuscript_id: str, *, expected_version: int, status: ManuscriptStatus
    ) -> Manuscript:
        resp = self._execute(
            self.client.table(_TABLE)
            .update({"status": status.value, "version": expected_version + 1})
            .eq("id", manuscript_id)
            .eq("version", expected_version),
            "update_status",
            manuscript_id=manuscript_id,
        )
        rows = self._rows(resp)
        if not rows:
            raise self._lost_race(manuscript_id)
        return Manuscript.model_validate(rows[0])

    def delete(self, manuscript_id: str, *, expected_version: int) -> None:
        resp = self._execute(
            self.client.table(_TABLE)
            .delete()
            .eq("id", manuscript_id)
            .eq("version", expected_version),
            "delete",
            manuscript_id=manuscript_id,
        )
        if not self._rows(resp):
            raise self._lost_race(manuscript_id)

    def _page(self, query: Any, *, offset: int, limit: int, action: str) -> tuple[list[Manuscript], int]:
        resp = self._execute(
            query.order("submitted_at", desc=True).range(offset, offset + limit - 1),
            action,
        )
        rows = self._rows(resp)
        count = getattr(resp, "count", None)
        total = count if isinstance(count, int) else len(rows)
        return self._to_models(rows), total

    def list_by_owner(self, owner_id: str, *, offset: int, limit: int) -> tuple[list[Manuscript], int]:
        query = self.client.table(_TABLE).select("*", count="exact").eq("submitted_by_id", owner_id)
        return self._page(query, offset=offset, limit=limit, action="list_by_owner")

    def list_all(
        self,
        *,
        offset: int,
        limit: int,
        status: Optional[ManuscriptStatus] = None,
        journal_category_id: Optional[str] = None,
    ) -> tuple[list[Manuscript], int]:
        query = self.client.table(_TABLE).select("*", count="exact")
        if status is not None:
            query = query.eq("status", status.value)
        if journal_category_id:
            query = query.eq("journal_category_id", journal_category_id)
        return self._page(query, offset=offset, limit=limit, action="list_all")

    def count_by_status(self, owner_id: Optional[str] = None) -> dict[ManuscriptStatus, int]:
        query = self.client.table(_TABLE).select("status")
        if owner_id is not None:
            query = query.eq("submitted_by_id", owner_id)
        resp = self._execute(query, "count_by_status")

        counts = {s: 0 for s in ManuscriptStatus}
        for row in self._rows(resp):
            status = row.get("status")
            try:
                counts[ManuscriptStatus(status)] += 1
            except ValueError:
                logger.warning("[Store] ignoring unknown status value %r", status)
        return counts

    def submission_dates(self, *, since: datetime) -> list[datetime]:
        resp = self._execute(
            self.client.table(_TABLE).select("submitted_at").gte("submitted_at", since.isoformat()),
            "submission_dates",
        )
        return [_DATETIME.validate_python(row["submitted_at"]) for row in self._rows(resp) if row.get("submitted_at")]

    def search(self, query: str, *, status: ManuscriptStatus, limit: int) -> list[Manuscript]:
        term = " ".join(_SEARCH_RESERVED.sub(" ", query).split())
        if not term:
            return []
        filters = ",".join(f"{column}.ilike.%{term}%" for column in _SEARCH_COLUMNS)
        resp = self._execute(
            self.client.table(_TABLE)
            .select("*")
            .eq("status", status.value)
            .or_(filters)
            .order("submitted_at", desc=True)
            .limit(limit),
            "search",
        )
        return self._to_models(self._rows(resp))

    def increment_counter(
        self, manuscript_id: str, field: str, *, required_status: ManuscriptStatus
    ) -> Manuscript:
        if field not in COUNTER_FIELDS:
            raise ValueError(f"unknown counter: {field}")

        for _ in range(_COUNTER_CAS_ATTEMPTS):
            current = self.get(manuscript_id)
            if current is None or current.status != required_status:
                raise ManuscriptNotFound(manuscript_id)
            value = getattr(current, field)
            resp = self._execute(
                self.client.table(_TABLE)
                .update({field: value + 1})
                .eq("id", manuscript_id)
                .eq("status", required_status.value)
                .eq(field, value),
                "increment_counter",
                manuscript_id=manuscript_id,
            )
            rows = self._rows(resp)
            if rows:
                return Manuscript.model_validate(rows[0])

        current = self.get(manuscript_id)
        raise ConcurrentModification(
            manuscript_id, current_status=current.status.value if current else None
        )
