from __future__ import annotations

from datetime import datetime, timezone
from threading import Lock
from typing import Optional

from app.core.exceptions import ConcurrentModification, ManuscriptNotFound
from app.models.manuscript import Manuscript, ManuscriptStatus

COUNTER_FIELDS = ("views", "downloads", "citations")


class ManuscriptStore:
    """
    稿件存储接口（唯一事实来源）。

    中文注释:
    - 所有写操作都是“按 id + version 的比较交换”：调用方带着读取时的 version 写入，
      version 不匹配说明有并发写者先一步成功，此时抛 ConcurrentModification，
      且不覆盖对方写入的状态。
    - 不同 id 之间的写入互不协调；读操作不加记录级锁。
    - 传输层失败抛 StoreUnavailable，保证不会出现部分写入。
    """

    def get(self, manuscript_id: str) -> Optional[Manuscript]:
        raise NotImplementedError

    def insert(self, manuscript: Manuscript) -> Manuscript:
        raise NotImplementedError

    def compare_and_set_status(
        self, manuscript_id: str, *, expected_version: int, status: ManuscriptStatus
    ) -> Manuscript:
        raise NotImplementedError

    def delete(self, manuscript_id: str, *, expected_version: int) -> None:
        raise NotImplementedError

    def list_by_owner(self, owner_id: str, *, offset: int, limit: int) -> tuple[list[Manuscript], int]:
        raise NotImplementedError

    def list_all(
        self,
        *,
        offset: int,
        limit: int,
        status: Optional[ManuscriptStatus] = None,
        journal_category_id: Optional[str] = None,
    ) -> tuple[list[Manuscript], int]:
        raise NotImplementedError

    def count_by_status(self, owner_id: Optional[str] = None) -> dict[ManuscriptStatus, int]:
        raise NotImplementedError

    def submission_dates(self, *, since: datetime) -> list[datetime]:
        """返回 submitted_at >= since 的全部投稿时间（看板按月聚合用）"""
        raise NotImplementedError

    def search(self, query: str, *, status: ManuscriptStatus, limit: int) -> list[Manuscript]:
        """标题 / 摘要 / 关键词不区分大小写的子串匹配，最新的在前"""
        raise NotImplementedError

    def increment_counter(
        self, manuscript_id: str, field: str, *, required_status: ManuscriptStatus
    ) -> Manuscript:
        raise NotImplementedError


def _newest_first(items: list[Manuscript]) -> list[Manuscript]:
    return sorted(items, key=lambda m: (m.submitted_at, m.id), reverse=True)


def as_utc(value: datetime) -> datetime:
    # 无时区的时间按 UTC 处理
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class InMemoryManuscriptStore(ManuscriptStore):
    """
    进程内存储（本地开发 / 测试）。

    中文注释:
    - _lock 只保护 id -> 记录 的字典本身，持有时间极短；
    - 每条记录另有一把锁，保证同一 id 的“比较 + 写入”不会交错；
    - 记录对象不可原地修改，写入总是替换为新对象，读方拿到的是一致快照。
    """

    def __init__(self) -> None:
        self._records: dict[str, Manuscript] = {}
        self._record_locks: dict[str, Lock] = {}
        self._lock = Lock()

    def _record_lock(self, manuscript_id: str) -> Lock:
        with self._lock:
            lock = self._record_locks.get(manuscript_id)
            if lock is None:
                lock = Lock()
                self._record_locks[manuscript_id] = lock
            return lock

    def _snapshot(self) -> list[Manuscript]:
        with self._lock:
            return list(self._records.values())

    def get(self, manuscript_id: str) -> Optional[Manuscript]:
        with self._lock:
            return self._records.get(manuscript_id)

    def insert(self, manuscript: Manuscript) -> Manuscript:
        with self._lock:
            if manuscript.id in self._records:
                raise ValueError(f"duplicate manuscript id: {manuscript.id}")
            self._records[manuscript.id] = manuscript
        return manuscript

    def compare_and_set_status(
        self, manuscript_id: str, *, expected_version: int, status: ManuscriptStatus
    ) -> Manuscript:
        with self._record_lock(manuscript_id):
            current = self.get(manuscript_id)
            if current is None:
                raise ManuscriptNotFound(manuscript_id)
            if current.version != expected_version:
                raise ConcurrentModification(manuscript_id, current_status=current.status.value)
            updated = current.with_status(status)
            with self._lock:
                self._records[manuscript_id] = updated
            return updated

    def delete(self, manuscript_id: str, *, expected_version: int) -> None:
        with self._record_lock(manuscript_id):
            current = self.get(manuscript_id)
            if current is None:
                raise ManuscriptNotFound(manuscript_id)
            if current.version != expected_version:
                raise ConcurrentModification(manuscript_id, current_status=current.status.value)
            with self._lock:
                self._records.pop(manuscript_id, None)
                self._record_locks.pop(manuscript_id, None)

    def list_by_owner(self, owner_id: str, *, offset: int, limit: int) -> tuple[list[Manuscript], int]:
        owned = _newest_first([m for m in self._snapshot() if m.submitted_by_id == owner_id])
        return owned[offset : offset + limit], len(owned)

    def list_all(
        self,
        *,
        offset: int,
        limit: int,
        status: Optional[ManuscriptStatus] = None,
        journal_category_id: Optional[str] = None,
    ) -> tuple[list[Manuscript], int]:
        rows = self._snapshot()
        if status is not None:
            rows = [m for m in rows if m.status == status]
        if journal_category_id:
            rows = [m for m in rows if m.journal_category_id == journal_category_id]
        rows = _newest_first(rows)
        return rows[offset : offset + limit], len(rows)

    def count_by_status(self, owner_id: Optional[str] = None) -> dict[ManuscriptStatus, int]:
        counts = {s: 0 for s in ManuscriptStatus}
        for m in self._snapshot():
            if owner_id is not None and m.submitted_by_id != owner_id:
                continue
            counts[m.status] += 1
        return counts

    def submission_dates(self, *, since: datetime) -> list[datetime]:
        return [m.submitted_at for m in self._snapshot() if as_utc(m.submitted_at) >= as_utc(since)]

    def search(self, query: str, *, status: ManuscriptStatus, limit: int) -> list[Manuscript]:
        needle = query.strip().lower()
        if not needle:
            return []
        hits = [
            m
            for m in self._snapshot()
            if m.status == status
            and any(needle in (text or "").lower() for text in (m.article_title, m.abstract, m.keywords))
        ]
        return _newest_first(hits)[:limit]

    def increment_counter(
        self, manuscript_id: str, field: str, *, required_status: ManuscriptStatus
    ) -> Manuscript:
        if field not in COUNTER_FIELDS:
            raise ValueError(f"unknown counter: {field}")
        with self._record_lock(manuscript_id):
            current = self.get(manuscript_id)
            if current is None or current.status != required_status:
                raise ManuscriptNotFound(manuscript_id)
            # 计数器不参与状态 CAS，因此不递增 version
            updated = current.model_copy(update={field: getattr(current, field) + 1})
            with self._lock:
                self._records[manuscript_id] = updated
            return updated
