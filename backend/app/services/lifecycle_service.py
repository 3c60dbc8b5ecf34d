from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from app.core import role_matrix
from app.core.config import PaginationConfig
from app.core.exceptions import InvalidInput, LifecycleError, ManuscriptNotFound
from app.models.manuscript import (
    AdminStats,
    AuthorStats,
    Manuscript,
    ManuscriptPage,
    ManuscriptStatus,
    MonthlyCount,
    ReviewerStats,
    StatusCount,
    normalize_status,
)
from app.models.user import Identity
from app.services.manuscript_store import ManuscriptStore, as_utc

logger = logging.getLogger("manuscript_core.lifecycle")

_REVIEWABLE = (ManuscriptStatus.SUBMITTED, ManuscriptStatus.IN_REVIEW)
_REVIEWED = (ManuscriptStatus.ACCEPTED, ManuscriptStatus.PUBLISHED, ManuscriptStatus.SUSPENDED)
# 看板投稿趋势覆盖的月数（含当月）
STATS_MONTHS = 12


def page_window(page: int, limit: Optional[int], cfg: PaginationConfig) -> tuple[int, int, int]:
    """
    归一化分页参数，返回 (page, limit, offset)。

    中文注释: page 从 1 开始；limit 缺省取配置默认值，超过上限时截断。
    """
    page = max(1, int(page or 1))
    size = int(limit or cfg.default_page_size)
    size = max(1, min(size, cfg.max_page_size))
    return page, size, (page - 1) * size


def page_count(total: int, limit: int) -> int:
    return (total + limit - 1) // limit


def trailing_months(now: datetime, count: int) -> list[tuple[int, int]]:
    """截至 now 所在月（含）的最近 count 个 (year, month)，按时间正序"""
    year, month = now.year, now.month
    months: list[tuple[int, int]] = []
    for _ in range(count):
        months.append((year, month))
        year, month = (year - 1, 12) if month == 1 else (year, month - 1)
    return list(reversed(months))


def parse_requested_status(value: object) -> ManuscriptStatus:
    status = normalize_status(value)
    if status is None:
        raise InvalidInput("status", "unknown status")
    return status


class LifecycleService:
    """
    稿件生命周期编排：读取 -> 授权 -> 守卫 -> 持久化 -> 返回。

    中文注释:
    - 所有角色入口共用 role_matrix 里的同一套判定，不在路由层重复写归属检查。
    - 拒绝一律抛出具体错误且不产生任何写入。
    - 写入是按 version 的比较交换：并发的第二个写者会收到 ConcurrentModification，
      并能从错误里看到胜出者写入的当前状态。
    """

    def __init__(
        self,
        store: ManuscriptStore,
        pagination: Optional[PaginationConfig] = None,
        *,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.store = store
        self.pagination = pagination or PaginationConfig.from_env()
        self._clock = clock

    def _load(self, manuscript_id: str) -> Manuscript:
        manuscript = self.store.get(manuscript_id)
        if manuscript is None:
            raise ManuscriptNotFound(manuscript_id)
        return manuscript

    def _check(self, decision: role_matrix.Decision, identity: Identity, action: str, manuscript_id: str) -> None:
        if decision.allowed:
            return
        logger.info(
            "[Lifecycle] %s denied: manuscript=%s user=%s role=%s kind=%s",
            action,
            manuscript_id,
            identity.user_id,
            identity.stored_role or "-",
            decision.kind,
        )
        decision.raise_if_denied()

    def get_manuscript(self, identity: Identity, manuscript_id: str) -> Manuscript:
        manuscript = self._load(manuscript_id)
        self._check(role_matrix.can_view(identity, manuscript), identity, "get", manuscript_id)
        return manuscript

    def update_status(self, identity: Identity, manuscript_id: str, requested: object) -> Manuscript:
        """
        更新稿件状态。

        同一授权请求重复调用是幂等的：第二次同样通过授权，状态保持为 requested
        （version 仍会递增，便于并发检测）。
        """
        target = parse_requested_status(requested)
        manuscript = self._load(manuscript_id)
        decision = role_matrix.authorize_status_change(identity, manuscript, target)
        self._check(decision, identity, "update_status", manuscript_id)

        try:
            updated = self.store.compare_and_set_status(
                manuscript_id, expected_version=manuscript.version, status=target
            )
        except LifecycleError as e:
            logger.info("[Lifecycle] update_status lost race: manuscript=%s kind=%s", manuscript_id, e.kind)
            raise

        logger.info(
            "[Lifecycle] status changed: manuscript=%s %s -> %s by user=%s (%s)",
            manuscript_id,
            manuscript.status.value,
            updated.status.value,
            identity.user_id,
            identity.stored_role,
        )
        return updated

    def delete_manuscript(self, identity: Identity, manuscript_id: str) -> None:
        manuscript = self._load(manuscript_id)
        self._check(role_matrix.authorize_delete(identity, manuscript), identity, "delete", manuscript_id)
        self.store.delete(manuscript_id, expected_version=manuscript.version)
        logger.info("[Lifecycle] manuscript deleted: %s by author=%s", manuscript_id, identity.user_id)

    def list_by_owner(self, identity: Identity, *, page: int = 1, limit: Optional[int] = None) -> ManuscriptPage:
        self._check(role_matrix.can_list_own(identity), identity, "list_by_owner", "*")
        page, size, offset = page_window(page, limit, self.pagination)
        items, total = self.store.list_by_owner(identity.user_id, offset=offset, limit=size)
        return ManuscriptPage(items=items, total=total, page=page, pages=page_count(total, size))

    def list_all(
        self,
        identity: Identity,
        *,
        page: int = 1,
        limit: Optional[int] = None,
        status: Optional[str] = None,
    ) -> ManuscriptPage:
        self._check(role_matrix.can_list_all(identity), identity, "list_all", "*")
        status_filter = parse_requested_status(status) if status else None
        page, size, offset = page_window(page, limit, self.pagination)
        items, total = self.store.list_all(offset=offset, limit=size, status=status_filter)
        return ManuscriptPage(items=items, total=total, page=page, pages=page_count(total, size))

    def author_stats(self, identity: Identity) -> AuthorStats:
        self._check(role_matrix.can_list_own(identity), identity, "author_stats", "*")
        counts = self.store.count_by_status(owner_id=identity.user_id)
        return AuthorStats(
            submitted=counts[ManuscriptStatus.SUBMITTED],
            in_review=counts[ManuscriptStatus.IN_REVIEW],
            accepted=counts[ManuscriptStatus.ACCEPTED],
            published=counts[ManuscriptStatus.PUBLISHED],
            suspended=counts[ManuscriptStatus.SUSPENDED],
        )

    def reviewer_stats(self, identity: Identity) -> ReviewerStats:
        # 中文注释: 平台没有审稿分配模型，“待审”即所有处于 Submitted / In Review 的稿件
        self._check(role_matrix.can_list_all(identity), identity, "reviewer_stats", "*")
        counts = self.store.count_by_status()
        reviewable = sum(counts[s] for s in _REVIEWABLE)
        return ReviewerStats(
            total_assigned=reviewable,
            pending_reviews=reviewable,
            completed_reviews=sum(counts[s] for s in _REVIEWED),
        )

    def admin_stats(self, identity: Identity) -> AdminStats:
        self._check(role_matrix.can_view_admin_stats(identity), identity, "admin_stats", "*")
        counts = self.store.count_by_status()

        months = trailing_months(as_utc(self._clock()), STATS_MONTHS)
        since = datetime(months[0][0], months[0][1], 1, tzinfo=timezone.utc)
        buckets = dict.fromkeys(months, 0)
        for submitted_at in self.store.submission_dates(since=since):
            at = as_utc(submitted_at)
            if (at.year, at.month) in buckets:
                buckets[(at.year, at.month)] += 1

        return AdminStats(
            total_manuscripts=sum(counts.values()),
            pending_manuscripts=sum(counts[s] for s in _REVIEWABLE),
            status_distribution=[StatusCount(status=s, count=counts[s]) for s in ManuscriptStatus],
            submissions_over_time=[
                MonthlyCount(month=f"{year:04d}-{month:02d}", count=n) for (year, month), n in buckets.items()
            ],
        )
