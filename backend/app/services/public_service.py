from __future__ import annotations

import logging
from typing import Optional

from app.core.config import PaginationConfig
from app.core.exceptions import InvalidInput, ManuscriptNotFound
from app.models.manuscript import (
    Manuscript,
    ManuscriptCounters,
    ManuscriptStatus,
    PublicManuscriptPage,
    PublicManuscriptSummary,
    SearchResults,
    SearchSuggestion,
)
from app.services.lifecycle_service import page_count, page_window
from app.services.manuscript_store import COUNTER_FIELDS, ManuscriptStore

logger = logging.getLogger("manuscript_core.public")

# 搜索建议：查询词至少 2 个字符，最多返回 5 条，摘要截取前 100 个字符
SEARCH_MIN_QUERY_LENGTH = 2
SEARCH_LIMIT = 5
EXCERPT_LENGTH = 100


def excerpt(text: str, length: int = EXCERPT_LENGTH) -> str:
    text = text or ""
    if len(text) <= length:
        return text
    return text[:length] + "..."


def co_author_names(manuscript: Manuscript) -> list[str]:
    names: list[str] = []
    for author in manuscript.co_authors:
        name = f"{author.given_name} {author.last_name}".strip()
        if name:
            names.append(name)
    return names


class PublicManuscriptService:
    """
    公开只读接口：仅暴露 Published 稿件。

    中文注释:
    - 非 Published 的稿件一律按 NotFound 处理，不泄露其存在性。
    - 浏览/下载/引用计数走存储层的原子递增，不影响状态 version。
    """

    def __init__(self, store: ManuscriptStore, pagination: Optional[PaginationConfig] = None) -> None:
        self.store = store
        self.pagination = pagination or PaginationConfig.from_env()

    def list_published(
        self,
        *,
        page: int = 1,
        limit: Optional[int] = None,
        journal_category_id: Optional[str] = None,
    ) -> PublicManuscriptPage:
        page, size, offset = page_window(page, limit, self.pagination)
        items, total = self.store.list_all(
            offset=offset,
            limit=size,
            status=ManuscriptStatus.PUBLISHED,
            journal_category_id=journal_category_id,
        )
        summaries = [
            PublicManuscriptSummary(
                id=m.id,
                title=m.article_title,
                journal_category_id=m.journal_category_id,
                submitted_at=m.submitted_at,
                authors=co_author_names(m),
            )
            for m in items
        ]
        return PublicManuscriptPage(items=summaries, total=total, page=page, pages=page_count(total, size))

    def search_published(self, query: Optional[str]) -> SearchResults:
        """
        顶部搜索框的联想建议：标题 / 摘要 / 关键词命中的 Published 稿件。

        查询词过短时返回空结果而不是报错（用户还在输入）。
        """
        term = (query or "").strip()
        if len(term) < SEARCH_MIN_QUERY_LENGTH:
            return SearchResults()
        hits = self.store.search(term, status=ManuscriptStatus.PUBLISHED, limit=SEARCH_LIMIT)
        return SearchResults(
            suggestions=[
                SearchSuggestion(id=m.id, title=m.article_title, excerpt=excerpt(m.abstract), authors=co_author_names(m))
                for m in hits
            ]
        )

    def get_published(self, manuscript_id: str) -> Manuscript:
        manuscript = self.store.get(manuscript_id)
        if manuscript is None or manuscript.status != ManuscriptStatus.PUBLISHED:
            raise ManuscriptNotFound(manuscript_id, "Published manuscript not found")
        return manuscript

    def increment(self, manuscript_id: str, counter: str) -> ManuscriptCounters:
        field = (counter or "").strip().lower()
        if field not in COUNTER_FIELDS:
            raise InvalidInput("type", "must be one of views, downloads, citations")
        updated = self.store.increment_counter(
            manuscript_id, field, required_status=ManuscriptStatus.PUBLISHED
        )
        return ManuscriptCounters(views=updated.views, downloads=updated.downloads, citations=updated.citations)
