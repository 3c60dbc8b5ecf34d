from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional
from uuid import uuid4

from app.core import role_matrix
from app.core.exceptions import InvalidInput
from app.models.manuscript import Manuscript, ManuscriptStatus, ManuscriptSubmission
from app.models.user import Identity
from app.services.journal_category_service import JournalCategoryDirectory
from app.services.manuscript_store import ManuscriptStore

logger = logging.getLogger("manuscript_core.ingestion")


def _blank(value: Optional[str]) -> bool:
    return not (value or "").strip()


class IngestionService:
    """
    投稿入口：唯一允许创建 Manuscript 记录的路径。

    中文注释:
    - 校验顺序固定，只报告第一个失败字段：
      journalCategoryId -> articleTitle -> abstract -> manuscriptFileName -> authorAgreement
    - 任一校验失败都不会写入。
    - coAuthors 原样保存为结构化列表，不做任何字符串序列化。
    """

    def __init__(
        self,
        store: ManuscriptStore,
        categories: JournalCategoryDirectory,
        *,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.store = store
        self.categories = categories
        self._clock = clock

    def validate(self, payload: ManuscriptSubmission) -> None:
        if _blank(payload.journal_category_id) or not self.categories.exists(payload.journal_category_id.strip()):
            raise InvalidInput("journalCategoryId", "unknown category")
        if _blank(payload.article_title):
            raise InvalidInput("articleTitle", "must not be empty")
        if _blank(payload.abstract):
            raise InvalidInput("abstract", "must not be empty")
        if _blank(payload.manuscript_file_name):
            raise InvalidInput("manuscriptFileName", "must not be empty")
        if payload.author_agreement is not True:
            raise InvalidInput("authorAgreement", "must be true")

    def submit(self, identity: Identity, payload: ManuscriptSubmission) -> Manuscript:
        role_matrix.can_submit(identity).raise_if_denied()
        self.validate(payload)

        manuscript = Manuscript(
            id=str(uuid4()),
            status=ManuscriptStatus.SUBMITTED,
            journal_category_id=payload.journal_category_id.strip(),
            submitted_by_id=identity.user_id,
            article_title=payload.article_title.strip(),
            abstract=payload.abstract.strip(),
            keywords=payload.keywords.strip(),
            co_authors=list(payload.co_authors),
            manuscript_file_name=payload.manuscript_file_name,
            cover_letter_file_name=payload.cover_letter_file_name,
            supplementary_files_name=payload.supplementary_files_name,
            is_special_review=payload.is_special_review,
            submitted_at=self._clock(),
            author_agreement=True,
        )
        created = self.store.insert(manuscript)
        logger.info(
            "[Ingestion] manuscript submitted: id=%s author=%s category=%s co_authors=%d",
            created.id,
            identity.user_id,
            created.journal_category_id,
            len(created.co_authors),
        )
        return created
