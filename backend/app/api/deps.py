"""
依赖注入：按配置选择存储绑定（Supabase / 进程内），并组装服务。

中文注释:
- 存储/目录对象是进程级单例（内存模式下必须共享同一份数据）。
- 内存模式的分类与管理员来自 MemorySeedConfig（JOURNAL_CATEGORY_IDS / ADMIN_USER_IDS）。
- 测试通过 app.dependency_overrides 替换 get_manuscript_store 等提供者即可，
  服务对象会经由 Depends 拿到替换后的实例。
"""

from functools import lru_cache

from fastapi import Depends

from app.core.config import MemorySeedConfig, app_config
from app.services.ingestion_service import IngestionService
from app.services.journal_category_service import (
    InMemoryJournalCategoryDirectory,
    JournalCategoryDirectory,
    SupabaseJournalCategoryDirectory,
)
from app.services.lifecycle_service import LifecycleService
from app.services.manuscript_store import InMemoryManuscriptStore, ManuscriptStore
from app.services.manuscript_store_supabase import SupabaseManuscriptStore
from app.services.profile_directory import (
    InMemoryProfileDirectory,
    ProfileDirectory,
    SupabaseProfileDirectory,
)
from app.services.public_service import PublicManuscriptService
from app.services.reviewer_approval_service import ReviewerApprovalService


def _use_supabase() -> bool:
    return app_config.store_backend == "supabase"


@lru_cache(maxsize=None)
def get_manuscript_store() -> ManuscriptStore:
    if _use_supabase():
        return SupabaseManuscriptStore()
    return InMemoryManuscriptStore()


@lru_cache(maxsize=None)
def get_category_directory() -> JournalCategoryDirectory:
    if _use_supabase():
        return SupabaseJournalCategoryDirectory()
    return InMemoryJournalCategoryDirectory(MemorySeedConfig.from_env().journal_category_ids)


@lru_cache(maxsize=None)
def get_profile_directory() -> ProfileDirectory:
    if _use_supabase():
        return SupabaseProfileDirectory()
    seed = MemorySeedConfig.from_env()
    return InMemoryProfileDirectory({user_id: "admin" for user_id in seed.admin_user_ids})


def get_lifecycle_service(
    store: ManuscriptStore = Depends(get_manuscript_store),
) -> LifecycleService:
    return LifecycleService(store)


def get_ingestion_service(
    store: ManuscriptStore = Depends(get_manuscript_store),
    categories: JournalCategoryDirectory = Depends(get_category_directory),
) -> IngestionService:
    return IngestionService(store, categories)


def get_public_service(
    store: ManuscriptStore = Depends(get_manuscript_store),
) -> PublicManuscriptService:
    return PublicManuscriptService(store)


def get_reviewer_approval_service(
    profiles: ProfileDirectory = Depends(get_profile_directory),
) -> ReviewerApprovalService:
    return ReviewerApprovalService(profiles)
