import os
import sys
from datetime import timedelta
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# 中文注释: 测试固定走进程内存储，必须在导入 main 之前设置（app_config 在导入时读取）
os.environ["STORE_BACKEND"] = "memory"
os.environ.setdefault("SUPABASE_JWT_SECRET", "mock-secret-replace-later")

_TESTS_DIR = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, os.path.dirname(_TESTS_DIR))
sys.path.insert(0, _TESTS_DIR)
from main import app  # noqa: E402

from app.api.deps import get_category_directory, get_manuscript_store, get_profile_directory  # noqa: E402
from app.models.manuscript import Manuscript  # noqa: E402
from app.services.journal_category_service import InMemoryJournalCategoryDirectory  # noqa: E402
from app.services.manuscript_store import InMemoryManuscriptStore  # noqa: E402
from app.services.profile_directory import InMemoryProfileDirectory  # noqa: E402
from factories import (  # noqa: E402
    AUTHOR_ID,
    CATEGORY_ID,
    SEEDED_ROLES,
    generate_test_token,
    make_manuscript,
)

# === 全局测试配置 ===
# 中文注释:
# 1. 显式使用 pytest_asyncio.fixture，兼容 STRICT 模式。
# 2. 每个测试拿到一份全新的内存存储/目录，通过 dependency_overrides 注入应用。
# 3. JWT 令牌用与后端相同的默认密钥签名；常量与数据工厂见 factories.py。


@pytest.fixture
def store() -> InMemoryManuscriptStore:
    return InMemoryManuscriptStore()


@pytest.fixture
def categories() -> InMemoryJournalCategoryDirectory:
    return InMemoryJournalCategoryDirectory([CATEGORY_ID])


@pytest.fixture
def profiles() -> InMemoryProfileDirectory:
    return InMemoryProfileDirectory(dict(SEEDED_ROLES))


@pytest.fixture
def seed(store):
    """
    往内存存储里放一条稿件并返回
    """

    def _seed(**kwargs) -> Manuscript:
        return store.insert(make_manuscript(**kwargs))

    return _seed


@pytest_asyncio.fixture
async def client(store, categories, profiles) -> AsyncGenerator:
    """
    提供一个注入了内存存储的异步测试客户端
    """
    app.dependency_overrides[get_manuscript_store] = lambda: store
    app.dependency_overrides[get_category_directory] = lambda: categories
    app.dependency_overrides[get_profile_directory] = lambda: profiles
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://testserver",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def expired_token():
    """
    提供过期的认证令牌用于测试
    """
    return generate_test_token(AUTHOR_ID, expires_in=timedelta(hours=-1))


@pytest.fixture
def invalid_token():
    return "invalid.jwt.token"
