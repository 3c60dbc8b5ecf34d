import os
from dataclasses import dataclass
from typing import Optional


def _env_bool(key: str, default: bool) -> bool:
    raw = os.environ.get(key)
    if raw is None:
        return default
    lowered = raw.strip().lower()
    return lowered in {"1", "true", "yes", "y", "on"}


def _env_int(key: str, default: int) -> int:
    raw = (os.environ.get(key) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(key: str, default: float) -> float:
    raw = (os.environ.get(key) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class AppConfig:
    """
    Application Environment Config
    """
    env: str  # 'development', 'staging', 'production'
    supabase_url: str
    supabase_key: str
    store_backend: str  # 'supabase' | 'memory'

    @staticmethod
    def from_env() -> "AppConfig":
        env = (os.environ.get("APP_ENV") or "development").strip().lower()

        supabase_url = (os.environ.get("SUPABASE_URL") or "").strip()
        supabase_key = (os.environ.get("SUPABASE_SERVICE_ROLE_KEY") or "").strip()

        # 中文注释:
        # - 未配置 SUPABASE_URL 时默认走进程内存储（本地开发/测试）。
        # - 显式设置 STORE_BACKEND 时以显式值为准；非法值回退到默认推断。
        backend = (os.environ.get("STORE_BACKEND") or "").strip().lower()
        if backend not in {"supabase", "memory"}:
            backend = "supabase" if supabase_url else "memory"

        return AppConfig(
            env=env,
            supabase_url=supabase_url,
            supabase_key=supabase_key,
            store_backend=backend,
        )

# Global Config Instance
app_config = AppConfig.from_env()


@dataclass(frozen=True)
class PaginationConfig:
    """
    列表接口分页配置

    中文注释:
    - page 从 1 开始；limit 超过上限时截断，而不是报错。
    """

    default_page_size: int
    max_page_size: int

    @staticmethod
    def from_env() -> "PaginationConfig":
        default_page_size = _env_int("DEFAULT_PAGE_SIZE", 20)
        max_page_size = _env_int("MAX_PAGE_SIZE", 100)
        if max_page_size < 1:
            max_page_size = 100
        if default_page_size < 1 or default_page_size > max_page_size:
            default_page_size = min(20, max_page_size)
        return PaginationConfig(
            default_page_size=default_page_size,
            max_page_size=max_page_size,
        )


@dataclass(frozen=True)
class SentryConfig:
    """
    Sentry 错误上报配置（可选）
    """

    enabled: bool
    dsn: Optional[str]
    environment: str
    traces_sample_rate: float

    @staticmethod
    def from_env() -> "SentryConfig":
        dsn = (os.environ.get("SENTRY_DSN") or "").strip() or None
        environment = (
            os.environ.get("SENTRY_ENVIRONMENT")
            or os.environ.get("APP_ENV")
            or "development"
        ).strip()
        rate = _env_float("SENTRY_TRACES_SAMPLE_RATE", 0.0)
        if rate < 0 or rate > 1:
            rate = 0.0
        return SentryConfig(
            enabled=_env_bool("SENTRY_ENABLED", bool(dsn)),
            dsn=dsn,
            environment=environment,
            traces_sample_rate=rate,
        )


def get_jwt_secret() -> str:
    """
    Bearer JWT 校验密钥（HS256）。

    中文注释:
    - 生产环境必须显式配置 SUPABASE_JWT_SECRET；本地/测试使用固定兜底值，
      与测试 fixture 保持一致。
    """

    return os.environ.get("SUPABASE_JWT_SECRET", "mock-secret-replace-later")


@dataclass(frozen=True)
class CorsConfig:
    """
    允许跨域的前端来源

    中文注释: FRONTEND_ORIGIN（单个）与 FRONTEND_ORIGINS（逗号分隔）合并去重；都未配置时只放行本地前端。
    """

    allow_origins: tuple[str, ...]

    @staticmethod
    def from_env() -> "CorsConfig":
        raw = [os.environ.get("FRONTEND_ORIGIN") or ""]
        raw.extend((os.environ.get("FRONTEND_ORIGINS") or "").split(","))
        origins = [o.strip().rstrip("/") for o in raw if o and o.strip()]
        return CorsConfig(allow_origins=tuple(dict.fromkeys(origins)) or ("http://localhost:3000",))


def _env_list(key: str, default: tuple[str, ...] = ()) -> tuple[str, ...]:
    raw = os.environ.get(key)
    if raw is None:
        return default
    return tuple(dict.fromkeys(item.strip() for item in raw.split(",") if item.strip()))


@dataclass(frozen=True)
class MemorySeedConfig:
    """
    进程内存储模式（STORE_BACKEND=memory）的初始数据

    中文注释:
    - JOURNAL_CATEGORY_IDS：逗号分隔的期刊分类 id；未设置时提供一个 "default" 分类，
      保证本地开发开箱即可投稿。显式设为空字符串则不预置任何分类。
    - ADMIN_USER_IDS：逗号分隔的用户 id，预置为 admin（内存模式下没有别的途径产生管理员）。
    """

    journal_category_ids: tuple[str, ...]
    admin_user_ids: tuple[str, ...]

    @staticmethod
    def from_env() -> "MemorySeedConfig":
        return MemorySeedConfig(
            journal_category_ids=_env_list("JOURNAL_CATEGORY_IDS", ("default",)),
            admin_user_ids=_env_list("ADMIN_USER_IDS"),
        )
