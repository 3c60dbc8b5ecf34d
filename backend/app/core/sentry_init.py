from typing import Any, Optional

from app.core.config import SentryConfig

FILTERED = "[Filtered]"

# 凭证类字段 + 稿件正文/合作者联系方式，一律不上报
_CREDENTIAL_KEYS = frozenset(
    {"authorization", "cookie", "set-cookie", "token", "access_token", "refresh_token", "jwt", "service_role_key"}
)
_CONTENT_KEYS = frozenset({"abstract", "coauthors", "co_authors", "email", "keywords"})
_SENSITIVE_KEYS = _CREDENTIAL_KEYS | _CONTENT_KEYS

_MAX_TEXT = 2000


def _is_sensitive(key: Any) -> bool:
    return str(key).strip().lower() in _SENSITIVE_KEYS


def _scrub(value: Any) -> Any:
    """
    递归清洗 extra / contexts：敏感键整体替换，超长文本截断为占位符。
    """
    if isinstance(value, dict):
        return {str(k): (FILTERED if _is_sensitive(k) else _scrub(v)) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_scrub(v) for v in value]
    if isinstance(value, str) and len(value) > _MAX_TEXT:
        return FILTERED
    return value


def before_send(event: dict[str, Any], hint: dict[str, Any]) -> Optional[dict[str, Any]]:
    request = event.get("request")
    if isinstance(request, dict):
        headers = request.get("headers")
        if isinstance(headers, dict):
            request["headers"] = {k: v for k, v in headers.items() if not _is_sensitive(k)}
        # 请求体可能包含未发表稿件内容，整体丢弃
        for key in ("data", "body", "cookies"):
            if key in request:
                request[key] = FILTERED

    for section in ("extra", "contexts"):
        if isinstance(event.get(section), dict):
            event[section] = _scrub(event[section])
    return event


def init_sentry() -> bool:
    """
    按 SentryConfig 初始化错误上报；未启用或没有 DSN 时返回 False。

    初始化异常由调用方（main.py）捕获，不影响服务启动。
    """
    cfg = SentryConfig.from_env()
    if not (cfg.enabled and cfg.dsn):
        return False

    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration

    sentry_sdk.init(
        dsn=cfg.dsn,
        environment=cfg.environment,
        traces_sample_rate=cfg.traces_sample_rate,
        integrations=[FastApiIntegration()],
        send_default_pii=False,
        max_request_body_size="never",
        before_send=before_send,
    )
    return True
