import time
import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.exceptions import InvalidInput, LifecycleError

# === 结构化日志配置 ===
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("manuscript_core")


def lifecycle_error_response(exc: LifecycleError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def _field_from_loc(loc) -> str:
    # ("body", "coAuthors", 0, "email") -> "coAuthors.0.email"
    parts = [str(p) for p in (loc or ())]
    if len(parts) > 1 and parts[0] in {"body", "query", "path", "header"}:
        parts = parts[1:]
    return ".".join(parts) or "body"


def _field_from_error(error: dict) -> str:
    # 请求体不是合法 JSON 时 loc 是 ("body", <字符偏移>)，偏移量不是字段名
    if error.get("type") == "json_invalid":
        return "body"
    return _field_from_loc(error.get("loc"))


async def lifecycle_error_handler(request: Request, exc: LifecycleError) -> JSONResponse:
    return lifecycle_error_response(exc)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # 路由 404 / 405 等框架错误
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "type": "http_exception"},
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    请求体校验失败 -> InvalidInput(field, reason)

    中文注释: 只报告第一个出错字段，和服务层 InvalidInput 保持同一响应结构。
    """
    errors = exc.errors()
    first = errors[0] if errors else {}
    err = InvalidInput(_field_from_error(first), str(first.get("msg") or "invalid value"))
    return lifecycle_error_response(err)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LifecycleError, lifecycle_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)


class ExceptionHandlerMiddleware(BaseHTTPMiddleware):
    """
    请求日志 + 兜底异常处理。

    中文注释:
    - 每个请求记录 method / path / status / 耗时。
    - 领域错误保持 {detail, type, kind, ...} 结构；其余未处理异常统一 500，不泄露内部细节。
    """

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except LifecycleError as exc:
            response = lifecycle_error_response(exc)
        except Exception as e:
            logger.error("Unhandled exception on %s %s: %s", request.method, request.url.path, e, exc_info=True)
            response = JSONResponse(
                status_code=500,
                content={"detail": "内部系统错误，请联系管理员", "type": "server_error"},
            )
        logger.info(
            "%s %s -> %s (%.4fs)",
            request.method,
            request.url.path,
            response.status_code,
            time.perf_counter() - started,
        )
        return response
