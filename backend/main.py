import logging

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# .env 必须先于 app.core.config 加载（配置在导入时读取环境变量）
load_dotenv()

logger = logging.getLogger("manuscript_core")

try:
    from app.core.sentry_init import init_sentry

    if init_sentry():
        logger.info("[sentry] enabled")
except Exception as e:
    # 中文注释: 错误上报是可选能力，初始化失败只记日志，服务照常启动
    logger.warning("[sentry] init failed (ignored): %s", e)

from app.api.v1 import auth, manuscripts, public  # noqa: E402
from app.api.v1.admin import stats as admin_stats  # noqa: E402
from app.api.v1.admin import users as admin_users  # noqa: E402
from app.api.v1.endpoints import system  # noqa: E402
from app.core.config import CorsConfig, app_config  # noqa: E402
from app.core.middleware import ExceptionHandlerMiddleware, register_exception_handlers  # noqa: E402

API_PREFIX = "/api/v1"

app = FastAPI(
    title="Manuscript Core API",
    description="Manuscript lifecycle and authorization backend",
    version="1.0.0",
)

# 中间件：领域错误 -> {detail, type, kind, field, currentStatus}，其余未处理异常 -> 500
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(CorsConfig.from_env().allow_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)
app.add_middleware(ExceptionHandlerMiddleware)

for module in (auth, manuscripts, public, admin_users, admin_stats, system):
    app.include_router(module.router, prefix=API_PREFIX)

logger.info("Manuscript Core API configured: env=%s store=%s", app_config.env, app_config.store_backend)


@app.get("/")
async def root():
    return {"message": "Manuscript Core API is running", "docs": "/docs"}
