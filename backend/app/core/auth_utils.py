import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from app.core.config import app_config, get_jwt_secret
from app.core.exceptions import Unauthenticated
from app.lib.api_client import supabase_admin

logger = logging.getLogger("manuscript_core.auth")

# === Auth 核心配置 ===
# 中文注释:
# 1. 密钥来源于 Supabase Project Settings 中的 JWT Secret。
# 2. auto_error=False：缺少 Authorization 头时统一抛 Unauthenticated(401)，
#    而不是由 HTTPBearer 自行返回 403。
ALGORITHM = "HS256"

security = HTTPBearer(auto_error=False)


def verify_token(token: str) -> dict:
    """
    校验 bearer 凭证，返回 {"id", "email"}；失败抛 Unauthenticated。
    """
    if not token:
        raise Unauthenticated("Missing token")

    try:
        header = jwt.get_unverified_header(token)
    except JWTError as e:
        logger.info("JWT header decode failed: %s", e)
        raise Unauthenticated("Token 验证失败或已过期")

    # 中文注释:
    # 1. Supabase 新版可能使用 JWT Signing Keys（非 HS256），需要走 Auth API 获取用户。
    # 2. 若仍为 HS256，则用本地密钥校验以减少外部请求。
    if header.get("alg") == ALGORITHM:
        try:
            payload = jwt.decode(token, get_jwt_secret(), algorithms=[ALGORITHM], audience="authenticated")
        except JWTError as e:
            logger.info("JWT 验证失败: %s", e)
            raise Unauthenticated("Token 验证失败或已过期")
        user_id = payload.get("sub")
        if not user_id:
            raise Unauthenticated("无效的身份载荷")
        return {"id": str(user_id), "email": payload.get("email")}

    if app_config.store_backend != "supabase":
        raise Unauthenticated("Unsupported token algorithm")

    # fallback: 通过 Supabase Auth API 校验并获取用户信息
    try:
        response = supabase_admin.auth.get_user(token)
        user = response.user if response else None
    except Exception as e:
        # 中文注释: 若 Supabase 配置缺失/网络异常，不应返回 500 泄露内部错误，统一视为鉴权失败
        logger.warning("JWT fallback 校验失败: %s", e)
        raise Unauthenticated("Token 验证失败或已过期")

    if not user:
        raise Unauthenticated("无效的身份载荷")
    return {"id": str(user.id), "email": user.email}


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> dict:
    """
    解码并验证 Bearer Token
    返回解析后的 User Payload
    """
    if credentials is None or not credentials.credentials:
        raise Unauthenticated("Missing token")
    return verify_token(credentials.credentials)
