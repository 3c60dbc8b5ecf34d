import logging

from fastapi import Depends

from app.api.deps import get_profile_directory
from app.core.auth_utils import get_current_user
from app.models.user import Identity
from app.services.profile_directory import ProfileDirectory

logger = logging.getLogger("manuscript_core.auth")


def resolve_identity(current_user: dict, profiles: ProfileDirectory) -> Identity:
    """
    已认证用户 -> Identity {userId, accountRole, approvalStatus}

    中文注释:
    1) 首次访问时自动创建 user_profiles 记录，默认 role='author'。
    2) role='reviewer_inactive' 解析为 reviewer + pending：可认证、可读自己的 profile，
       但没有任何特权（不会被当作登录失败）。
    3) 未知 role 取值解析为“无角色”，同样不具备任何特权。
    """
    user_id = str(current_user["id"])
    email = current_user.get("email")
    role = profiles.ensure_profile(user_id, email)
    identity = Identity.from_stored_role(user_id, role, email)
    if not identity.is_approved:
        logger.info("user %s authenticated without privileged role (role=%r)", user_id, role)
    return identity


async def get_current_identity(
    current_user: dict = Depends(get_current_user),
    profiles: ProfileDirectory = Depends(get_profile_directory),
) -> Identity:
    return resolve_identity(current_user, profiles)
