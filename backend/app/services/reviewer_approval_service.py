from __future__ import annotations

import logging

from app.core.exceptions import InvalidCurrentState, ManuscriptNotFound, RoleNotPermitted
from app.models.user import AccountRole, ApprovalStatus, Identity, REVIEWER_INACTIVE
from app.services.profile_directory import ProfileDirectory

logger = logging.getLogger("manuscript_core.reviewers")


class UserNotFound(ManuscriptNotFound):
    """复用 NotFound 语义（kind=NotFound），只改提示文案"""

    def __init__(self, user_id: str) -> None:
        super().__init__(user_id, "User not found")


class ReviewerApprovalService:
    """
    审稿人注册与审批。

    中文注释:
    - 注册：普通作者申请成为审稿人 -> role='reviewer_inactive'（已认证但无特权）。
    - 审批：仅 admin 可把 reviewer_inactive 提升为 reviewer。
    """

    def __init__(self, profiles: ProfileDirectory) -> None:
        self.profiles = profiles

    def request_reviewer_role(self, identity: Identity) -> Identity:
        if identity.account_role == AccountRole.REVIEWER and identity.approval_status == ApprovalStatus.PENDING:
            # 重复申请保持幂等
            return identity
        if not identity.is_author:
            raise InvalidCurrentState(
                "Only author accounts can apply for reviewer access",
                current_status=identity.stored_role or None,
            )
        self.profiles.ensure_profile(identity.user_id, identity.email)
        self.profiles.set_role(identity.user_id, REVIEWER_INACTIVE)
        logger.info("[Reviewers] user %s applied for reviewer access", identity.user_id)
        return Identity.from_stored_role(identity.user_id, REVIEWER_INACTIVE, identity.email)

    def approve_reviewer(self, admin: Identity, user_id: str) -> Identity:
        if not admin.is_admin:
            raise RoleNotPermitted("Admin access required")
        role = self.profiles.get_role(user_id)
        if role is None:
            raise UserNotFound(user_id)
        if role != REVIEWER_INACTIVE:
            raise InvalidCurrentState("User is not awaiting reviewer approval", current_status=role)
        if not self.profiles.set_role(user_id, AccountRole.REVIEWER.value):
            raise UserNotFound(user_id)
        logger.info("[Reviewers] admin %s approved reviewer %s", admin.user_id, user_id)
        return Identity.from_stored_role(user_id, AccountRole.REVIEWER.value)
