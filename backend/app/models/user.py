from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from pydantic.config import ConfigDict

from app.models.manuscript import ManuscriptStatus


class AccountRole(str, Enum):
    AUTHOR = "author"
    REVIEWER = "reviewer"
    ADMIN = "admin"


class ApprovalStatus(str, Enum):
    APPROVED = "approved"
    PENDING = "pending"


# user_profiles.role 中的历史取值：待审批审稿人
REVIEWER_INACTIVE = "reviewer_inactive"


@dataclass(frozen=True)
class Identity:
    """
    已认证请求方身份 {userId, accountRole, approvalStatus}。

    中文注释:
    - reviewer_inactive 不再是一个独立角色字符串，而是 reviewer + pending。
    - account_role 为 None 表示“已认证但无任何已知角色”（库里是未知取值）。
    - pending / 无角色的身份可以读取自己的 profile，但不具备任何特权。
    """

    user_id: str
    account_role: Optional[AccountRole]
    approval_status: ApprovalStatus = ApprovalStatus.APPROVED
    email: Optional[str] = None

    @property
    def is_approved(self) -> bool:
        return self.account_role is not None and self.approval_status == ApprovalStatus.APPROVED

    @property
    def is_admin(self) -> bool:
        return self.is_approved and self.account_role == AccountRole.ADMIN

    @property
    def is_active_reviewer(self) -> bool:
        return self.is_approved and self.account_role == AccountRole.REVIEWER

    @property
    def is_author(self) -> bool:
        return self.is_approved and self.account_role == AccountRole.AUTHOR

    @property
    def is_editorial(self) -> bool:
        """admin 或已审批 reviewer：可以浏览全部稿件"""
        return self.is_admin or self.is_active_reviewer

    @property
    def stored_role(self) -> str:
        if self.account_role == AccountRole.REVIEWER and self.approval_status == ApprovalStatus.PENDING:
            return REVIEWER_INACTIVE
        if self.account_role is None:
            return ""
        return self.account_role.value

    @classmethod
    def from_stored_role(cls, user_id: str, role: Optional[str], email: Optional[str] = None) -> "Identity":
        raw = str(role or "").strip().lower()
        if raw == REVIEWER_INACTIVE:
            return cls(user_id, AccountRole.REVIEWER, ApprovalStatus.PENDING, email)
        try:
            account_role = AccountRole(raw)
        except ValueError:
            return cls(user_id, None, ApprovalStatus.PENDING, email)
        return cls(user_id, account_role, ApprovalStatus.APPROVED, email)


class IdentityResponse(BaseModel):
    user_id: str
    email: Optional[str] = None
    account_role: Optional[AccountRole] = None
    approval_status: ApprovalStatus
    role: str
    # 当前身份可设置的目标状态（前端据此渲染状态下拉框）
    allowed_statuses: list[ManuscriptStatus] = []

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @classmethod
    def from_identity(
        cls, identity: Identity, allowed_statuses: Iterable[ManuscriptStatus] = ()
    ) -> "IdentityResponse":
        allowed = set(allowed_statuses)
        return cls(
            user_id=identity.user_id,
            email=identity.email,
            account_role=identity.account_role,
            approval_status=identity.approval_status,
            role=identity.stored_role,
            allowed_statuses=[s for s in ManuscriptStatus if s in allowed],
        )
