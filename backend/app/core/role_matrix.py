from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from app.core.exceptions import (
    InvalidCurrentState,
    LifecycleError,
    NotOwner,
    PublishedNotDeletable,
    RoleNotPermitted,
)
from app.models.manuscript import Manuscript, ManuscriptStatus
from app.models.user import AccountRole, Identity

# 中文注释：
# - 这里集中定义“角色 -> 可设置的目标状态”权限矩阵，所有入口（admin/reviewer/author）共用，
#   避免归属/角色判断散落在各路由。
# - 状态机是“自由裁量”的：只看目标状态是否在角色集合内 + 守卫条件，不看当前状态的邻接关系。
# - 待审批审稿人（reviewer_inactive）不在矩阵中，任何变更一律拒绝。

ROLE_TARGET_STATUSES: dict[AccountRole, frozenset[ManuscriptStatus]] = {
    AccountRole.ADMIN: frozenset(ManuscriptStatus),
    AccountRole.REVIEWER: frozenset(
        {
            ManuscriptStatus.IN_REVIEW,
            ManuscriptStatus.ACCEPTED,
            ManuscriptStatus.SUSPENDED,
            ManuscriptStatus.PUBLISHED,
        }
    ),
    AccountRole.AUTHOR: frozenset({ManuscriptStatus.SUSPENDED}),
}

# 作者只能删除仍处于最早两个阶段的稿件
AUTHOR_DELETABLE_STATUSES = frozenset({ManuscriptStatus.SUBMITTED, ManuscriptStatus.IN_REVIEW})


@dataclass(frozen=True)
class Decision:
    """授权结果：allowed=True 或携带具体拒绝原因（可直接抛出的错误）"""

    allowed: bool
    error: Optional[LifecycleError] = None

    @property
    def kind(self) -> Optional[str]:
        return self.error.kind if self.error else None

    def raise_if_denied(self) -> None:
        if self.error is not None:
            raise self.error


ALLOW = Decision(allowed=True)


def _deny(error: LifecycleError) -> Decision:
    return Decision(allowed=False, error=error)


def permitted_targets(identity: Identity) -> frozenset[ManuscriptStatus]:
    """
    返回当前身份可设置的目标状态集合（供前端 capability 输出）。
    """
    if not identity.is_approved:
        return frozenset()
    return ROLE_TARGET_STATUSES.get(identity.account_role, frozenset())


def is_owner(identity: Identity, manuscript: Manuscript) -> bool:
    return manuscript.submitted_by_id == identity.user_id


def authorize_status_change(
    identity: Identity, manuscript: Manuscript, requested: ManuscriptStatus
) -> Decision:
    """
    判定身份是否可把稿件设为 requested 状态。纯函数，无副作用。

    作者的判定顺序:
    1) 非本人稿件 -> NotOwner（无论请求什么状态）
    2) 目标不是 Suspended -> RoleNotPermitted
    3) 当前不是 Published -> InvalidCurrentState（作者只能“撤回已发表”）
    """
    if not identity.is_approved:
        return _deny(RoleNotPermitted("Account has no approved role"))

    if identity.account_role == AccountRole.AUTHOR:
        if not is_owner(identity, manuscript):
            return _deny(NotOwner())
        if requested not in ROLE_TARGET_STATUSES[AccountRole.AUTHOR]:
            return _deny(RoleNotPermitted(f"Authors cannot set status '{requested.value}'"))
        if manuscript.status != ManuscriptStatus.PUBLISHED:
            return _deny(
                InvalidCurrentState(
                    "Only published manuscripts can be suspended by their author",
                    current_status=manuscript.status.value,
                )
            )
        return ALLOW

    allowed = ROLE_TARGET_STATUSES.get(identity.account_role, frozenset())
    if requested not in allowed:
        return _deny(
            RoleNotPermitted(f"Role '{identity.account_role.value}' cannot set status '{requested.value}'")
        )
    return ALLOW


def authorize_delete(identity: Identity, manuscript: Manuscript) -> Decision:
    """
    删除守卫：只有归属作者可以删除，且仅限 Submitted / In Review。

    判定顺序: 非本人作者 -> NotOwner; Published -> PublishedNotDeletable;
    非作者 -> RoleNotPermitted; 其他阶段 -> InvalidCurrentState。
    """
    author = identity.is_author
    if author and not is_owner(identity, manuscript):
        return _deny(NotOwner())
    if manuscript.status == ManuscriptStatus.PUBLISHED:
        return _deny(PublishedNotDeletable())
    if not author:
        return _deny(RoleNotPermitted("Only the submitting author can delete a manuscript"))
    if manuscript.status not in AUTHOR_DELETABLE_STATUSES:
        return _deny(
            InvalidCurrentState(
                f"Manuscripts in status '{manuscript.status.value}' cannot be deleted",
                current_status=manuscript.status.value,
            )
        )
    return ALLOW


def can_view(identity: Identity, manuscript: Manuscript) -> Decision:
    """
    读取可见性：admin / 已审批 reviewer 可看全部；作者只能看自己的稿件。
    """
    if identity.is_editorial:
        return ALLOW
    if identity.is_author:
        if is_owner(identity, manuscript):
            return ALLOW
        return _deny(NotOwner("You do not have permission to view this manuscript"))
    return _deny(RoleNotPermitted("Account has no approved role"))


def can_list_own(identity: Identity) -> Decision:
    """
    “我的稿件”列表与作者统计：与 can_view 一致，任何已审批角色都可以看自己名下的稿件；
    待审批 / 无角色的身份一律拒绝（申请审稿人期间不能再以作者身份浏览）。
    """
    if identity.is_approved:
        return ALLOW
    return _deny(RoleNotPermitted("Account has no approved role"))


def can_list_all(identity: Identity) -> Decision:
    if identity.is_editorial:
        return ALLOW
    return _deny(RoleNotPermitted("Reviewer or admin access required"))


def can_submit(identity: Identity) -> Decision:
    if identity.is_author or identity.is_admin:
        return ALLOW
    return _deny(RoleNotPermitted("Only authors can submit manuscripts"))


def can_view_admin_stats(identity: Identity) -> Decision:
    if identity.is_admin:
        return ALLOW
    return _deny(RoleNotPermitted("Admin access required"))
