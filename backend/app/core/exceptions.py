"""
稿件生命周期错误分类

中文注释:
- 每个错误都有稳定的 kind 字符串 + HTTP 状态码，调用方据此渲染具体提示。
- 所有拒绝都是终态决定，服务层不会把拒绝降级为“成功但无操作”。
- 只有 StoreUnavailable（以及重新读取后的 ConcurrentModification）可以重试；
  StoreRejected 是存储层的确定性拒绝，重试不会成功。
"""

from __future__ import annotations

from typing import Any, Optional


class LifecycleError(Exception):
    """Base class for every error the manuscript core surfaces to callers."""

    kind: str = "LifecycleError"
    status_code: int = 400
    retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        current_status: Optional[str] = None,
    ) -> None:
        self.message = message
        self.field = field
        self.current_status = current_status
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "detail": self.message,
            "type": "lifecycle_error",
            "kind": self.kind,
            "field": self.field,
            "currentStatus": self.current_status,
        }


class Unauthenticated(LifecycleError):
    kind = "Unauthenticated"
    status_code = 401

    def __init__(self, message: str = "Missing or invalid credential") -> None:
        super().__init__(message)


class RoleNotPermitted(LifecycleError):
    kind = "Forbidden.RoleNotPermitted"
    status_code = 403

    def __init__(self, message: str = "Role is not permitted to perform this action") -> None:
        super().__init__(message)


class NotOwner(LifecycleError):
    kind = "Forbidden.NotOwner"
    status_code = 403

    def __init__(self, message: str = "Manuscript belongs to another author") -> None:
        super().__init__(message)


class ManuscriptNotFound(LifecycleError):
    kind = "NotFound"
    status_code = 404

    def __init__(self, manuscript_id: str, message: Optional[str] = None) -> None:
        self.manuscript_id = manuscript_id
        super().__init__(message or "Manuscript not found")


class InvalidCurrentState(LifecycleError):
    kind = "Conflict.InvalidCurrentState"
    status_code = 409

    def __init__(self, message: str, *, current_status: Optional[str] = None) -> None:
        super().__init__(message, current_status=current_status)


class PublishedNotDeletable(LifecycleError):
    kind = "Conflict.PublishedNotDeletable"
    status_code = 409

    def __init__(self, message: str = "Published manuscripts cannot be deleted") -> None:
        super().__init__(message, current_status="Published")


class ConcurrentModification(LifecycleError):
    """The record changed between load and write; the caller lost the race."""

    kind = "Conflict.ConcurrentModification"
    status_code = 409
    retryable = True

    def __init__(self, manuscript_id: str, *, current_status: Optional[str] = None) -> None:
        self.manuscript_id = manuscript_id
        super().__init__(
            "Manuscript was modified concurrently; reload and retry",
            current_status=current_status,
        )


class InvalidInput(LifecycleError):
    kind = "InvalidInput"
    status_code = 422

    def __init__(self, field: str, reason: str) -> None:
        self.reason = reason
        super().__init__(f"{field}: {reason}", field=field)


class StoreUnavailable(LifecycleError):
    kind = "Unavailable"
    status_code = 503
    retryable = True

    def __init__(self, message: str = "Manuscript store is unavailable") -> None:
        super().__init__(message)


class StoreRejected(LifecycleError):
    """The store refused the request for a reason retrying cannot fix (bad value, constraint, permission)."""

    kind = "StoreRejected"
    status_code = 500

    def __init__(self, message: str = "Manuscript store rejected the request") -> None:
        super().__init__(message)
