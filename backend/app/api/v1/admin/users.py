import asyncio

from fastapi import APIRouter, Depends

from app.api.deps import get_reviewer_approval_service
from app.core import role_matrix
from app.core.roles import get_current_identity
from app.models.user import Identity, IdentityResponse
from app.services.reviewer_approval_service import ReviewerApprovalService

router = APIRouter(tags=["Admin User Management"])


@router.post("/admin/users/{user_id}/approve-reviewer", response_model=IdentityResponse)
async def approve_reviewer(
    user_id: str,
    identity: Identity = Depends(get_current_identity),
    service: ReviewerApprovalService = Depends(get_reviewer_approval_service),
):
    """
    admin 审批：reviewer_inactive -> reviewer。
    """
    approved = await asyncio.to_thread(service.approve_reviewer, identity, user_id)
    return IdentityResponse.from_identity(approved, role_matrix.permitted_targets(approved))
