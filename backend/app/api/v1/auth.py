import asyncio

from fastapi import APIRouter, Depends

from app.api.deps import get_reviewer_approval_service
from app.core import role_matrix
from app.core.roles import get_current_identity
from app.models.user import Identity, IdentityResponse
from app.services.reviewer_approval_service import ReviewerApprovalService

router = APIRouter(tags=["Auth"])


@router.get("/auth/me", response_model=IdentityResponse)
async def get_me(identity: Identity = Depends(get_current_identity)):
    """
    返回当前身份。

    中文注释: 待审批审稿人也能正常访问（可认证但无特权），前端据此展示“等待管理员审批”。
    """
    return IdentityResponse.from_identity(identity, role_matrix.permitted_targets(identity))


@router.post("/reviewers/signup", response_model=IdentityResponse, status_code=201)
async def reviewer_signup(
    identity: Identity = Depends(get_current_identity),
    service: ReviewerApprovalService = Depends(get_reviewer_approval_service),
):
    """
    当前作者申请成为审稿人，进入 reviewer_inactive（待 admin 审批）。
    """
    updated = await asyncio.to_thread(service.request_reviewer_role, identity)
    return IdentityResponse.from_identity(updated, role_matrix.permitted_targets(updated))
