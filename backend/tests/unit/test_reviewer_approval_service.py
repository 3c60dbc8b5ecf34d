import pytest

from app.core.exceptions import InvalidCurrentState, ManuscriptNotFound, RoleNotPermitted
from app.models.user import AccountRole, ApprovalStatus
from app.services.reviewer_approval_service import ReviewerApprovalService
from factories import ADMIN_ID, AUTHOR_ID, PENDING_REVIEWER_ID, REVIEWER_ID, identity_for


@pytest.fixture
def service(profiles):
    return ReviewerApprovalService(profiles)


def test_author_applies_for_reviewer_access(service, profiles):
    identity = service.request_reviewer_role(identity_for(AUTHOR_ID))

    assert identity.account_role == AccountRole.REVIEWER
    assert identity.approval_status == ApprovalStatus.PENDING
    assert profiles.get_role(AUTHOR_ID) == "reviewer_inactive"


def test_repeated_application_is_idempotent(service, profiles):
    identity = service.request_reviewer_role(identity_for(PENDING_REVIEWER_ID))
    assert identity.approval_status == ApprovalStatus.PENDING
    assert profiles.get_role(PENDING_REVIEWER_ID) == "reviewer_inactive"


@pytest.mark.parametrize("user_id", [ADMIN_ID, REVIEWER_ID])
def test_non_authors_cannot_apply(service, user_id):
    with pytest.raises(InvalidCurrentState):
        service.request_reviewer_role(identity_for(user_id))


def test_admin_approves_pending_reviewer(service, profiles):
    approved = service.approve_reviewer(identity_for(ADMIN_ID), PENDING_REVIEWER_ID)

    assert approved.is_active_reviewer is True
    assert profiles.get_role(PENDING_REVIEWER_ID) == "reviewer"


def test_only_admin_may_approve(service, profiles):
    with pytest.raises(RoleNotPermitted):
        service.approve_reviewer(identity_for(REVIEWER_ID), PENDING_REVIEWER_ID)
    assert profiles.get_role(PENDING_REVIEWER_ID) == "reviewer_inactive"


def test_approve_unknown_user(service):
    with pytest.raises(ManuscriptNotFound) as exc:
        service.approve_reviewer(identity_for(ADMIN_ID), "nobody")
    assert exc.value.message == "User not found"


def test_approve_user_not_awaiting_approval(service):
    with pytest.raises(InvalidCurrentState) as exc:
        service.approve_reviewer(identity_for(ADMIN_ID), AUTHOR_ID)
    assert exc.value.current_status == "author"
