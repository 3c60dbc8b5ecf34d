"""
测试数据与令牌工厂（被 conftest 和各测试模块共用）
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import uuid4

import jwt

from app.models.manuscript import CoAuthor, Manuscript, ManuscriptStatus
from app.models.user import Identity

API = "/api/v1"

ADMIN_ID = "00000000-0000-0000-0000-00000000000a"
REVIEWER_ID = "00000000-0000-0000-0000-00000000000b"
PENDING_REVIEWER_ID = "00000000-0000-0000-0000-00000000000c"
AUTHOR_ID = "00000000-0000-0000-0000-00000000000d"
OTHER_AUTHOR_ID = "00000000-0000-0000-0000-00000000000e"

CATEGORY_ID = "journal-cat-1"

SEEDED_ROLES = {
    ADMIN_ID: "admin",
    REVIEWER_ID: "reviewer",
    PENDING_REVIEWER_ID: "reviewer_inactive",
    AUTHOR_ID: "author",
    OTHER_AUTHOR_ID: "author",
}


def generate_test_token(
    user_id: str = AUTHOR_ID,
    *,
    email: str = "test@example.com",
    expires_in: timedelta = timedelta(hours=1),
) -> str:
    """
    生成用于测试的JWT令牌
    """
    secret = os.environ.get("SUPABASE_JWT_SECRET", "mock-secret-replace-later")
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "email": email,
        "aud": "authenticated",
        "exp": now + expires_in,
        "iat": now,
        "role": "authenticated",
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def auth_headers(user_id: str = AUTHOR_ID) -> dict:
    return {"Authorization": f"Bearer {generate_test_token(user_id)}"}


def identity_for(user_id: str) -> Identity:
    return Identity.from_stored_role(user_id, SEEDED_ROLES.get(user_id))


def sample_co_authors() -> list[CoAuthor]:
    return [
        CoAuthor(
            title="Dr.",
            given_name="Ada",
            last_name="Lovelace",
            email="ada@example.org",
            affiliation="Analytical Society",
            country="United Kingdom",
        ),
        CoAuthor(
            title="Prof.",
            given_name="Alan",
            last_name="Turing",
            email="alan@example.org",
            affiliation="University of Manchester",
            country="United Kingdom",
        ),
    ]


def submission_payload(**overrides) -> dict:
    payload = {
        "journalCategoryId": CATEGORY_ID,
        "articleTitle": "Lifecycle modelling of editorial workflows",
        "abstract": "We describe a role-gated manuscript lifecycle for multi-journal platforms.",
        "keywords": "editorial, workflow",
        "coAuthors": [c.model_dump(by_alias=True) for c in sample_co_authors()],
        "manuscriptFileName": "uploads/manuscript.pdf",
        "coverLetterFileName": "uploads/cover.pdf",
        "supplementaryFilesName": None,
        "isSpecialReview": False,
        "authorAgreement": True,
    }
    payload.update(overrides)
    return payload


def make_manuscript(
    *,
    status: ManuscriptStatus = ManuscriptStatus.SUBMITTED,
    owner_id: str = AUTHOR_ID,
    manuscript_id: Optional[str] = None,
    submitted_at: Optional[datetime] = None,
    **overrides,
) -> Manuscript:
    data = {
        "id": manuscript_id or str(uuid4()),
        "status": status,
        "journal_category_id": CATEGORY_ID,
        "submitted_by_id": owner_id,
        "article_title": "A study of things",
        "abstract": "Things were studied carefully.",
        "keywords": "things",
        "co_authors": sample_co_authors(),
        "manuscript_file_name": "uploads/m.pdf",
        "submitted_at": submitted_at or datetime.now(timezone.utc),
        "author_agreement": True,
    }
    data.update(overrides)
    return Manuscript(**data)
