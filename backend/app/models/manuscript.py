from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel
from pydantic.config import ConfigDict


class ManuscriptStatus(str, Enum):
    """
    稿件生命周期状态（封闭集合）。

    中文注释:
    - 状态集合固定为 5 个；合法性完全由 role_matrix 的角色/归属守卫决定，
      不存在固定的“下一状态”邻接表。
    - 对外值沿用平台原有写法（"In Review" 带空格）。
    """

    SUBMITTED = "Submitted"
    IN_REVIEW = "In Review"
    ACCEPTED = "Accepted"
    PUBLISHED = "Published"
    SUSPENDED = "Suspended"


_STATUS_LOOKUP: dict[str, ManuscriptStatus] = {}
for _status in ManuscriptStatus:
    _key = _status.value.lower()
    _STATUS_LOOKUP[_key] = _status
    _STATUS_LOOKUP[_key.replace(" ", "")] = _status
    _STATUS_LOOKUP[_key.replace(" ", "_")] = _status


def normalize_status(value: object) -> Optional[ManuscriptStatus]:
    """
    将输入状态归一化为 ManuscriptStatus；无法识别时返回 None。

    接受: "In Review" / "InReview" / "in_review" / "IN REVIEW" 等写法。
    """
    if value is None:
        return None
    if isinstance(value, ManuscriptStatus):
        return value
    v = str(value).strip().lower()
    if not v:
        return None
    return _STATUS_LOOKUP.get(v)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CoAuthor(_CamelModel):
    """共同作者（结构化存储，读写均为同一列表类型）"""

    title: str = Field("", max_length=50)
    given_name: str = Field(..., max_length=200)
    last_name: str = Field(..., max_length=200)
    email: str = Field(..., max_length=320)
    affiliation: str = Field("", max_length=500)
    country: str = Field("", max_length=100)

    @field_validator("*", mode="before")
    @classmethod
    def strip_strings(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value


class ManuscriptSubmission(_CamelModel):
    """
    投稿载荷

    中文注释:
    - 内容合法性（非空、分类存在、作者协议）由 IngestionService 校验，
      这样每个失败都能返回 InvalidInput(field, reason)。
    - submittedById 不在载荷里：归属作者只取自当前登录身份。
    """

    journal_category_id: str = ""
    article_title: str = ""
    abstract: str = ""
    keywords: str = ""
    co_authors: list[CoAuthor] = Field(default_factory=list)
    manuscript_file_name: Optional[str] = None
    cover_letter_file_name: Optional[str] = None
    supplementary_files_name: Optional[str] = None
    is_special_review: bool = False
    author_agreement: bool = False

    @field_validator(
        "manuscript_file_name",
        "cover_letter_file_name",
        "supplementary_files_name",
        mode="before",
    )
    @classmethod
    def normalize_optional_strings(cls, value):
        # 中文注释: 可选文件引用允许为空字符串；写入前统一做 trim
        if value is None:
            return None
        if isinstance(value, str):
            trimmed = value.strip()
            return trimmed or None
        return value


class Manuscript(_CamelModel):
    """持久化的完整稿件记录"""

    id: str
    status: ManuscriptStatus = ManuscriptStatus.SUBMITTED
    journal_category_id: str
    submitted_by_id: str
    article_title: str
    abstract: str
    keywords: str = ""
    co_authors: list[CoAuthor] = Field(default_factory=list)
    manuscript_file_name: str
    cover_letter_file_name: Optional[str] = None
    supplementary_files_name: Optional[str] = None
    is_special_review: bool = False
    submitted_at: datetime
    author_agreement: bool = True
    views: int = Field(0, ge=0)
    downloads: int = Field(0, ge=0)
    citations: int = Field(0, ge=0)
    version: int = Field(1, ge=1)

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def with_status(self, status: ManuscriptStatus) -> "Manuscript":
        return self.model_copy(update={"status": status, "version": self.version + 1})

    def to_row(self) -> dict:
        """Supabase 行格式（snake_case 列名，co_authors 为 jsonb 数组）"""
        return self.model_dump(mode="json", by_alias=False)


class StatusUpdateRequest(_CamelModel):
    status: str


class CounterIncrementRequest(_CamelModel):
    type: str


class ManuscriptPage(_CamelModel):
    items: list[Manuscript]
    total: int
    page: int
    pages: int


class AuthorStats(_CamelModel):
    submitted: int = 0
    in_review: int = 0
    accepted: int = 0
    published: int = 0
    suspended: int = 0


class ReviewerStats(_CamelModel):
    total_assigned: int = 0
    pending_reviews: int = 0
    completed_reviews: int = 0


class StatusCount(_CamelModel):
    status: ManuscriptStatus
    count: int


class MonthlyCount(_CamelModel):
    month: str  # "YYYY-MM"（UTC）
    count: int


class AdminStats(_CamelModel):
    """
    管理后台看板：稿件总数、待处理数（Submitted + In Review）、状态分布、近 12 个月投稿趋势
    """

    total_manuscripts: int = 0
    pending_manuscripts: int = 0
    status_distribution: list[StatusCount] = Field(default_factory=list)
    submissions_over_time: list[MonthlyCount] = Field(default_factory=list)


class PublicManuscriptSummary(_CamelModel):
    id: str
    title: str
    journal_category_id: str
    submitted_at: datetime
    authors: list[str] = Field(default_factory=list)


class PublicManuscriptPage(_CamelModel):
    items: list[PublicManuscriptSummary]
    total: int
    page: int
    pages: int


class ManuscriptCounters(_CamelModel):
    views: int
    downloads: int
    citations: int


class SearchSuggestion(_CamelModel):
    id: str
    title: str
    excerpt: str
    authors: list[str] = Field(default_factory=list)


class SearchResults(_CamelModel):
    suggestions: list[SearchSuggestion] = Field(default_factory=list)
