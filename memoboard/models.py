"""Pydantic models for API requests and responses."""

from datetime import datetime

from pydantic import BaseModel, Field

from .types import Memo, MemoForm, MemoStats, category_label

# =============================================================================
# Requests
# =============================================================================

class MemoCreate(BaseModel):
    """Request to create a memo."""
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    category: str = "other"  # Unknown categories are accepted verbatim
    tags: list[str] = []

    def to_form(self) -> MemoForm:
        return MemoForm(
            title=self.title,
            content=self.content,
            category=self.category,
            tags=self.tags,
        )


class MemoUpdate(MemoCreate):
    """Request to overwrite a memo's fields."""


class FilterUpdate(BaseModel):
    """Request to change the active filters. Omitted fields are left alone."""
    search_query: str | None = None
    category: str | None = None


# =============================================================================
# Responses
# =============================================================================

class MemoResponse(BaseModel):
    """A memo as shown to clients."""
    id: str
    title: str
    content: str
    category: str
    category_label: str
    tags: list[str]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_memo(cls, memo: Memo) -> "MemoResponse":
        return cls(
            id=memo.id,
            title=memo.title,
            content=memo.content,
            category=memo.category.value,
            category_label=category_label(memo.category),
            tags=memo.tags,
            created_at=memo.created_at,
            updated_at=memo.updated_at,
        )


class MemoStatsResponse(BaseModel):
    """Collection statistics."""
    total: int
    by_category: dict[str, int]
    filtered: int

    @classmethod
    def from_stats(cls, stats: MemoStats) -> "MemoStatsResponse":
        return cls(total=stats.total, by_category=stats.by_category, filtered=stats.filtered)


class MemoListResponse(BaseModel):
    """The filtered memo list plus the state that produced it."""
    memos: list[MemoResponse]
    loading: bool
    search_query: str
    selected_category: str
    stats: MemoStatsResponse


class CategoryInfo(BaseModel):
    """A selectable category."""
    value: str
    label: str
