"""
Shared memo types for memoboard.

These dataclasses are the vocabulary between the record store adapter,
the state layer and the presentation layers (HTTP routes, CLI).
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Union

from dateutil.parser import isoparse

# Filter sentinel meaning "no category filter"
ALL_CATEGORIES = "all"


def utc_now() -> datetime:
    """Get the current instant as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_timestamp(value: Optional[Union[str, datetime]]) -> Optional[datetime]:
    """Parse a store timestamp into an aware datetime.

    Naive values are assumed to be UTC.
    """
    if not value:
        return None
    parsed = value if isinstance(value, datetime) else isoparse(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# === Categories ===


class MemoCategory(str, Enum):
    """Known memo categories."""

    PERSONAL = "personal"
    WORK = "work"
    STUDY = "study"
    IDEA = "idea"
    OTHER = "other"


@dataclass(frozen=True)
class UnknownCategory:
    """A category outside MemoCategory, kept verbatim for display."""

    value: str


Category = Union[MemoCategory, UnknownCategory]

CATEGORY_LABELS: Dict[MemoCategory, str] = {
    MemoCategory.PERSONAL: "Personal",
    MemoCategory.WORK: "Work",
    MemoCategory.STUDY: "Study",
    MemoCategory.IDEA: "Idea",
    MemoCategory.OTHER: "Other",
}


def parse_category(value: Union[str, Category]) -> Category:
    """Map category text to a MemoCategory, or wrap it as UnknownCategory."""
    if isinstance(value, (MemoCategory, UnknownCategory)):
        return value
    try:
        return MemoCategory(value)
    except ValueError:
        return UnknownCategory(value)


def category_label(category: Category) -> str:
    """Display label for a category (raw text for unknown ones)."""
    if isinstance(category, MemoCategory):
        return CATEGORY_LABELS[category]
    return category.value


# === Records ===


@dataclass
class MemoForm:
    """User-submitted memo fields."""

    title: str
    content: str
    category: Category = MemoCategory.OTHER
    tags: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.category = parse_category(self.category)
        self.tags = list(self.tags or [])


@dataclass
class Memo:
    """A persisted memo.

    ``id`` and ``created_at`` are assigned by the store; ``updated_at`` is
    set by the client whenever an update is issued.
    """

    id: str
    title: str
    content: str
    category: Category
    tags: List[str]
    created_at: datetime
    updated_at: datetime

    def __post_init__(self):
        self.category = parse_category(self.category)

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match on title, content and tags."""
        needle = query.lower()
        return (
            needle in self.title.lower()
            or needle in self.content.lower()
            or any(needle in tag.lower() for tag in self.tags)
        )


@dataclass
class MemoStats:
    """Collection statistics, recomputed on every read."""

    total: int
    by_category: Dict[str, int]
    filtered: int
