"""In-memory state layer over the record store adapter.

A MemoStore holds the single authoritative list of memos for one
application session. Every mutation goes through the adapter first; the
local list only changes once the store has confirmed the write. Filtered
views and statistics are derived from the list on every read.

All methods run on one event loop. Callers must not start a conflicting
mutation before the previous one resolves; responses are applied in arrival
order.
"""

import logging
from collections import Counter
from dataclasses import replace
from datetime import datetime
from enum import Enum
from typing import Annotated, Callable, Iterable, List, Optional, Tuple, Union

from fastapi import Depends, Request

from supabase import AsyncClient

from . import database
from .errors import MemoNotFoundError
from .types import (
    ALL_CATEGORIES,
    Category,
    Memo,
    MemoForm,
    MemoStats,
    parse_category,
    utc_now,
)

logger = logging.getLogger(__name__)


class StoreStatus(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"


def filter_memos(
    memos: Iterable[Memo],
    search_query: str = "",
    selected_category: str = ALL_CATEGORIES,
) -> List[Memo]:
    """Derived view: category filter, then case-insensitive search.

    A whitespace-only query leaves the list unfiltered; any other query is
    matched as typed, surrounding spaces included. Input order is preserved.
    """
    filtered = list(memos)

    if selected_category != ALL_CATEGORIES:
        filtered = [m for m in filtered if m.category.value == selected_category]

    if search_query.strip():
        filtered = [m for m in filtered if m.matches(search_query)]

    return filtered


class MemoStore:
    """Client-side source of truth for memos.

    Args:
        db: Supabase client handed to the adapter functions.
        clock: Returns the current instant; used for ``updated_at``.
    """

    def __init__(self, db: AsyncClient, clock: Callable[[], datetime] = utc_now):
        self._db = db
        self._clock = clock
        self._memos: List[Memo] = []
        self.status = StoreStatus.UNINITIALIZED
        self.search_query = ""
        self.selected_category = ALL_CATEGORIES

    # === Lifecycle ===

    @property
    def loading(self) -> bool:
        return self.status == StoreStatus.LOADING

    async def initialize(self) -> None:
        """Run the initial load once."""
        if self.status == StoreStatus.UNINITIALIZED:
            await self.refresh()

    def close(self) -> None:
        """Discard session state."""
        self._memos = []
        self.search_query = ""
        self.selected_category = ALL_CATEGORIES
        self.status = StoreStatus.UNINITIALIZED

    async def refresh(self) -> None:
        """Replace the collection wholesale with a fresh fetch."""
        self.status = StoreStatus.LOADING
        try:
            memos = await database.fetch_all_memos(self._db)
            self._memos = list(memos)
            logger.debug("Loaded %d memos", len(self._memos))
        finally:
            self.status = StoreStatus.READY

    # === Read-only views ===

    @property
    def all_memos(self) -> Tuple[Memo, ...]:
        return tuple(self._memos)

    @property
    def memos(self) -> List[Memo]:
        """The filtered view for the current search and category."""
        return filter_memos(self._memos, self.search_query, self.selected_category)

    @property
    def stats(self) -> MemoStats:
        by_category = Counter(memo.category.value for memo in self._memos)
        return MemoStats(
            total=len(self._memos),
            by_category=dict(by_category),
            filtered=len(self.memos),
        )

    def get_by_id(self, memo_id: str) -> Optional[Memo]:
        """Look up a memo in the local collection only."""
        for memo in self._memos:
            if memo.id == memo_id:
                return memo
        return None

    # === Filters ===

    def set_search_query(self, text: str) -> None:
        self.search_query = text or ""

    def set_category_filter(self, category: Union[str, Category]) -> None:
        if category == ALL_CATEGORIES or not category:
            self.selected_category = ALL_CATEGORIES
        else:
            self.selected_category = parse_category(category).value

    # === Mutations ===

    async def create(self, form: MemoForm) -> Memo:
        """Insert a memo and prepend the stored record."""
        created = await database.insert_memo(self._db, form)
        self._memos = [created, *self._memos]
        logger.info("Created memo %s", created.id)
        return created

    async def update(self, memo_id: str, form: MemoForm) -> Memo:
        """Overwrite a memo's fields and replace it in place.

        Raises MemoNotFoundError without contacting the store when the id is
        not in the local collection.
        """
        existing = self.get_by_id(memo_id)
        if existing is None:
            raise MemoNotFoundError(memo_id)

        merged = replace(
            existing,
            title=form.title,
            content=form.content,
            category=form.category,
            tags=list(form.tags),
            updated_at=max(self._clock(), existing.created_at),
        )
        confirmed = await database.update_memo_by_id(self._db, merged)

        self._memos = [confirmed if m.id == memo_id else m for m in self._memos]
        logger.info("Updated memo %s", memo_id)
        return confirmed

    async def delete(self, memo_id: str) -> None:
        await database.delete_memo_by_id(self._db, memo_id)
        self._memos = [m for m in self._memos if m.id != memo_id]
        logger.info("Deleted memo %s", memo_id)

    async def clear_all(self) -> None:
        """Delete every memo and reset both filters."""
        await database.delete_all_memos(self._db)
        count = len(self._memos)
        self._memos = []
        self.search_query = ""
        self.selected_category = ALL_CATEGORIES
        logger.info("Cleared %d memos", count)


# =============================================================================
# FastAPI dependency
# =============================================================================

def get_memo_store(request: Request) -> MemoStore:
    """FastAPI dependency for the session's MemoStore."""
    return request.app.state.memo_store


# Type alias for dependency injection
MemoStoreDep = Annotated[MemoStore, Depends(get_memo_store)]
