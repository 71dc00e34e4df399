"""Record store adapter for the Supabase ``memos`` table.

This is the only module that talks to the persistence engine. It maps the
store's snake_case rows to :class:`~memoboard.types.Memo` records and issues
exactly one PostgREST call per logical operation.

List-style reads are fail-soft: a store or transport error is logged and an
empty list is returned. Mutations and point lookups raise
:class:`~memoboard.errors.MemoStoreError` instead.
"""

import logging
import re
from datetime import datetime
from typing import Any

import httpx
from postgrest.exceptions import APIError
from supabase import AsyncClient, AsyncClientOptions, acreate_client

from .config import Settings
from .errors import MemoNotFoundError, MemoStoreError
from .types import (
    ALL_CATEGORIES,
    Memo,
    MemoCategory,
    MemoForm,
    UnknownCategory,
    parse_category,
    parse_timestamp,
    utc_now,
)

logger = logging.getLogger(__name__)

MEMOS_TABLE = "memos"

# PostgREST code for "JSON object requested, multiple (or no) rows returned"
NO_ROWS_CODE = "PGRST116"

# The store has no truncate primitive; delete-all matches every row whose id
# differs from an id the store can never generate.
DELETE_ALL_SENTINEL = "00000000-0000-0000-0000-000000000000"

_STORE_ERRORS = (APIError, httpx.HTTPError)

# Characters that must be backslash-escaped inside a double-quoted PostgREST value
_QUOTED_VALUE_SPECIAL_CHARS = re.compile(r'(["\\])')


async def create_supabase_client(settings: Settings) -> AsyncClient:
    """Create an async Supabase client with session handling disabled."""
    api_key = settings.api_key
    if not api_key:
        raise ValueError("Either SUPABASE_PUBLISHABLE_KEY or SUPABASE_ANON_KEY must be set")
    options = AsyncClientOptions(
        auto_refresh_token=False,
        persist_session=False,
        postgrest_client_timeout=settings.postgrest_timeout,
    )
    return await acreate_client(settings.supabase_url, api_key, options=options)


async def close_supabase_client(db: AsyncClient) -> None:
    """Close the HTTP session held by the client's PostgREST sub-client."""
    await db.postgrest.aclose()


# =============================================================================
# Row Transforms
# =============================================================================

def row_to_memo(row: dict[str, Any], now: datetime | None = None) -> Memo:
    """Convert a store row into a Memo.

    Null tags become an empty list; null timestamps fall back to ``now``
    (the transform instant by default).
    """
    fallback = now or utc_now()
    return Memo(
        id=str(row["id"]),
        title=row["title"],
        content=row["content"],
        category=row["category"],
        tags=list(row.get("tags") or []),
        created_at=parse_timestamp(row.get("created_at")) or fallback,
        updated_at=parse_timestamp(row.get("updated_at")) or fallback,
    )


def form_to_row(form: MemoForm) -> dict[str, Any]:
    """Build the insert payload for a new memo."""
    return {
        "title": form.title,
        "content": form.content,
        "category": form.category.value,
        "tags": list(form.tags),
    }


def memo_to_update_row(memo: Memo) -> dict[str, Any]:
    """Build the update payload for an existing memo."""
    return {
        "title": memo.title,
        "content": memo.content,
        "category": memo.category.value,
        "tags": list(memo.tags),
        "updated_at": memo.updated_at.isoformat(),
    }


def escape_like(query: str) -> str:
    """Escape SQL LIKE special characters so they match literally."""
    # Escape backslash first, then %, then _
    return re.sub(r'([%_\\])', r'\\\1', query)


def ilike_contains_value(query: str) -> str:
    """Quote a substring pattern for use inside a PostgREST ``or`` filter.

    The LIKE-escaped pattern is wrapped in double quotes so commas, dots and
    parentheses in the query are read as data, not filter syntax.
    """
    pattern = f"%{escape_like(query)}%"
    return '"' + _QUOTED_VALUE_SPECIAL_CHARS.sub(r'\\\1', pattern) + '"'


def _rows_to_memos(rows: list[dict] | None) -> list[Memo]:
    now = utc_now()
    return [row_to_memo(row, now) for row in rows or []]


def _store_error(action: str, exc: Exception) -> MemoStoreError:
    return MemoStoreError(f"Error {action}: {exc}", code=getattr(exc, "code", None))


# =============================================================================
# List Reads (fail-soft)
# =============================================================================

async def fetch_all_memos(db: AsyncClient) -> list[Memo]:
    """Get every memo, newest first. Returns [] if the store call fails."""
    try:
        result = (
            await db.table(MEMOS_TABLE)
            .select("*")
            .order("created_at", desc=True)
            .execute()
        )
    except _STORE_ERRORS as e:
        logger.error("Error loading memos: %s", e)
        return []
    return _rows_to_memos(result.data)


async def search_memos(db: AsyncClient, query: str) -> list[Memo]:
    """Case-insensitive title/content search on the store side.

    The query is matched verbatim: LIKE wildcards in it match literally.
    A blank query returns every memo. Returns [] if the store call fails.
    """
    if not query.strip():
        return await fetch_all_memos(db)

    value = ilike_contains_value(query)
    try:
        result = (
            await db.table(MEMOS_TABLE)
            .select("*")
            .or_(f"title.ilike.{value},content.ilike.{value}")
            .order("created_at", desc=True)
            .execute()
        )
    except _STORE_ERRORS as e:
        logger.error("Error searching memos for %r: %s", query, e)
        return []
    return _rows_to_memos(result.data)


async def fetch_memos_by_category(
    db: AsyncClient, category: str | MemoCategory | UnknownCategory
) -> list[Memo]:
    """Get memos in one category, newest first. "all" returns every memo."""
    if category == ALL_CATEGORIES:
        return await fetch_all_memos(db)

    value = parse_category(category).value
    try:
        result = (
            await db.table(MEMOS_TABLE)
            .select("*")
            .eq("category", value)
            .order("created_at", desc=True)
            .execute()
        )
    except _STORE_ERRORS as e:
        logger.error("Error filtering memos by category %s: %s", value, e)
        return []
    return _rows_to_memos(result.data)


# =============================================================================
# Point Reads
# =============================================================================

async def find_memo_by_id(db: AsyncClient, memo_id: str) -> Memo | None:
    """Get one memo by id, or None when the store reports no matching row."""
    try:
        result = (
            await db.table(MEMOS_TABLE)
            .select("*")
            .eq("id", memo_id)
            .single()
            .execute()
        )
    except _STORE_ERRORS as e:
        if getattr(e, "code", None) == NO_ROWS_CODE:
            return None
        logger.error("Error fetching memo %s: %s", memo_id, e)
        raise _store_error(f"fetching memo {memo_id}", e) from e
    return row_to_memo(result.data) if result.data else None


# =============================================================================
# Mutations
# =============================================================================

async def insert_memo(db: AsyncClient, form: MemoForm) -> Memo:
    """Insert a memo and return the stored row (with id and timestamps)."""
    try:
        result = await db.table(MEMOS_TABLE).insert(form_to_row(form)).execute()
    except _STORE_ERRORS as e:
        logger.error("Error adding memo: %s", e)
        raise _store_error("adding memo", e) from e

    if not result.data:
        raise MemoStoreError("Error adding memo: store returned no row")
    return row_to_memo(result.data[0])


async def update_memo_by_id(db: AsyncClient, memo: Memo) -> Memo:
    """Write a full memo keyed by id and return the store-confirmed row.

    Raises MemoNotFoundError if no row has that id.
    """
    try:
        result = (
            await db.table(MEMOS_TABLE)
            .update(memo_to_update_row(memo))
            .eq("id", memo.id)
            .execute()
        )
    except _STORE_ERRORS as e:
        logger.error("Error updating memo %s: %s", memo.id, e)
        raise _store_error(f"updating memo {memo.id}", e) from e

    if not result.data:
        raise MemoNotFoundError(memo.id)
    return row_to_memo(result.data[0])


async def delete_memo_by_id(db: AsyncClient, memo_id: str) -> None:
    """Delete one memo. Deleting a missing id is a no-op."""
    try:
        await db.table(MEMOS_TABLE).delete().eq("id", memo_id).execute()
    except _STORE_ERRORS as e:
        logger.error("Error deleting memo %s: %s", memo_id, e)
        raise _store_error(f"deleting memo {memo_id}", e) from e


async def delete_all_memos(db: AsyncClient) -> None:
    """Delete every memo.

    Implemented as ``id != DELETE_ALL_SENTINEL`` because the client has no
    truncate call and PostgREST refuses an unfiltered delete.
    """
    try:
        await db.table(MEMOS_TABLE).delete().neq("id", DELETE_ALL_SENTINEL).execute()
    except _STORE_ERRORS as e:
        logger.error("Error clearing memos: %s", e)
        raise _store_error("clearing memos", e) from e
