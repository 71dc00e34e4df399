"""Memo routes.

Thin handlers over the session's MemoStore. Mutations go through the store
so the cached collection stays in step with the database.
"""

from fastapi import APIRouter, HTTPException, Request, Response, status

from ..models import (
    CategoryInfo,
    FilterUpdate,
    MemoCreate,
    MemoListResponse,
    MemoResponse,
    MemoStatsResponse,
    MemoUpdate,
)
from ..rate_limit import limiter, mutation_limit
from ..store import MemoStore, MemoStoreDep
from ..types import CATEGORY_LABELS

router = APIRouter(prefix="/memos", tags=["memos"])


def _list_response(store: MemoStore) -> MemoListResponse:
    return MemoListResponse(
        memos=[MemoResponse.from_memo(memo) for memo in store.memos],
        loading=store.loading,
        search_query=store.search_query,
        selected_category=store.selected_category,
        stats=MemoStatsResponse.from_stats(store.stats),
    )


@router.get("", response_model=MemoListResponse)
async def list_memos(store: MemoStoreDep):
    """Memos matching the active search and category filter."""
    return _list_response(store)


@router.get("/stats", response_model=MemoStatsResponse)
async def memo_stats(store: MemoStoreDep):
    return MemoStatsResponse.from_stats(store.stats)


@router.get("/categories", response_model=list[CategoryInfo])
async def list_categories():
    return [
        CategoryInfo(value=category.value, label=label)
        for category, label in CATEGORY_LABELS.items()
    ]


@router.put("/filters", response_model=MemoListResponse)
async def update_filters(filters: FilterUpdate, store: MemoStoreDep):
    """Set the search text and/or category filter. No database call."""
    if filters.search_query is not None:
        store.set_search_query(filters.search_query)
    if filters.category is not None:
        store.set_category_filter(filters.category)
    return _list_response(store)


@router.post("/refresh", response_model=MemoListResponse)
async def refresh_memos(store: MemoStoreDep):
    """Reload every memo from the database."""
    await store.refresh()
    return _list_response(store)


@router.post("", response_model=MemoResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(mutation_limit)
async def create_memo(request: Request, memo: MemoCreate, store: MemoStoreDep):
    created = await store.create(memo.to_form())
    return MemoResponse.from_memo(created)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(mutation_limit)
async def clear_memos(request: Request, store: MemoStoreDep):
    """Delete every memo and reset the filters."""
    await store.clear_all()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{memo_id}", response_model=MemoResponse)
async def get_memo(memo_id: str, store: MemoStoreDep):
    memo = store.get_by_id(memo_id)
    if memo is None:
        raise HTTPException(status_code=404, detail=f"Memo not found: {memo_id}")
    return MemoResponse.from_memo(memo)


@router.put("/{memo_id}", response_model=MemoResponse)
@limiter.limit(mutation_limit)
async def update_memo(request: Request, memo_id: str, memo: MemoUpdate, store: MemoStoreDep):
    updated = await store.update(memo_id, memo.to_form())
    return MemoResponse.from_memo(updated)


@router.delete("/{memo_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(mutation_limit)
async def delete_memo(request: Request, memo_id: str, store: MemoStoreDep):
    await store.delete(memo_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
