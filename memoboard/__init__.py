"""
memoboard - personal memo board backed by Supabase.

Memos are cached in a MemoStore that mirrors the remote table and derives
filtered views locally.
"""

from .errors import MemoError, MemoNotFoundError, MemoStoreError
from .store import MemoStore, StoreStatus, filter_memos
from .types import (
    ALL_CATEGORIES,
    Category,
    Memo,
    MemoCategory,
    MemoForm,
    MemoStats,
    UnknownCategory,
)

try:
    from importlib.metadata import version

    __version__ = version("memoboard")
except Exception:
    __version__ = "0.0.0"

__all__ = [
    "ALL_CATEGORIES",
    "Category",
    "Memo",
    "MemoCategory",
    "MemoError",
    "MemoForm",
    "MemoNotFoundError",
    "MemoStats",
    "MemoStore",
    "MemoStoreError",
    "StoreStatus",
    "UnknownCategory",
    "filter_memos",
]
