"""API routes."""

from .memos import router as memos_router

__all__ = [
    "memos_router",
]
