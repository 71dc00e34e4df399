"""Errors raised by the memoboard adapter and state layer."""

from typing import Optional


class MemoError(Exception):
    """Base for all memoboard errors."""

    pass


class MemoStoreError(MemoError):
    """The persistence call itself failed (network, permission, constraint)."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class MemoNotFoundError(MemoError, LookupError):
    """No memo exists for the requested id."""

    def __init__(self, memo_id: str):
        super().__init__(f"Memo not found: {memo_id}")
        self.memo_id = memo_id
