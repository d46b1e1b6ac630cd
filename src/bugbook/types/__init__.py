# IMPORT CONSTRAINT: types/ modules must only import from typing, stdlib, and each other.
# NEVER import from core.py, store_base.py, or any mixin; this prevents circular imports.
"""Typed contracts for bugbook records and on-disk payloads."""

from __future__ import annotations

from bugbook.types.core import (
    PRIORITIES,
    SORT_KEYS,
    STATUSES,
    BugDict,
    BugStatus,
    CommentDict,
    ISOTimestamp,
    Priority,
    SortKey,
    SortOrder,
)

__all__ = [
    "PRIORITIES",
    "SORT_KEYS",
    "STATUSES",
    "BugDict",
    "BugStatus",
    "CommentDict",
    "ISOTimestamp",
    "Priority",
    "SortKey",
    "SortOrder",
]
