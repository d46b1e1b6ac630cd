"""Shared validation functions for all entry points.

Pure functions, no Click or httpx dependencies.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from datetime import date
from pathlib import Path

logger = logging.getLogger(__name__)

MAX_INPUT_LENGTH = 2000

_BUG_ID_RE = re.compile(r"[A-Fa-f0-9]{1,8}")
_DUE_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")
# C0 control characters and DEL, except tab and newline
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_TAG_DISALLOWED_RE = re.compile(r"[^A-Za-z0-9 _-]")


def validate_bug_id(value: object) -> bool:
    """Return True if *value* is a 1-8 character hexadecimal bug ID.

    Also the path-traversal guard: anything accepted here is safe to embed
    in a record filename.
    """
    return isinstance(value, str) and _BUG_ID_RE.fullmatch(value) is not None


def sanitize_input(value: str, *, max_length: int = MAX_INPUT_LENGTH) -> str:
    """Strip control characters, normalize line endings, trim, and cap length."""
    text = value.replace("\r\n", "\n").replace("\r", "\n")
    text = _CONTROL_CHARS_RE.sub("", text).strip()
    if len(text) > max_length:
        text = text[:max_length].rstrip()
    return text


def sanitize_tag_name(value: str) -> str:
    """Keep letters, digits, spaces, hyphens and underscores; trim the rest."""
    return _TAG_DISALLOWED_RE.sub("", value).strip()


def validate_due_date(value: str) -> bool:
    """Validate a strict ``YYYY-MM-DD`` calendar date.

    An empty string is valid and means "no due date".
    """
    if value == "":
        return True
    if not _DUE_DATE_RE.fullmatch(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def check_file_paths(paths: Iterable[str], base: Path | None = None) -> tuple[list[str], list[str]]:
    """Clean a list of related-file paths.

    Returns (kept, missing). Paths that do not exist are still kept
    (existence is advisory only) but are reported in *missing*.
    """
    root = base or Path.cwd()
    kept: list[str] = []
    missing: list[str] = []
    for raw in paths:
        path = sanitize_input(raw, max_length=500)
        if not path:
            continue
        kept.append(path)
        if not (root / path).exists():
            logger.debug("Related file does not exist: %s", path)
            missing.append(path)
    return kept, missing
