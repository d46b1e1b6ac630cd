"""Shared utilities, types, and Protocol for BugStore mixins."""

from __future__ import annotations

import contextlib
import os
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from bugbook.models import Bug

BUGS_DIR_NAME = "bugs"
TAGS_FILENAME = "tags.json"
RECORD_PREFIX = "BUG-"
RECORD_SUFFIX = ".json"
PRIVATE_FILE_MODE = 0o600


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def generate_id() -> str:
    """First 8 hex characters of a random UUID, uppercased."""
    return uuid.uuid4().hex[:8].upper()


def record_filename(bug_id: str) -> str:
    """Record filename for *bug_id*. Caller must have validated the ID."""
    return f"{RECORD_PREFIX}{bug_id.upper()}{RECORD_SUFFIX}"


def write_private(path: Path, content: bytes) -> None:
    """Write content to path atomically, readable and writable by the owner only."""
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, PRIVATE_FILE_MODE)
        with os.fdopen(fd, "wb") as fh:
            fh.write(content)
        os.chmod(tmp, PRIVATE_FILE_MODE)
        os.replace(tmp, path)
    except BaseException:
        with contextlib.suppress(OSError):
            tmp.unlink()
        raise


@dataclass(frozen=True)
class OpResult:
    """Outcome of a user-visible operation that can fail without raising."""

    success: bool
    message: str


@dataclass(frozen=True)
class SkippedRecord:
    path: Path
    reason: str


class StoreMixinProtocol(Protocol):
    """Shared attributes and methods that store mixins access via self.

    Actual implementations are provided by BugStore at composition time.
    """

    root: Path
    bugs_dir: Path
    tags_path: Path

    def list_bugs(self) -> list[Bug]: ...
