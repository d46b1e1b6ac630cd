"""Core storage operations for bugbook.

Single source of truth for reading and writing bug records. The CLI and the
resolve engine both go through BugStore. No daemon and no database: each bug
is one JSON file.

Directory-scoped: each project keeps its records in a ``.bugbook/``
directory in the working directory::

    .bugbook/
      bugs/BUG-<ID>.json
      tags.json

Every mutation rewrites the whole record file. There is no locking, so two
processes editing the same bug are last-write-wins.
"""

from __future__ import annotations

import functools
import logging
import os
from pathlib import Path
from typing import Any

from bugbook.codec import RecordDecodeError, decode_bug, encode_bug
from bugbook.config import UserConfig
from bugbook.migrate import MigrationReport, migrate_legacy_layouts
from bugbook.models import DEFAULT_TAG, Bug, Comment
from bugbook.store_base import (
    BUGS_DIR_NAME,
    RECORD_SUFFIX,
    TAGS_FILENAME,
    OpResult,
    SkippedRecord,
    _now_iso,
    generate_id,
    record_filename,
    write_private,
)
from bugbook.store_tags import TagsMixin
from bugbook.types import PRIORITIES, STATUSES, Priority
from bugbook.validation import (
    check_file_paths,
    sanitize_input,
    sanitize_tag_name,
    validate_bug_id,
    validate_due_date,
)

logger = logging.getLogger(__name__)

__all__ = [
    "BUGBOOK_DIR_NAME",
    "BUGS_DIR_NAME",
    "DEFAULT_TAG",
    "TAGS_FILENAME",
    "Bug",
    "BugStore",
    "Comment",
    "OpResult",
    "UnsafeStorageRootError",
    "generate_id",
    "get_storage_root",
    "is_system_path",
]

# ---------------------------------------------------------------------------
# Convention-based discovery
# ---------------------------------------------------------------------------

BUGBOOK_DIR_NAME = ".bugbook"

_POSIX_SYSTEM_DIRS = ("/etc", "/usr", "/bin", "/sbin", "/var", "/boot", "/lib", "/proc", "/sys")
_WINDOWS_SYSTEM_DIRS = (
    "c:\\windows",
    "c:\\program files",
    "c:\\program files (x86)",
    "c:\\programdata",
)


class UnsafeStorageRootError(RuntimeError):
    """The working directory is inside an operating-system directory."""


def is_system_path(path: str) -> bool:
    """True if *path* is, or lies under, a known OS/system directory."""
    posix = os.path.normpath(path).replace("\\", "/")
    for sysdir in _POSIX_SYSTEM_DIRS:
        if posix == sysdir or posix.startswith(sysdir + "/"):
            return True
    windows = posix.replace("/", "\\").rstrip("\\").lower()
    return any(windows == d or windows.startswith(d + "\\") for d in _WINDOWS_SYSTEM_DIRS)


@functools.cache
def _storage_root_for(project_dir: str) -> Path:
    normalized = os.path.normpath(os.path.abspath(project_dir))
    if is_system_path(normalized):
        msg = f"Refusing to use {normalized}: bugbook cannot store data inside a system directory"
        raise UnsafeStorageRootError(msg)
    return Path(normalized) / BUGBOOK_DIR_NAME


def get_storage_root(start: Path | None = None) -> Path:
    """Return the absolute ``.bugbook/`` path for *start* (default cwd).

    Cached per directory for the life of the process. Raises
    UnsafeStorageRootError for system directories.
    """
    return _storage_root_for(str(start or Path.cwd()))


def _require_valid_id(bug_id: str) -> None:
    if not validate_bug_id(bug_id):
        msg = f"Invalid bug ID format: {bug_id!r} (expected 1-8 hex characters)"
        raise ValueError(msg)


def _require_valid_due_date(due_date: str | None) -> None:
    if due_date and not validate_due_date(due_date):
        msg = f"Invalid due date {due_date!r} (expected YYYY-MM-DD)"
        raise ValueError(msg)


# ---------------------------------------------------------------------------
# BugStore
# ---------------------------------------------------------------------------


class BugStore(TagsMixin):
    """File-per-record bug storage rooted at a ``.bugbook/`` directory."""

    def __init__(self, root: str | Path, *, user_config: UserConfig | None = None) -> None:
        self.root = Path(root)
        self.bugs_dir = self.root / BUGS_DIR_NAME
        self.tags_path = self.root / TAGS_FILENAME
        self.user_config = user_config if user_config is not None else UserConfig()
        self.skipped: list[SkippedRecord] = []
        self.migration: MigrationReport | None = None
        self._initialized = False
        self._ensure_initialized()

    @classmethod
    def from_project(cls, start: Path | None = None, *, user_config: UserConfig | None = None) -> BugStore:
        """Open the store for the project in *start* (or cwd)."""
        root = get_storage_root(start)
        if not root.is_dir():
            msg = f"No {BUGBOOK_DIR_NAME}/ directory found in {root.parent}"
            raise FileNotFoundError(msg)
        return cls(root, user_config=user_config)

    def _ensure_initialized(self) -> None:
        """Run legacy layout migration once per store handle."""
        if self._initialized:
            return
        self._initialized = True
        if self.root.is_dir():
            self.migration = migrate_legacy_layouts(self.root)

    def initialize(self) -> None:
        """Create the storage directories (used by ``bugbook install``)."""
        self.bugs_dir.mkdir(parents=True, exist_ok=True)
        if not self.tags_path.exists():
            write_private(self.tags_path, b'[\n  "General"\n]\n')

    def record_path(self, bug_id: str) -> Path:
        _require_valid_id(bug_id)
        return self.bugs_dir / record_filename(bug_id)

    def _generate_unique_id(self) -> str:
        for _ in range(10):
            candidate = generate_id()
            if not self.record_path(candidate).exists():
                return candidate
        msg = "Could not allocate a unique bug ID"
        raise RuntimeError(msg)

    # -- Reads ---------------------------------------------------------------

    def list_bugs(self) -> list[Bug]:
        """Decode every record file. Corrupt files are skipped and listed in ``self.skipped``."""
        self._ensure_initialized()
        self.skipped = []
        if not self.bugs_dir.is_dir():
            return []
        try:
            paths = sorted(self.bugs_dir.glob(f"*{RECORD_SUFFIX}"))
        except OSError as exc:
            logger.warning("Failed to list %s: %s", self.bugs_dir, exc)
            self.skipped.append(SkippedRecord(self.bugs_dir, str(exc)))
            return []

        bugs: list[Bug] = []
        for path in paths:
            try:
                bugs.append(decode_bug(path.read_bytes()))
            except (OSError, RecordDecodeError) as exc:
                logger.warning(
                    "Skipping unreadable bug file %s: %s",
                    path.name,
                    exc,
                    extra={"path": str(path), "error": str(exc)},
                )
                self.skipped.append(SkippedRecord(path, str(exc)))
        return bugs

    def get_bug(self, bug_id: str) -> Bug | None:
        """Look up one bug by ID (case-insensitive). Returns None if absent."""
        self._ensure_initialized()
        path = self.record_path(bug_id)
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            return None
        return decode_bug(data)

    # -- Writes --------------------------------------------------------------

    def save_bug(self, bug: Bug) -> None:
        """Overwrite the record file for *bug*, creating directories as needed."""
        self._ensure_initialized()
        path = self.record_path(bug.id)
        if bug.status not in STATUSES:
            msg = f"Invalid status {bug.status!r}. Valid: {', '.join(STATUSES)}"
            raise ValueError(msg)
        if bug.priority is not None and bug.priority not in PRIORITIES:
            msg = f"Invalid priority {bug.priority!r}. Valid: {', '.join(PRIORITIES)}"
            raise ValueError(msg)
        if bug.due_date == "":
            bug.due_date = None
        self.bugs_dir.mkdir(parents=True, exist_ok=True)
        write_private(path, encode_bug(bug))
        logger.debug("Saved bug %s", bug.id)

    def create(self, bug: Bug) -> Bug:
        """Save a new bug, filling ``author`` from user config when unset."""
        if not bug.author and self.user_config.user_name:
            bug.author = self.user_config.user_name
        self.save_bug(bug)
        logger.info("Created bug %s", bug.id)
        return bug

    def create_bug(
        self,
        error: str,
        solution: str = "",
        *,
        category: str = DEFAULT_TAG,
        priority: Priority | None = None,
        files: list[str] | None = None,
        due_date: str | None = None,
    ) -> Bug:
        """Sanitize raw user input and create a bug with a fresh ID and timestamp."""
        error = sanitize_input(error)
        if not error:
            msg = "Error message cannot be empty"
            raise ValueError(msg)
        _require_valid_due_date(due_date)
        bug = Bug(
            id=self._generate_unique_id(),
            timestamp=_now_iso(),
            category=sanitize_tag_name(category) or DEFAULT_TAG,
            error=error,
            solution=sanitize_input(solution),
            priority=priority,
            files=check_file_paths(files, self.root.parent)[0] if files else None,
            due_date=due_date or None,
        )
        return self.create(bug)

    def update_bug(self, bug_id: str, **changes: Any) -> Bug:
        """Read-modify-write the editable fields of a bug.

        Accepted keys: error, solution, category, priority, files, due_date.
        Passing "" for priority or due_date clears it. Raises KeyError if the
        bug does not exist.
        """
        unknown = set(changes) - {"error", "solution", "category", "priority", "files", "due_date"}
        if unknown:
            msg = f"Cannot edit field(s): {', '.join(sorted(unknown))}"
            raise ValueError(msg)
        bug = self.get_bug(bug_id)
        if bug is None:
            msg = f"Bug not found: {bug_id}"
            raise KeyError(msg)

        if changes.get("error") is not None:
            error = sanitize_input(changes["error"])
            if not error:
                msg = "Error message cannot be empty"
                raise ValueError(msg)
            bug.error = error
        if changes.get("solution") is not None:
            bug.solution = sanitize_input(changes["solution"])
        if changes.get("category") is not None:
            bug.category = sanitize_tag_name(changes["category"]) or DEFAULT_TAG
        if changes.get("priority") is not None:
            bug.priority = changes["priority"] or None
        if changes.get("files") is not None:
            bug.files = check_file_paths(changes["files"], self.root.parent)[0]
        if changes.get("due_date") is not None:
            _require_valid_due_date(changes["due_date"])
            bug.due_date = changes["due_date"] or None

        self.save_bug(bug)
        return bug

    def delete_bug(self, bug_id: str) -> bool:
        """Remove a bug's file. Returns False (not an error) if it did not exist."""
        self._ensure_initialized()
        path = self.record_path(bug_id)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        logger.info("Deleted bug %s", bug_id.upper())
        return True

    def add_comment(self, bug_id: str, text: str) -> OpResult:
        """Append a timestamped comment. Comments are never edited or removed."""
        bug = self.get_bug(bug_id)
        if bug is None:
            return OpResult(False, f"Bug with ID '{bug_id}' not found.")
        clean = sanitize_input(text)
        if not clean:
            return OpResult(False, "Comment cannot be empty.")
        comment = Comment(text=clean, timestamp=_now_iso(), author=self.user_config.user_name)
        bug.comments = [*(bug.comments or []), comment]
        self.save_bug(bug)
        return OpResult(True, f"Comment added to bug [{bug.id}].")
