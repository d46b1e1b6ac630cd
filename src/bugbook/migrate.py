"""Upgrade legacy bugbook layouts to one JSON file per record.

Three historical layouts, oldest first:
  1. ``bugs.md``: markdown ledger (see ``bugbook.legacy``)
  2. ``bugs.json``: a single JSON array of records
  3. ``bugs/BUG-<ID>.json``: current

Each step is keyed on its legacy source file and renames that file to
``*.bak`` once converted, so re-running is a no-op. Steps are independent:
a failure in one is logged, leaves its source untouched, and does not stop
the others. Existing per-record files are never overwritten, so the ledger
step cannot clobber records the array step already wrote.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from bugbook.codec import encode_bug
from bugbook.legacy import (
    LegacyArrayRecord,
    LegacyLedgerRecord,
    ParseFailure,
    array_record_to_bug,
    ledger_record_to_bug,
    parse_array,
    parse_ledger,
)
from bugbook.models import Bug
from bugbook.store_base import (
    BUGS_DIR_NAME,
    TAGS_FILENAME,
    _now_iso,
    record_filename,
    write_private,
)

logger = logging.getLogger(__name__)

LEGACY_ARRAY_FILENAME = "bugs.json"
LEGACY_LEDGER_FILENAME = "bugs.md"
LEGACY_TAGS_FILENAME = "tags.md"
BACKUP_SUFFIX = ".bak"


@dataclass
class MigrationReport:
    array_records: int = 0
    ledger_records: int = 0
    tags: int = 0
    skipped_existing: int = 0
    backups: list[Path] = field(default_factory=list)
    failures: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.backups)


def _backup(source: Path) -> Path:
    """Rename *source* to ``<name>.bak``, never replacing an earlier backup."""
    target = source.with_name(source.name + BACKUP_SUFFIX)
    n = 1
    while target.exists():
        target = source.with_name(f"{source.name}{BACKUP_SUFFIX}.{n}")
        n += 1
    os.replace(source, target)
    return target


def _write_if_absent(bugs_dir: Path, bug: Bug) -> bool:
    path = bugs_dir / record_filename(bug.id)
    if path.exists():
        return False
    bugs_dir.mkdir(parents=True, exist_ok=True)
    write_private(path, encode_bug(bug))
    return True


def migrate_array_file(root: Path, report: MigrationReport) -> None:
    source = root / LEGACY_ARRAY_FILENAME
    if not source.is_file():
        return
    results = parse_array(source.read_text(encoding="utf-8"))
    if len(results) == 1 and isinstance(results[0], ParseFailure) and results[0].index is None:
        logger.error("Cannot migrate %s, leaving it in place: %s", source, results[0].reason)
        report.failures.append(f"{source.name}: {results[0].reason}")
        return

    bugs_dir = root / BUGS_DIR_NAME
    now = _now_iso()
    for result in results:
        if isinstance(result, ParseFailure):
            logger.warning("Skipping %s entry %s: %s", source.name, result.index, result.reason)
            continue
        assert isinstance(result, LegacyArrayRecord)
        bug = array_record_to_bug(result, now)
        if _write_if_absent(bugs_dir, bug):
            report.array_records += 1
        else:
            report.skipped_existing += 1
    report.backups.append(_backup(source))
    logger.info("Migrated %d record(s) from %s", report.array_records, source.name)


def migrate_ledger_file(root: Path, report: MigrationReport) -> None:
    source = root / LEGACY_LEDGER_FILENAME
    if not source.is_file():
        return
    bugs_dir = root / BUGS_DIR_NAME
    now = _now_iso()
    for result in parse_ledger(source.read_text(encoding="utf-8")):
        if isinstance(result, ParseFailure):
            logger.warning("Skipping %s section %s: %s", source.name, result.index, result.reason)
            continue
        assert isinstance(result, LegacyLedgerRecord)
        old_id = result.fields.get("id")
        bug = ledger_record_to_bug(result, now)
        if old_id and old_id.upper() != bug.id:
            logger.warning("Ledger bug '%s' has a non-hex ID, migrated as %s", old_id, bug.id)
        if _write_if_absent(bugs_dir, bug):
            report.ledger_records += 1
        else:
            report.skipped_existing += 1
    report.backups.append(_backup(source))
    logger.info("Migrated %d record(s) from %s", report.ledger_records, source.name)


def migrate_tags_file(root: Path, report: MigrationReport) -> None:
    source = root / LEGACY_TAGS_FILENAME
    target = root / TAGS_FILENAME
    if not source.is_file() or target.exists():
        return
    tags: list[str] = []
    for line in source.read_text(encoding="utf-8").splitlines():
        tag = line.strip()
        if tag and tag not in tags:
            tags.append(tag)
    write_private(target, (json.dumps(tags, indent=2) + "\n").encode("utf-8"))
    report.tags = len(tags)
    report.backups.append(_backup(source))
    logger.info("Migrated %d tag(s) from %s", len(tags), source.name)


def migrate_legacy_layouts(root: Path) -> MigrationReport:
    """Run every migration step against the storage root *root*."""
    report = MigrationReport()
    for step in (migrate_array_file, migrate_ledger_file, migrate_tags_file):
        try:
            step(root, report)
        except (OSError, ValueError) as exc:
            logger.error("Migration step %s failed: %s", step.__name__, exc)
            report.failures.append(f"{step.__name__}: {exc}")
    return report
