"""TagsMixin: the category tag registry (``tags.json``).

The registry is append-only: tags can be added but never renamed or
removed. Bugs are not checked against it, so a category missing from the
registry is still a valid category.
"""

from __future__ import annotations

import json
import logging
from collections import Counter

from bugbook.models import DEFAULT_TAG
from bugbook.store_base import OpResult, StoreMixinProtocol, write_private
from bugbook.validation import sanitize_tag_name

logger = logging.getLogger(__name__)


class TagsMixin(StoreMixinProtocol):
    """Tag registry methods. Mixed into BugStore."""

    def list_tags(self) -> list[str]:
        """Registered tags in insertion order, or ``["General"]`` if there is no registry."""
        if not self.tags_path.exists():
            return [DEFAULT_TAG]
        try:
            data = json.loads(self.tags_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError, UnicodeDecodeError) as exc:
            logger.warning("Failed to read %s, using default tags: %s", self.tags_path, exc)
            return [DEFAULT_TAG]
        if not isinstance(data, list):
            logger.warning("Tag registry %s is not a JSON array, using default tags", self.tags_path)
            return [DEFAULT_TAG]
        tags: list[str] = []
        for item in data:
            if isinstance(item, str) and item.strip() and item.strip() not in tags:
                tags.append(item.strip())
        return tags

    def add_tag(self, name: str) -> OpResult:
        tag = sanitize_tag_name(name)
        if not tag:
            return OpResult(False, "Tag name is empty after removing invalid characters.")
        tags = self.list_tags()
        if tag in tags:
            return OpResult(False, f"Tag '{tag}' already exists.")
        tags.append(tag)
        self.root.mkdir(parents=True, exist_ok=True)
        write_private(self.tags_path, (json.dumps(tags, indent=2) + "\n").encode("utf-8"))
        logger.info("Added tag %s", tag)
        return OpResult(True, f"Tag '{tag}' added.")

    def tag_counts(self) -> dict[str, int]:
        """Number of bugs per category, including categories not in the registry."""
        return dict(Counter(bug.category for bug in self.list_bugs()))
