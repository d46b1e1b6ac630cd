"""User configuration stored in ``~/.bugbookrc``.

The file is JSON. Reads never fail: a missing or corrupt file yields an
empty configuration. Keys this module does not know are preserved on write.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from bugbook.store_base import write_private

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".bugbookrc"
CONFIG_PATH = Path.home() / CONFIG_FILENAME

SUPPORTED_KEYS: tuple[str, ...] = (
    "user.name",
    "user.email",
    "editor",
    "github.token",
    "github.owner",
    "github.repo",
    "github.auto_labels",
    "github.label_prefix",
)
_BOOL_KEYS = frozenset({"github.auto_labels"})


@dataclass
class GitHubConfig:
    token: str | None = None
    owner: str | None = None
    repo: str | None = None
    auto_labels: bool = True
    label_prefix: str = "bug:"

    @property
    def is_configured(self) -> bool:
        return bool(self.token and self.owner and self.repo)


@dataclass
class UserConfig:
    user_name: str | None = None
    user_email: str | None = None
    editor: str | None = None
    github: GitHubConfig = field(default_factory=GitHubConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UserConfig:
        user = data.get("user") if isinstance(data.get("user"), dict) else {}
        gh = data.get("github") if isinstance(data.get("github"), dict) else {}
        return cls(
            user_name=user.get("name") or None,
            user_email=user.get("email") or None,
            editor=data.get("editor") or None,
            github=GitHubConfig(
                token=gh.get("token") or None,
                owner=gh.get("owner") or None,
                repo=gh.get("repo") or None,
                auto_labels=gh.get("auto_labels", True) is not False,
                label_prefix=gh.get("label_prefix") or "bug:",
            ),
        )


def _config_path(path: Path | None) -> Path:
    return path if path is not None else CONFIG_PATH


def _read_raw(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError, UnicodeDecodeError) as exc:
        logger.warning("Failed to read %s, using defaults: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Config file %s is not a JSON object, using defaults", path)
        return {}
    return data


def read_user_config(path: Path | None = None) -> UserConfig:
    return UserConfig.from_dict(_read_raw(_config_path(path)))


def get_user_config_value(key: str, path: Path | None = None) -> Any:
    """Return the raw value for a dotted key, or None if unset."""
    if key not in SUPPORTED_KEYS:
        msg = f"Invalid config key '{key}'. Supported keys: {', '.join(SUPPORTED_KEYS)}"
        raise ValueError(msg)
    node: Any = _read_raw(_config_path(path))
    for part in key.split("."):
        if not isinstance(node, dict):
            return None
        node = node.get(part)
    return node


def set_user_config(key: str, value: str | bool, path: Path | None = None) -> UserConfig:
    """Set a dotted key and write the file with owner-only permissions."""
    if key not in SUPPORTED_KEYS:
        msg = f"Invalid config key '{key}'. Supported keys: {', '.join(SUPPORTED_KEYS)}"
        raise ValueError(msg)
    if key in _BOOL_KEYS and isinstance(value, str):
        value = value.strip().lower() in ("1", "true", "yes", "on")

    config_path = _config_path(path)
    data = _read_raw(config_path)
    parts = key.split(".")
    node = data
    for part in parts[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child
    node[parts[-1]] = value

    write_private(config_path, (json.dumps(data, indent=2) + "\n").encode("utf-8"))
    return UserConfig.from_dict(data)
