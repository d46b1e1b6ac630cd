"""Bugbook: a per-project bug ledger stored as one JSON file per bug."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("bugbook")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

from bugbook.core import BugStore
from bugbook.models import Bug, Comment

__all__ = ["Bug", "BugStore", "Comment", "__version__"]
