"""git-strata: render a repository's history, diffs and blame as HTML."""

__version__ = "0.1.0"

from .blame import blame_ref
from .cli import cli
from .config import Config
from .context import Context, open_context
from .diff import commit_diff, commit_stats, diff_commits
from .errors import (
    BackendUnavailable,
    PatchUnavailable,
    PathNotFound,
    RevisionUnavailable,
    StrataError,
)
from .git import Repository
from .history import iter_history, walk
from .resolve import ref_map, resolve
from .search import SearchResults, SearchType
from .sink import Sink, StreamSink, StringSink

__all__ = [
    "cli",
    "blame_ref",
    "Config",
    "Context",
    "open_context",
    "commit_diff",
    "commit_stats",
    "diff_commits",
    "BackendUnavailable",
    "PatchUnavailable",
    "PathNotFound",
    "RevisionUnavailable",
    "StrataError",
    "Repository",
    "iter_history",
    "walk",
    "ref_map",
    "resolve",
    "SearchType",
    "SearchResults",
    "Sink",
    "StreamSink",
    "StringSink",
]
