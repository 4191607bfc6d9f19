"""Commit ancestry walks with optional path filtering."""

from itertools import islice
from typing import Iterator, Optional

from utz import err

from .context import Context
from .errors import RevisionUnavailable
from .models import Commit, ObjectId


def normalize_path(path: Optional[str]) -> Optional[str]:
    if path is None:
        return None
    path = path.strip('/')
    return path or None


def touches_path(ctx: Context, commit: Commit, path: str) -> bool:
    """Whether `commit` touches `path`.

    Root commits touch every path that exists in their tree; other commits
    touch `path` if it differs from their first parent's tree.
    """
    repo = ctx.repo
    if commit.is_root:
        return repo.tree_entry(commit.tree, path) is not None
    parent = repo.lookup_commit(commit.first_parent)
    return len(repo.changed_paths(parent.tree, commit.tree, (path,))) > 0


def iter_history(
    ctx: Context,
    start: ObjectId,
    order: str = 'time',
    path_filter: Optional[str] = None,
) -> Iterator[Commit]:
    """Lazily yield commits reachable from `start` in walker order.

    If `start` can't be pushed onto the walk, the walk starts from HEAD.
    """
    repo = ctx.repo
    path_filter = normalize_path(path_filter)
    try:
        oids = repo.revwalk(start, order)
    except RevisionUnavailable as e:
        err(f"{e}; walking from HEAD")
        oids = repo.revwalk(repo.head(), order)
    for oid in oids:
        commit = repo.lookup_commit(oid)
        if path_filter and not touches_path(ctx, commit, path_filter):
            continue
        yield commit


def walk(
    ctx: Context,
    start: ObjectId,
    order: str = None,
    path_filter: Optional[str] = None,
    offset: int = 0,
    limit: int = None,
) -> tuple[list[Commit], bool]:
    """Collect one page of history.

    `offset` skips that many matching commits. The returned flag is "maybe
    more": true whenever the page came back full.
    """
    order = order or ctx.config.commit_sort
    limit = ctx.config.max_commit_count if limit is None else limit
    offset = max(offset, 0)
    commits = iter_history(ctx, start, order, path_filter)
    page = list(islice(commits, offset, offset + limit))
    commits.close()
    return page, limit > 0 and len(page) == limit
