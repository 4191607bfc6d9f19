"""Structured diffs between tree states, and the commit-level entry points built on them."""

from dataclasses import dataclass
from typing import Optional, Union

from .context import Context
from .git import DiffOptions
from .history import normalize_path
from .models import Commit, Diff, DiffStats, ObjectId, Tree
from .resolve import resolve

TreeLike = Union[Tree, ObjectId, None]


def _tree_id(tree: TreeLike) -> Optional[ObjectId]:
    if tree is None:
        return None
    return tree.id if isinstance(tree, Tree) else tree


def diff(
    ctx: Context,
    old_tree: TreeLike,
    new_tree: TreeLike,
    path_filter: Optional[str] = None,
    context_lines: int = None,
) -> Diff:
    """Diff two trees; `old_tree=None` is the empty tree (every delta "added").

    Only deltas and stats are computed here; hunks load per delta on demand.
    """
    if context_lines is None:
        context_lines = ctx.config.context_lines
    path_filter = normalize_path(path_filter)
    options = DiffOptions(
        pathspec=(path_filter,) if path_filter else (),
        context_lines=context_lines,
    )
    return ctx.repo.diff_trees(_tree_id(old_tree), _tree_id(new_tree), options)


def parent_tree(ctx: Context, commit: Commit) -> Optional[ObjectId]:
    """Tree of the first parent, or `None` for a root commit."""
    if commit.is_root:
        return None
    return ctx.repo.lookup_commit(commit.first_parent).tree


def commit_diff(ctx: Context, commit: Commit, path_filter: str = None, context_lines: int = None) -> Diff:
    """Changes introduced by `commit` relative to its first parent."""
    return diff(ctx, parent_tree(ctx, commit), commit.tree, path_filter, context_lines)


def commit_stats(ctx: Context, commit: Commit) -> DiffStats:
    return commit_diff(ctx, commit).stats


@dataclass
class CommitDiff:
    old: Optional[Commit]
    new: Commit
    diff: Diff
    path: Optional[str] = None


def diff_commits(
    ctx: Context,
    id: str = None,
    ref: str = None,
    id2: str = None,
    path: str = None,
    context_lines: int = None,
) -> CommitDiff:
    """Diff between two commits.

    The new side is resolved from `id` / `ref`; the old side is `id2` if
    given, else the new commit's first parent (the empty tree for a root).
    """
    repo = ctx.repo
    new = repo.lookup_commit(resolve(ctx, id, ref))
    if id2:
        old = repo.lookup_commit(resolve(ctx, id2, id2))
    elif new.is_root:
        old = None
    else:
        old = repo.lookup_commit(new.first_parent)
    path = normalize_path(path)
    result = diff(ctx, old.tree if old else None, new.tree, path, context_lines)
    return CommitDiff(old=old, new=new, diff=result, path=path)
