"""Commit, author, pickaxe and content searches over history."""

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional

from .context import Context
from .diff import diff, parent_tree
from .history import iter_history
from .models import Commit, ObjectId, ObjectKind
from .resolve import resolve


class SearchType(str, Enum):
    COMMIT = 'commit'
    AUTHOR = 'author'
    GREP = 'grep'
    PICKAXE = 'pickaxe'


@dataclass(frozen=True)
class GrepMatch:
    path: str
    line_number: int
    line: str


@dataclass
class SearchResults:
    type: SearchType
    term: str
    commits: list[Commit]
    matches: list[GrepMatch]
    max_results: int
    truncated: bool = False

    @property
    def count(self) -> int:
        return len(self.matches) if self.type is SearchType.GREP else len(self.commits)


def count_occurrences(haystack: str, needle: str) -> int:
    """Non-overlapping occurrences of `needle` in `haystack`."""
    if not needle:
        return 0
    return haystack.count(needle)


def _blob_count(ctx: Context, oid: Optional[ObjectId], term: str) -> int:
    if oid is None:
        return 0
    blob = ctx.repo.lookup_blob(oid)
    if blob.is_binary:
        return 0
    return count_occurrences(blob.text, term)


def changes_occurrences(ctx: Context, commit: Commit, term: str) -> bool:
    """Whether `commit` changes how often `term` occurs in any file it touches."""
    if commit.is_root:
        return tree_contains(ctx, commit.tree, term)
    result = diff(ctx, parent_tree(ctx, commit), commit.tree)
    for delta in result.deltas:
        if _blob_count(ctx, delta.old_blob_id, term) != _blob_count(ctx, delta.new_blob_id, term):
            return True
    return False


def tree_contains(ctx: Context, tree: ObjectId, term: str) -> bool:
    for entry in ctx.repo.lookup_tree(tree):
        if entry.kind is ObjectKind.BLOB:
            if _blob_count(ctx, entry.id, term) > 0:
                return True
        elif entry.kind is ObjectKind.TREE:
            if tree_contains(ctx, entry.id, term):
                return True
    return False


def iter_grep(ctx: Context, tree: ObjectId, term: str, prefix: str = '') -> Iterator[GrepMatch]:
    """Case-insensitive line matches across all text blobs under `tree`."""
    needle = term.lower()
    for entry in ctx.repo.lookup_tree(tree):
        path = f'{prefix}{entry.name}'
        if entry.kind is ObjectKind.TREE:
            yield from iter_grep(ctx, entry.id, term, f'{path}/')
        elif entry.kind is ObjectKind.BLOB:
            blob = ctx.repo.lookup_blob(entry.id)
            if blob.is_binary:
                continue
            for n, line in enumerate(blob.text.split('\n'), start=1):
                if needle in line.lower():
                    yield GrepMatch(path=path, line_number=n, line=line)


def _matches(ctx: Context, search_type: SearchType, commit: Commit, term: str) -> bool:
    needle = term.lower()
    if search_type is SearchType.COMMIT:
        return needle in commit.message.lower()
    if search_type is SearchType.AUTHOR:
        author = commit.author
        return needle in author.name.lower() or needle in author.email.lower()
    if search_type is SearchType.PICKAXE:
        return changes_occurrences(ctx, commit, term)
    raise ValueError(f"Not a commit search: {search_type}")


def max_results_for(ctx: Context, search_type: SearchType) -> int:
    cfg = ctx.config
    if search_type is SearchType.PICKAXE:
        return cfg.max_pickaxe_results
    if search_type is SearchType.GREP:
        return cfg.max_grep_results
    return cfg.max_search_results


def search(
    ctx: Context,
    term: str,
    search_type: SearchType = SearchType.COMMIT,
    id: str = None,
    ref: str = None,
    max_results: int = None,
) -> SearchResults:
    """Run one search from the commit resolved from `id` / `ref`.

    Commit searches walk history in time order; grep scans that commit's tree.
    """
    search_type = SearchType(search_type)
    if max_results is None:
        max_results = max_results_for(ctx, search_type)
    start = resolve(ctx, id, ref)
    commits = []
    matches = []
    truncated = False
    if search_type is SearchType.GREP:
        tree = ctx.repo.lookup_commit(start).tree
        for match in iter_grep(ctx, tree, term):
            if len(matches) >= max_results:
                truncated = True
                break
            matches.append(match)
    else:
        history = iter_history(ctx, start, 'time')
        for commit in history:
            if _matches(ctx, search_type, commit, term):
                if len(commits) >= max_results:
                    truncated = True
                    break
                commits.append(commit)
        history.close()
    return SearchResults(
        type=search_type,
        term=term,
        commits=commits,
        matches=matches,
        max_results=max_results,
        truncated=truncated,
    )
