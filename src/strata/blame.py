"""Line-by-line attribution of a file to the commits that last changed it."""

from bisect import bisect_right
from typing import Optional

from .context import Context
from .errors import PathNotFound
from .git import BlameOptions
from .history import normalize_path
from .models import BlameHunk, BlameLine, ObjectId, ObjectKind
from .resolve import resolve


def blame_options(ctx: Context) -> BlameOptions:
    """First-parent only; move/copy detection off unless configured."""
    return BlameOptions(
        first_parent=True,
        min_match_characters=ctx.config.blame_min_match_characters,
        track_moves=ctx.config.blame_track_moves,
    )


def split_lines(text: str) -> list[str]:
    if not text:
        return []
    if text.endswith('\n'):
        text = text[:-1]
    return text.split('\n')


def hunk_for_line(hunks: list[BlameHunk], lineno: int, starts: list[int] = None) -> Optional[BlameHunk]:
    """The hunk covering `lineno`; `hunks` must be sorted by start line."""
    if starts is None:
        starts = [h.start for h in hunks]
    idx = bisect_right(starts, lineno) - 1
    if idx >= 0 and lineno in hunks[idx]:
        return hunks[idx]
    return None


def blame(ctx: Context, path: str, at_commit: ObjectId) -> list[BlameLine]:
    """Attribute each line of `path` as of `at_commit`.

    Raises `PathNotFound` if `path` is not a file in that commit's tree.
    """
    repo = ctx.repo
    path = normalize_path(path)
    commit = repo.lookup_commit(at_commit)
    entry = repo.tree_entry(commit.tree, path) if path else None
    if entry is None or entry.kind is not ObjectKind.BLOB:
        raise PathNotFound(path or '', commit.id)
    hunks = sorted(repo.compute_blame(path, commit.id, blame_options(ctx)), key=lambda h: h.start)
    starts = [h.start for h in hunks]
    blob = repo.lookup_blob(entry.id)
    return [
        BlameLine(line_number=n, content=content, hunk=hunk_for_line(hunks, n, starts))
        for n, content in enumerate(split_lines(blob.text), start=1)
    ]


def blame_ref(ctx: Context, path: str, id: str = None, ref: str = None) -> list[BlameLine]:
    """`blame` at the commit resolved from `id` / `ref`."""
    return blame(ctx, path, resolve(ctx, id, ref))
