"""Read-only, request-scoped views of repository objects and diff results."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from .errors import PatchUnavailable

# Hex object ids are passed around as plain strings (SHA-1: 40 chars, SHA-256: 64).
ObjectId = str

OID_HEX_LENGTHS = (40, 64)
_HEX = set('0123456789abcdefABCDEF')


def is_full_oid(value: str) -> bool:
    """Whether `value` parses as a complete hex object id."""
    return bool(value) and len(value) in OID_HEX_LENGTHS and set(value) <= _HEX


@dataclass(frozen=True)
class Signature:
    name: str
    email: str
    time: int
    offset: int  # minutes east of UTC

    @property
    def tz(self) -> str:
        sign = '-' if self.offset < 0 else '+'
        hours, minutes = divmod(abs(self.offset), 60)
        return f'{sign}{hours:02d}{minutes:02d}'


@dataclass(frozen=True)
class Commit:
    id: ObjectId
    parents: tuple[ObjectId, ...]
    tree: ObjectId
    author: Signature
    committer: Signature
    message: str

    @property
    def summary(self) -> str:
        """First line of the message."""
        return self.message.split('\n', 1)[0].strip()

    @property
    def body(self) -> str:
        parts = self.message.split('\n', 1)
        return parts[1].strip() if len(parts) > 1 else ''

    @property
    def time(self) -> int:
        return self.committer.time

    @property
    def is_root(self) -> bool:
        return not self.parents

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1

    @property
    def first_parent(self) -> Optional[ObjectId]:
        return self.parents[0] if self.parents else None


class ObjectKind(str, Enum):
    BLOB = 'blob'
    TREE = 'tree'
    COMMIT = 'commit'  # submodule entries


@dataclass(frozen=True)
class TreeEntry:
    name: str
    mode: str
    kind: ObjectKind
    id: ObjectId


@dataclass(frozen=True)
class Tree:
    id: ObjectId
    entries: tuple[TreeEntry, ...] = ()

    def __len__(self):
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def entry(self, name: str) -> Optional[TreeEntry]:
        for entry in self.entries:
            if entry.name == name:
                return entry
        return None


@dataclass(frozen=True)
class Blob:
    id: ObjectId
    data: bytes

    @property
    def is_binary(self) -> bool:
        # Same heuristic git uses: a NUL byte in the first 8000 bytes.
        return b'\0' in self.data[:8000]

    @property
    def text(self) -> str:
        return self.data.decode('utf-8', errors='replace')


class RefKind(str, Enum):
    BRANCH = 'branch'
    TAG = 'tag'


@dataclass(frozen=True)
class Ref:
    name: str
    kind: RefKind
    target: ObjectId


class DeltaStatus(str, Enum):
    ADDED = 'added'
    DELETED = 'deleted'
    MODIFIED = 'modified'
    RENAMED = 'renamed'
    COPIED = 'copied'
    TYPE_CHANGED = 'type-changed'


# Status letters in git's raw diff output
STATUS_LETTERS = {
    'A': DeltaStatus.ADDED,
    'D': DeltaStatus.DELETED,
    'M': DeltaStatus.MODIFIED,
    'R': DeltaStatus.RENAMED,
    'C': DeltaStatus.COPIED,
    'T': DeltaStatus.TYPE_CHANGED,
}


@dataclass(frozen=True)
class Delta:
    old_path: str
    new_path: str
    status: DeltaStatus
    old_blob_id: Optional[ObjectId] = None
    new_blob_id: Optional[ObjectId] = None
    similarity: Optional[int] = None

    def __post_init__(self):
        if self.status is DeltaStatus.ADDED and self.old_blob_id is not None:
            raise ValueError(f"added delta {self.new_path} cannot carry an old blob id")
        if self.status is DeltaStatus.DELETED and self.new_blob_id is not None:
            raise ValueError(f"deleted delta {self.old_path} cannot carry a new blob id")

    @property
    def path(self) -> str:
        """Path to display: the new path, or the old one for deletions."""
        return self.old_path if self.status is DeltaStatus.DELETED else self.new_path

    @property
    def is_rename(self) -> bool:
        return self.status is DeltaStatus.RENAMED and self.old_path != self.new_path


class LineOrigin(str, Enum):
    CONTEXT = 'context'
    ADDITION = 'addition'
    DELETION = 'deletion'
    HUNK_MARKER = 'hunk-marker'

    @property
    def prefix(self) -> str:
        return {'context': ' ', 'addition': '+', 'deletion': '-'}.get(self.value, '')


@dataclass(frozen=True)
class Line:
    origin: LineOrigin
    content: str
    old_lineno: Optional[int] = None
    new_lineno: Optional[int] = None


@dataclass(frozen=True)
class Hunk:
    header: str
    old_start: int
    old_lines: int
    new_start: int
    new_lines: int
    lines: tuple[Line, ...] = ()

    def iter_lines(self):
        """Yield the hunk-marker line followed by the body lines, in order."""
        yield Line(LineOrigin.HUNK_MARKER, self.header)
        yield from self.lines


@dataclass(frozen=True)
class FileStats:
    additions: int
    deletions: int

    @property
    def changes(self) -> int:
        return self.additions + self.deletions


@dataclass(frozen=True)
class DiffStats:
    files: int = 0
    insertions: int = 0
    deletions: int = 0


PatchLoader = Callable[[Delta], tuple[Hunk, ...]]


@dataclass
class Diff:
    """Structured diff between two tree states.

    Per-file stats are computed independently of the aggregate stats; `None`
    means the backend produced no line counts for that delta (binary). Hunks
    are only materialized when `patch()` is called.
    """
    deltas: list[Delta]
    stats: DiffStats
    file_stats: list[Optional[FileStats]]
    old_tree: Optional[ObjectId] = None
    new_tree: Optional[ObjectId] = None
    load_patch: Optional[PatchLoader] = field(default=None, repr=False, compare=False)
    _patches: dict = field(default_factory=dict, repr=False, compare=False)

    def __len__(self):
        return len(self.deltas)

    def __iter__(self):
        return iter(self.deltas)

    def patch(self, idx: int) -> tuple[Hunk, ...]:
        """Hunks for delta `idx`; raises `PatchUnavailable` when none can be produced."""
        if idx in self._patches:
            result = self._patches[idx]
        else:
            delta = self.deltas[idx]
            if self.load_patch is None:
                result = PatchUnavailable(delta.path, 'no patch loader')
            else:
                try:
                    result = self.load_patch(delta)
                except PatchUnavailable as e:
                    result = e
            self._patches[idx] = result
        if isinstance(result, PatchUnavailable):
            raise result
        return result

    @property
    def max_changes(self) -> int:
        return max((s.changes for s in self.file_stats if s is not None), default=0)


@dataclass(frozen=True, eq=False)
class BlameHunk:
    """One blamed range of final lines. Compared by identity."""
    start: int  # first final line number, 1-based
    lines: int
    final_commit_id: ObjectId
    final_signature: Optional[Signature]
    orig_path: Optional[str] = None
    orig_start: Optional[int] = None
    summary: str = ''

    @property
    def line_range(self) -> range:
        return range(self.start, self.start + self.lines)

    def __contains__(self, lineno: int) -> bool:
        return self.start <= lineno < self.start + self.lines


@dataclass(frozen=True)
class BlameLine:
    line_number: int
    content: str
    hunk: Optional[BlameHunk]
