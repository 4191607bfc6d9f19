"""Repository backend: object lookup, tree diffs, blame and revwalk via the git executable."""

import re
from dataclasses import dataclass
from os import environ
from subprocess import DEVNULL, PIPE, Popen, run
from typing import Iterator, Optional

from utz import err

from .errors import BackendUnavailable, PatchUnavailable, RevisionUnavailable
from .models import (
    STATUS_LETTERS,
    Blob,
    BlameHunk,
    Commit,
    DeltaStatus,
    Delta,
    Diff,
    DiffStats,
    FileStats,
    Hunk,
    Line,
    LineOrigin,
    ObjectId,
    ObjectKind,
    Ref,
    RefKind,
    Signature,
    Tree,
    TreeEntry,
)

SIGNATURE_RE = re.compile(r'^(?P<name>.*?) <(?P<email>[^>]*)> (?P<time>-?\d+) (?P<tz>[+-]\d{4})$')
HUNK_HEADER_RE = re.compile(r'^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@')
SHORTSTAT_RE = {
    'files': re.compile(r'(\d+) files? changed'),
    'insertions': re.compile(r'(\d+) insertions?\(\+\)'),
    'deletions': re.compile(r'(\d+) deletions?\(-\)'),
}


@dataclass(frozen=True)
class DiffOptions:
    pathspec: tuple[str, ...] = ()
    context_lines: int = 3
    find_renames: bool = True


@dataclass(frozen=True)
class BlameOptions:
    first_parent: bool = True
    min_match_characters: int = 20
    track_moves: bool = False


def parse_tz(tz: str) -> int:
    """Convert a '+HHMM' / '-HHMM' offset to minutes east of UTC."""
    sign = -1 if tz.startswith('-') else 1
    digits = tz.lstrip('+-')
    return sign * (int(digits[:2]) * 60 + int(digits[2:4]))


def parse_signature(value: str) -> Signature:
    m = SIGNATURE_RE.match(value)
    if not m:
        return Signature(name=value.strip(), email='', time=0, offset=0)
    return Signature(
        name=m['name'],
        email=m['email'],
        time=int(m['time']),
        offset=parse_tz(m['tz']),
    )


def parse_commit(oid: ObjectId, raw: bytes) -> Commit:
    """Parse a raw commit object as printed by `git cat-file commit`."""
    header, _, message = raw.partition(b'\n\n')
    tree = None
    parents = []
    author = committer = None
    encoding = 'utf-8'
    for line in header.split(b'\n'):
        # Continuation of a multi-line header (gpgsig, mergetag)
        if line.startswith(b' '):
            continue
        key, _, value = line.partition(b' ')
        if key == b'tree':
            tree = value.decode('ascii')
        elif key == b'parent':
            parents.append(value.decode('ascii'))
        elif key == b'author':
            author = value
        elif key == b'committer':
            committer = value
        elif key == b'encoding':
            encoding = value.decode('ascii', errors='replace')

    def decode(data: bytes) -> str:
        try:
            return data.decode(encoding, errors='replace')
        except LookupError:
            return data.decode('utf-8', errors='replace')

    if tree is None or author is None or committer is None:
        raise RevisionUnavailable(oid, 'malformed commit object')
    return Commit(
        id=oid,
        parents=tuple(parents),
        tree=tree,
        author=parse_signature(decode(author)),
        committer=parse_signature(decode(committer)),
        message=decode(message),
    )


def parse_ls_tree(output: str) -> list[TreeEntry]:
    """Parse `git ls-tree -z` output."""
    entries = []
    for record in output.split('\0'):
        if not record:
            continue
        meta, _, name = record.partition('\t')
        mode, kind, oid = meta.split(' ')
        entries.append(TreeEntry(name=name, mode=mode, kind=ObjectKind(kind), id=oid))
    return entries


def _null_oid(oid: str) -> Optional[str]:
    return None if set(oid) == {'0'} else oid


def parse_raw_diff(output: str) -> list[Delta]:
    """Parse `git diff-tree -r -z --raw` output into deltas."""
    tokens = output.split('\0')
    deltas = []
    i = 0
    while i < len(tokens):
        meta = tokens[i]
        if not meta.startswith(':'):
            i += 1
            continue
        _, _, old_oid, new_oid, status = meta[1:].split(' ')
        letter = status[0]
        score = int(status[1:]) if status[1:].isdigit() else None
        if letter in 'RC':
            old_path, new_path = tokens[i + 1], tokens[i + 2]
            i += 3
        else:
            old_path = new_path = tokens[i + 1]
            i += 2
        kind = STATUS_LETTERS.get(letter, DeltaStatus.MODIFIED)
        old_blob = None if kind is DeltaStatus.ADDED else _null_oid(old_oid)
        new_blob = None if kind is DeltaStatus.DELETED else _null_oid(new_oid)
        deltas.append(Delta(
            old_path=old_path,
            new_path=new_path,
            status=kind,
            old_blob_id=old_blob,
            new_blob_id=new_blob,
            similarity=score,
        ))
    return deltas


def parse_numstat(output: str) -> dict[str, Optional[FileStats]]:
    """Parse `git diff-tree -r -z --numstat` output, keyed by (new) path.

    Binary files report '-' counts and map to `None`.
    """
    tokens = output.split('\0')
    stats = {}
    i = 0
    while i < len(tokens):
        record = tokens[i]
        if not record:
            i += 1
            continue
        adds, dels, path = record.split('\t', 2)
        if path:
            i += 1
        else:
            # Rename/copy: the old and new paths follow as separate tokens
            path = tokens[i + 2]
            i += 3
        if adds == '-' or dels == '-':
            stats[path] = None
        else:
            stats[path] = FileStats(additions=int(adds), deletions=int(dels))
    return stats


def parse_shortstat(output: str) -> DiffStats:
    values = {}
    for key, regex in SHORTSTAT_RE.items():
        m = regex.search(output)
        values[key] = int(m.group(1)) if m else 0
    return DiffStats(**values)


def parse_hunks(patch_text: str, path: str) -> tuple[Hunk, ...]:
    """Parse the hunks of the first file section of a unified patch."""
    hunks = []
    header = None
    lines = []
    counts = None
    old_no = new_no = 0
    seen_file = False

    def flush():
        if header is not None:
            hunks.append(Hunk(header, *counts, lines=tuple(lines)))

    for raw in patch_text.split('\n'):
        if raw.startswith('diff --git '):
            if seen_file:
                break
            seen_file = True
            continue
        if raw.startswith('Binary files ') or raw == 'GIT binary patch':
            raise PatchUnavailable(path, 'binary file')
        m = HUNK_HEADER_RE.match(raw)
        if m:
            flush()
            old_start = int(m.group(1))
            old_lines = int(m.group(2)) if m.group(2) is not None else 1
            new_start = int(m.group(3))
            new_lines = int(m.group(4)) if m.group(4) is not None else 1
            header = raw
            counts = (old_start, old_lines, new_start, new_lines)
            lines = []
            old_no, new_no = old_start, new_start
            continue
        if header is None:
            continue
        origin = raw[:1]
        content = raw[1:]
        if origin == '+':
            lines.append(Line(LineOrigin.ADDITION, content, new_lineno=new_no))
            new_no += 1
        elif origin == '-':
            lines.append(Line(LineOrigin.DELETION, content, old_lineno=old_no))
            old_no += 1
        elif origin == ' ':
            lines.append(Line(LineOrigin.CONTEXT, content, old_lineno=old_no, new_lineno=new_no))
            old_no += 1
            new_no += 1
        elif origin == '\\':
            # "\ No newline at end of file"
            continue
        elif raw == '' and old_no < counts[0] + counts[1] and new_no < counts[2] + counts[3]:
            lines.append(Line(LineOrigin.CONTEXT, '', old_lineno=old_no, new_lineno=new_no))
            old_no += 1
            new_no += 1
    flush()
    return tuple(hunks)


def parse_porcelain_blame(output: str) -> list[BlameHunk]:
    """Parse `git blame --porcelain` output; each porcelain group becomes one hunk."""
    hunks = []
    metadata = {}
    lines = output.split('\n')
    i = 0
    while i < len(lines):
        header = lines[i]
        i += 1
        if not header or header.startswith('\t'):
            continue
        parts = header.split(' ')
        sha = parts[0]
        orig_line, final_line = int(parts[1]), int(parts[2])
        group_size = int(parts[3]) if len(parts) > 3 else None
        meta = metadata.setdefault(sha, {})
        while i < len(lines) and not lines[i].startswith('\t'):
            key, _, value = lines[i].partition(' ')
            meta[key] = value
            i += 1
        i += 1  # content line
        if group_size is None:
            continue
        signature = None
        if 'author' in meta:
            signature = Signature(
                name=meta['author'],
                email=meta.get('author-mail', '').strip('<>'),
                time=int(meta.get('author-time', 0)),
                offset=parse_tz(meta.get('author-tz', '+0000')),
            )
        hunks.append(BlameHunk(
            start=final_line,
            lines=group_size,
            final_commit_id=sha,
            final_signature=signature,
            orig_path=meta.get('filename'),
            orig_start=orig_line,
            summary=meta.get('summary', ''),
        ))
    return hunks


class Repository:
    """One repository, opened once per request.

    Every primitive is a blocking call to the git executable. Lookups are
    cached on the instance until `close()`.
    """

    def __init__(self, path: str):
        self.path = str(path)
        self._commits: dict[ObjectId, Commit] = {}
        self._trees: dict[ObjectId, Tree] = {}
        self._empty_tree: Optional[ObjectId] = None
        self.closed = False

    @classmethod
    def open(cls, path) -> 'Repository':
        try:
            result = run(['git', '-C', str(path), 'rev-parse', '--git-dir'], capture_output=True, text=True)
        except OSError as e:
            raise BackendUnavailable(str(path), str(e)) from e
        if result.returncode != 0:
            raise BackendUnavailable(str(path), result.stderr.strip())
        return cls(path)

    def close(self) -> None:
        self._commits.clear()
        self._trees.clear()
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def cmd(self, *args: str) -> list[str]:
        return ['git', '--literal-pathspecs', '-C', self.path, *args]

    def git(self, *args: str, text: bool = True, input=None):
        env = {**environ, 'LC_ALL': 'C'}
        if text and input is not None:
            input = input.encode('utf-8')
        result = run(self.cmd(*args), capture_output=True, input=input, env=env)
        if text:
            # No newline translation: -z paths may contain a lone \r
            result.stdout = result.stdout.decode('utf-8', errors='replace')
            result.stderr = result.stderr.decode('utf-8', errors='replace')
        return result

    # References

    def _rev_parse_commit(self, rev: str) -> ObjectId:
        if not rev or rev.startswith('-'):
            raise RevisionUnavailable(rev, 'invalid revision name')
        result = self.git('rev-parse', '--verify', '--quiet', f'{rev}^{{commit}}')
        oid = result.stdout.strip()
        if result.returncode != 0 or not oid:
            raise RevisionUnavailable(rev)
        return oid

    def head(self) -> ObjectId:
        return self._rev_parse_commit('HEAD')

    def resolve_ref(self, name: str) -> ObjectId:
        return self._rev_parse_commit(name)

    def list_refs(self) -> list[Ref]:
        """Local branches and tags; annotated tags are peeled to their target."""
        result = self.git(
            'for-each-ref',
            '--format=%(refname)%00%(objectname)%00%(*objectname)',
            'refs/heads', 'refs/tags',
        )
        if result.returncode != 0:
            err(f"Error listing refs in {self.path}: {result.stderr.strip()}")
            return []
        refs = []
        for line in result.stdout.splitlines():
            if not line:
                continue
            refname, oid, peeled = line.split('\0')
            if refname.startswith('refs/heads/'):
                refs.append(Ref(refname[len('refs/heads/'):], RefKind.BRANCH, oid))
            elif refname.startswith('refs/tags/'):
                refs.append(Ref(refname[len('refs/tags/'):], RefKind.TAG, peeled or oid))
        return refs

    # Objects

    def lookup_commit(self, oid: ObjectId) -> Commit:
        if oid in self._commits:
            return self._commits[oid]
        result = self.git('cat-file', 'commit', oid, text=False)
        if result.returncode != 0:
            raise RevisionUnavailable(oid, result.stderr.decode('utf-8', errors='replace').strip())
        commit = parse_commit(oid, result.stdout)
        self._commits[oid] = commit
        return commit

    def lookup_tree(self, oid: ObjectId) -> Tree:
        if oid in self._trees:
            return self._trees[oid]
        result = self.git('ls-tree', '-z', oid)
        if result.returncode != 0:
            raise RevisionUnavailable(oid, result.stderr.strip())
        tree = Tree(id=oid, entries=tuple(parse_ls_tree(result.stdout)))
        self._trees[oid] = tree
        return tree

    def lookup_blob(self, oid: ObjectId) -> Blob:
        result = self.git('cat-file', 'blob', oid, text=False)
        if result.returncode != 0:
            raise RevisionUnavailable(oid, result.stderr.decode('utf-8', errors='replace').strip())
        return Blob(id=oid, data=result.stdout)

    def tree_entry(self, tree: ObjectId, path: str) -> Optional[TreeEntry]:
        """Direct lookup of `path` (slash-separated) in `tree`."""
        path = path.strip('/')
        if not path:
            return None
        result = self.git('ls-tree', '-z', '--full-tree', tree, '--', path)
        if result.returncode != 0:
            return None
        for entry in parse_ls_tree(result.stdout):
            if entry.name == path:
                return entry
        return None

    def empty_tree(self) -> ObjectId:
        if self._empty_tree is None:
            result = self.git('hash-object', '-t', 'tree', '--stdin', input='')
            if result.returncode != 0:
                raise BackendUnavailable(self.path, result.stderr.strip())
            self._empty_tree = result.stdout.strip()
        return self._empty_tree

    # Diffs

    def _diff_args(self, old: Optional[ObjectId], new: ObjectId, options: DiffOptions, *flags: str) -> list[str]:
        args = ['diff-tree', '-r', '--no-color', *flags]
        if options.find_renames:
            args.append('-M')
        args.extend([old or self.empty_tree(), new])
        if options.pathspec:
            args.extend(['--', *options.pathspec])
        return args

    def _diff_output(self, old, new, options, *flags) -> str:
        result = self.git(*self._diff_args(old, new, options, *flags))
        if result.returncode != 0:
            raise RevisionUnavailable(f'{old or "(empty)"}..{new}', result.stderr.strip())
        return result.stdout

    def changed_paths(self, old: Optional[ObjectId], new: ObjectId, pathspec: tuple[str, ...] = ()) -> list[str]:
        """Paths differing between two trees; never reads line content."""
        options = DiffOptions(pathspec=pathspec, find_renames=False)
        output = self._diff_output(old, new, options, '-z', '--name-only')
        return [p for p in output.split('\0') if p]

    def diff_trees(self, old: Optional[ObjectId], new: ObjectId, options: DiffOptions = DiffOptions()) -> Diff:
        deltas = parse_raw_diff(self._diff_output(old, new, options, '-z', '--raw'))
        numstat = parse_numstat(self._diff_output(old, new, options, '-z', '--numstat'))
        stats = parse_shortstat(self._diff_output(old, new, options, '--shortstat'))
        file_stats = [numstat.get(d.new_path, numstat.get(d.old_path)) for d in deltas]
        return Diff(
            deltas=deltas,
            stats=stats,
            file_stats=file_stats,
            old_tree=old,
            new_tree=new,
            load_patch=lambda delta: self.patch(old, new, delta, options),
        )

    def patch(self, old: Optional[ObjectId], new: ObjectId, delta: Delta, options: DiffOptions = DiffOptions()) -> tuple[Hunk, ...]:
        paths = tuple(dict.fromkeys([delta.old_path, delta.new_path]))
        patch_options = DiffOptions(
            pathspec=paths,
            context_lines=options.context_lines,
            find_renames=options.find_renames,
        )
        result = self.git(
            *self._diff_args(old, new, patch_options, '-p', f'-U{options.context_lines}'),
            text=False,
        )
        if result.returncode != 0:
            raise PatchUnavailable(delta.path, result.stderr.decode('utf-8', errors='replace').strip())
        return parse_hunks(result.stdout.decode('utf-8', errors='replace'), delta.path)

    # Blame

    def compute_blame(self, path: str, newest_commit: ObjectId, options: BlameOptions = BlameOptions()) -> list[BlameHunk]:
        args = ['blame', '--porcelain']
        if options.first_parent:
            args.append('--first-parent')
        if options.track_moves:
            args.extend([f'-M{options.min_match_characters}', f'-C{options.min_match_characters}'])
        args.extend([newest_commit, '--', path])
        result = self.git(*args, text=False)
        if result.returncode != 0:
            raise RevisionUnavailable(newest_commit, result.stderr.decode('utf-8', errors='replace').strip())
        return parse_porcelain_blame(result.stdout.decode('utf-8', errors='replace'))

    # History

    def revwalk(self, start: ObjectId, order: str = 'time') -> Iterator[ObjectId]:
        """Lazily yield commit ids reachable from `start` (all parents).

        `start` is verified up front, so an unresolvable start point raises
        `RevisionUnavailable` here rather than partway through iteration.
        """
        start = self._rev_parse_commit(start)
        return self._revwalk(start, order)

    def _revwalk(self, start: ObjectId, order: str) -> Iterator[ObjectId]:
        flag = '--topo-order' if order == 'topo' else '--date-order'
        proc = Popen(self.cmd('rev-list', flag, start), stdout=PIPE, stderr=DEVNULL, text=True)
        try:
            for line in proc.stdout:
                oid = line.strip()
                if oid:
                    yield oid
        finally:
            proc.stdout.close()
            if proc.poll() is None:
                proc.kill()
            proc.wait()
