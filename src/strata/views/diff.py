"""Unified, side-by-side and stat-only presentations of a structured diff.

Every renderer is a pure function of its inputs: nothing is kept between calls.
"""

from dataclasses import dataclass
from enum import Enum
from itertools import zip_longest
from typing import Iterable, Optional

from utz import err

from ..context import Context
from ..errors import PatchUnavailable
from ..markup import plural, write_diff_link
from ..models import Delta, DeltaStatus, Diff, DiffStats, FileStats, Line, LineOrigin, ObjectId
from ..sink import Sink

DEFAULT_BAR_WIDTH = 40

STATUS_LABELS = {
    DeltaStatus.ADDED: ('A', 'Added'),
    DeltaStatus.DELETED: ('D', 'Deleted'),
    DeltaStatus.MODIFIED: ('M', 'Modified'),
    DeltaStatus.RENAMED: ('R', 'Renamed'),
    DeltaStatus.COPIED: ('C', 'Copied'),
    DeltaStatus.TYPE_CHANGED: ('T', 'Type change'),
}

ORIGIN_CLASSES = {
    LineOrigin.CONTEXT: 'ctx',
    LineOrigin.ADDITION: 'add',
    LineOrigin.DELETION: 'del',
    LineOrigin.HUNK_MARKER: 'hunk',
}


class DiffView(str, Enum):
    UNIFIED = 'unified'
    SIDE_BY_SIDE = 'ssdiff'
    STAT = 'stat'

    @property
    def label(self) -> str:
        return VIEW_LABELS[self]

    @classmethod
    def parse(cls, value: Optional[str]) -> 'DiffView':
        """Accept 'unified', 'ssdiff' / 'side-by-side' and 'stat'; default unified."""
        if value in ('side-by-side', 'sidebyside', 'sbs'):
            return cls.SIDE_BY_SIDE
        try:
            return cls(value)
        except ValueError:
            return cls.UNIFIED


VIEW_LABELS = {
    DiffView.UNIFIED: 'Unified',
    DiffView.SIDE_BY_SIDE: 'Side-by-side',
    DiffView.STAT: 'Stat only',
}


# Side-by-side pairing

@dataclass(frozen=True)
class Cell:
    lineno: Optional[int]
    content: str
    origin: LineOrigin


@dataclass(frozen=True)
class SideBySideRow:
    left: Optional[Cell]
    right: Optional[Cell]


def _old_cell(line: Line) -> Cell:
    return Cell(line.old_lineno, line.content, line.origin)


def _new_cell(line: Line) -> Cell:
    return Cell(line.new_lineno, line.content, line.origin)


def pair_lines(lines: Iterable[Line]) -> list[SideBySideRow]:
    """Arrange one hunk's lines into side-by-side rows.

    Context lines fill both sides. A run of deletions followed by a run of
    additions is zipped positionally into max(len(dels), len(adds)) rows, with
    the shorter side left empty; unpaired runs are one-sided.
    """
    lines = [line for line in lines if line.origin is not LineOrigin.HUNK_MARKER]
    rows = []
    i = 0
    n = len(lines)
    while i < n:
        line = lines[i]
        if line.origin is LineOrigin.CONTEXT:
            rows.append(SideBySideRow(_old_cell(line), _new_cell(line)))
            i += 1
            continue
        deletions = []
        while i < n and lines[i].origin is LineOrigin.DELETION:
            deletions.append(lines[i])
            i += 1
        additions = []
        while i < n and lines[i].origin is LineOrigin.ADDITION:
            additions.append(lines[i])
            i += 1
        for old, new in zip_longest(deletions, additions):
            rows.append(SideBySideRow(
                _old_cell(old) if old is not None else None,
                _new_cell(new) if new is not None else None,
            ))
    return rows


# Stat bars

def stat_bar(additions: int, deletions: int, max_changes: int, width: int = DEFAULT_BAR_WIDTH) -> tuple[int, int]:
    """(green, red) segment lengths for one file's bar, scaled to the largest file."""
    if max_changes <= 0:
        return 0, 0
    total = additions + deletions
    if total == 0:
        return 0, 0
    bar_width = round(width * total / max_changes)
    green = round(bar_width * additions / total)
    return green, bar_width - green


# Shared pieces

def display_name(delta: Delta) -> str:
    if delta.is_rename:
        return f'{delta.old_path} → {delta.new_path}'
    return delta.path


def write_status_badge(sink: Sink, status: DeltaStatus) -> None:
    label, title = STATUS_LABELS[status]
    sink.write(f"<span class='badge badge-{label}' title='{title}'>{label}</span>")


def render_diffstat_summary(sink: Sink, stats: DiffStats) -> None:
    sink.write("<div class='diffstat'>")
    sink.write(f"{plural(stats.files, 'file')} changed, ")
    sink.write(f"<span class='add'>{plural(stats.insertions, 'insertion')}(+)</span>, ")
    sink.write(f"<span class='del'>{plural(stats.deletions, 'deletion')}(-)</span>")
    sink.write('</div>\n')


def write_view_selector(
    ctx: Context,
    sink: Sink,
    old_oid: Optional[ObjectId],
    new_oid: ObjectId,
    current: DiffView,
    path: Optional[str] = None,
) -> None:
    """View links for one diff; the current view is shown unlinked."""
    current = DiffView.parse(current)
    sink.write("<div class='diff-options'>View: ")
    for i, view in enumerate(DiffView):
        if i:
            sink.write(' | ')
        if view is current:
            sink.write(f'<strong>{view.label}</strong>')
        else:
            write_diff_link(ctx, sink, old_oid, new_oid, path, text=view.label, view=view.value)
    sink.write('</div>\n')


def _write_file_row(sink: Sink, delta: Delta, colspan: int) -> None:
    sink.write(f"<tr class='diff-file'><td colspan='{colspan}'>")
    write_status_badge(sink, delta.status)
    sink.write(' ')
    sink.write_escaped(display_name(delta))
    sink.write('</td></tr>\n')


def _write_unavailable_row(sink: Sink, e: PatchUnavailable, colspan: int) -> None:
    err(str(e))
    sink.write(f"<tr class='diff-unavailable'><td colspan='{colspan}'>")
    if e.reason == 'binary file':
        sink.write('Binary files differ')
    else:
        sink.write_escaped('Patch unavailable')
    sink.write('</td></tr>\n')


def _lineno(n: Optional[int]) -> str:
    return '' if n is None else str(n)


# Unified

def render_unified(ctx: Context, sink: Sink, diff: Diff) -> None:
    sink.write("<table class='diff unified'>\n")
    for idx, delta in enumerate(diff.deltas):
        _write_file_row(sink, delta, 3)
        try:
            hunks = diff.patch(idx)
        except PatchUnavailable as e:
            _write_unavailable_row(sink, e, 3)
            continue
        for hunk in hunks:
            for line in hunk.iter_lines():
                cls = ORIGIN_CLASSES[line.origin]
                if line.origin is LineOrigin.HUNK_MARKER:
                    sink.write(f"<tr class='{cls}'><td colspan='3'>")
                    sink.write_escaped(line.content)
                    sink.write('</td></tr>\n')
                    continue
                sink.write(f"<tr class='{cls}'>")
                sink.write(f"<td class='lineno'>{_lineno(line.old_lineno)}</td>")
                sink.write(f"<td class='lineno'>{_lineno(line.new_lineno)}</td>")
                sink.write("<td class='code'><pre>")
                sink.write_escaped(line.origin.prefix + line.content)
                sink.write('</pre></td></tr>\n')
    sink.write('</table>\n')


# Side-by-side

def _write_cell(sink: Sink, cell: Optional[Cell]) -> None:
    if cell is None:
        sink.write("<td class='lineno'></td><td class='empty'></td>")
        return
    cls = ORIGIN_CLASSES[cell.origin]
    sink.write(f"<td class='lineno'>{_lineno(cell.lineno)}</td><td class='{cls}'><pre>")
    sink.write_escaped(cell.content)
    sink.write('</pre></td>')


def render_side_by_side(ctx: Context, sink: Sink, diff: Diff) -> None:
    sink.write("<table class='ssdiff'>\n")
    sink.write("<tr><th colspan='2'>Old</th><th colspan='2'>New</th></tr>\n")
    for idx, delta in enumerate(diff.deltas):
        _write_file_row(sink, delta, 4)
        try:
            hunks = diff.patch(idx)
        except PatchUnavailable as e:
            _write_unavailable_row(sink, e, 4)
            continue
        for hunk in hunks:
            sink.write("<tr class='hunk'><td colspan='4'>")
            sink.write_escaped(hunk.header)
            sink.write('</td></tr>\n')
            for row in pair_lines(hunk.lines):
                sink.write('<tr>')
                _write_cell(sink, row.left)
                _write_cell(sink, row.right)
                sink.write('</tr>\n')
    sink.write('</table>\n')


# Stat only

def _write_bar(sink: Sink, stats: FileStats, max_changes: int, width: int) -> None:
    green, red = stat_bar(stats.additions, stats.deletions, max_changes, width)
    if not green and not red:
        return
    sink.write("<span class='diffstat-graph'>")
    if green:
        sink.write(f"<span class='diffstat-add'>{'+' * green}</span>")
    if red:
        sink.write(f"<span class='diffstat-del'>{'-' * red}</span>")
    sink.write('</span>')


def render_stat(ctx: Context, sink: Sink, diff: Diff) -> None:
    width = ctx.config.stat_bar_width if ctx is not None else DEFAULT_BAR_WIDTH
    max_changes = diff.max_changes
    sink.write("<table class='diffstat-table'>\n")
    sink.write('<tr><th>File</th><th>Changes</th><th>Graph</th></tr>\n')
    for delta, stats in zip(diff.deltas, diff.file_stats):
        sink.write("<tr><td class='file'>")
        sink.write_escaped(display_name(delta))
        sink.write("</td><td class='changes'>")
        if stats is None:
            sink.write('N/A</td><td></td></tr>\n')
            continue
        sink.write(f"<span class='add'>+{stats.additions}</span>/<span class='del'>-{stats.deletions}</span>")
        sink.write("</td><td class='graph'>")
        _write_bar(sink, stats, max_changes, width)
        sink.write('</td></tr>\n')
    sink.write('</table>\n')
    render_diffstat_summary(sink, diff.stats)


RENDERERS = {
    DiffView.UNIFIED: render_unified,
    DiffView.SIDE_BY_SIDE: render_side_by_side,
    DiffView.STAT: render_stat,
}


def render_diff(ctx: Context, sink: Sink, diff: Diff, view=DiffView.UNIFIED) -> None:
    RENDERERS[DiffView.parse(view)](ctx, sink, diff)


# Plain text

def write_raw_patch(sink: Sink, diff: Diff) -> None:
    """Plain unified patch text: origin character plus content, no markup."""
    for idx, delta in enumerate(diff.deltas):
        old = '/dev/null' if delta.status is DeltaStatus.ADDED else f'a/{delta.old_path}'
        new = '/dev/null' if delta.status is DeltaStatus.DELETED else f'b/{delta.new_path}'
        sink.writeln(f'diff --git a/{delta.old_path} b/{delta.new_path}')
        try:
            hunks = diff.patch(idx)
        except PatchUnavailable as e:
            if e.reason == 'binary file':
                sink.writeln(f'Binary files {old} and {new} differ')
            else:
                err(str(e))
            continue
        if not hunks:
            continue
        sink.writeln(f'--- {old}')
        sink.writeln(f'+++ {new}')
        for hunk in hunks:
            for line in hunk.iter_lines():
                sink.writeln(line.origin.prefix + line.content)
