"""Single-commit page: metadata, message, changed files and the first-parent diff."""

from typing import Optional

from ..context import Context
from ..diff import commit_diff
from ..markup import format_timestamp, short_id, write_blob_link, write_commit_link
from ..models import Commit, DeltaStatus, Diff, Signature
from ..sink import Sink
from .diff import (
    DiffView,
    display_name,
    render_diff,
    render_diffstat_summary,
    write_status_badge,
    write_view_selector,
)


def _write_person(sink: Sink, label: str, date_label: str, sig: Signature) -> None:
    sink.write(f'<tr><th>{label}</th><td>')
    sink.write_escaped(sig.name)
    if sig.email:
        sink.write_escaped(f' <{sig.email}>')
    sink.write(f'</td></tr>\n<tr><th>{date_label}</th><td>')
    sink.write(f'{format_timestamp(sig.time, sig.offset)} {sig.tz}')
    sink.write('</td></tr>\n')


def write_commit_info(ctx: Context, sink: Sink, commit: Commit) -> None:
    author, committer = commit.author, commit.committer
    sink.write("<table class='commit-info'>\n")
    _write_person(sink, 'Author', 'Author Date', author)
    if (author.name, author.email) != (committer.name, committer.email):
        _write_person(sink, 'Committer', 'Commit Date', committer)
    for i, parent_id in enumerate(commit.parents):
        label = 'Parent' if i == 0 else f'Parent {i + 1}'
        sink.write(f'<tr><th>{label}</th><td>')
        write_commit_link(ctx, sink, parent_id)
        summary = ctx.repo.lookup_commit(parent_id).summary
        if summary:
            sink.write_escaped(f' ({summary})')
        sink.write('</td></tr>\n')
    sink.write(f"<tr><th>Tree</th><td class='tree-id'>{short_id(commit.tree)}</td></tr>\n")
    sink.write('</table>\n')


def write_commit_message(sink: Sink, commit: Commit) -> None:
    sink.write("<div class='commit-message'>\n<h3>")
    sink.write_escaped(commit.summary)
    sink.write('</h3>\n')
    if commit.body:
        sink.write('<pre>')
        sink.write_escaped(commit.body)
        sink.write('</pre>\n')
    sink.write('</div>\n')


def write_file_list(ctx: Context, sink: Sink, commit: Commit, diff: Diff) -> None:
    """Changed files; files still present in the commit link to their blob."""
    sink.write("<ul class='diff-files'>\n")
    for delta in diff.deltas:
        sink.write('<li>')
        write_status_badge(sink, delta.status)
        sink.write(' ')
        if delta.status is DeltaStatus.DELETED:
            sink.write_escaped(delta.path)
        elif delta.is_rename:
            sink.write_escaped(f'{delta.old_path} → ')
            write_blob_link(ctx, sink, commit.id, delta.new_path)
        else:
            write_blob_link(ctx, sink, commit.id, delta.path, display_name(delta))
        sink.write('</li>\n')
    sink.write('</ul>\n')


def render_commit(
    ctx: Context,
    sink: Sink,
    commit: Commit,
    diff: Optional[Diff] = None,
    view=DiffView.UNIFIED,
) -> None:
    """Commit page. Merges are diffed against their first parent only."""
    diff = diff if diff is not None else commit_diff(ctx, commit)
    view = DiffView.parse(view)
    sink.write("<div class='commit'>\n")
    sink.write(f'<h2>Commit {short_id(commit.id)}</h2>\n')
    write_commit_info(ctx, sink, commit)
    write_commit_message(sink, commit)

    sink.write('<h3>Changes</h3>\n')
    if commit.is_merge:
        sink.write("<p class='merge-note'>Merge commit: showing changes against the first parent.</p>\n")
    render_diffstat_summary(sink, diff.stats)
    write_file_list(ctx, sink, commit, diff)
    write_view_selector(ctx, sink, commit.first_parent, commit.id, view)
    render_diff(ctx, sink, diff, view)
    sink.write('</div>\n')
