from typing import Optional

from utz import err

from ..context import Context
from ..diff import commit_stats
from ..errors import RevisionUnavailable
from ..markup import (
    format_age,
    short_id,
    truncate,
    url,
    write_commit_link,
    write_decorations,
    write_link,
    write_table_header,
)
from ..models import Commit, ObjectId, Ref
from ..sink import Sink

AUTHOR_WIDTH = 30


def log_headers(ctx: Context) -> list[str]:
    cfg = ctx.config
    headers = ['Age', 'Commit', 'Author']
    if cfg.enable_log_filecount:
        headers.append('Files')
    if cfg.enable_log_linecount:
        headers.append('Lines')
    headers.append('Message')
    return headers


def write_commit_row(
    ctx: Context,
    sink: Sink,
    commit: Commit,
    refs: list[Ref] = (),
    row: int = 0,
    now: int = None,
) -> None:
    cfg = ctx.config
    sink.write("<tr class='even'>" if row % 2 else '<tr>')
    sink.write(f"<td class='age' data-timestamp='{commit.time}'>")
    format_age(sink, commit.time, now)
    sink.write("</td><td class='commit-hash'>")
    write_commit_link(ctx, sink, commit.id, short_id(commit.id))
    sink.write('</td><td>')
    sink.write_escaped(truncate(commit.author.name, AUTHOR_WIDTH))
    sink.write('</td>')
    if cfg.enable_log_filecount or cfg.enable_log_linecount:
        try:
            stats = commit_stats(ctx, commit)
        except RevisionUnavailable as e:
            err(f"No stats for {short_id(commit.id)}: {e}")
            stats = None
        if cfg.enable_log_filecount:
            sink.write(f'<td>{stats.files}</td>' if stats is not None else '<td>N/A</td>')
        if cfg.enable_log_linecount and stats is None:
            sink.write('<td>N/A</td>')
        elif cfg.enable_log_linecount:
            sink.write(f"<td><span class='add'>+{stats.insertions}</span> ")
            sink.write(f"<span class='del'>-{stats.deletions}</span></td>")
    sink.write('<td>')
    sink.write_escaped(truncate(commit.summary, cfg.max_msg_len))
    if refs:
        write_decorations(ctx, sink, refs)
    sink.write('</td></tr>\n')


def render_log(
    ctx: Context,
    sink: Sink,
    commits: list[Commit],
    has_more: bool,
    offset: int = 0,
    ref: Optional[str] = None,
    path: Optional[str] = None,
    refs: dict[ObjectId, list[Ref]] = None,
    now: int = None,
) -> None:
    """Commit log table with pagination links.

    "Next" is offered whenever the page came back full, so it may lead to an
    empty page.
    """
    refs = refs or {}
    sink.write("<div class='log'>\n<h2>Commit Log</h2>\n")
    write_table_header(sink, log_headers(ctx))
    for idx, commit in enumerate(commits, start=1):
        write_commit_row(ctx, sink, commit, refs.get(commit.id, []), idx, now)
    sink.write('</table>\n')

    limit = ctx.config.max_commit_count
    sink.write("<div class='pagination'>\n")
    if offset > 0:
        write_link(sink, url(ctx, 'log', h=ref, path=path, ofs=max(offset - limit, 0)), '← Previous')
        sink.write(' ')
    if has_more:
        write_link(sink, url(ctx, 'log', h=ref, path=path, ofs=offset + len(commits)), 'Next →')
    sink.write('\n</div>\n</div>\n')
