"""Small markup helpers shared by the views."""

import time
from typing import Optional
from urllib.parse import urlencode

from .context import Context
from .models import ObjectId, Ref, RefKind
from .sink import Sink

TM_MIN = 60
TM_HOUR = TM_MIN * 60
TM_DAY = TM_HOUR * 24
TM_WEEK = TM_DAY * 7
TM_YEAR = TM_DAY * 365
TM_MONTH = TM_YEAR / 12.0

SHORT_ID_LEN = 7


def short_id(oid: ObjectId) -> str:
    return oid[:SHORT_ID_LEN]


def truncate(text: str, max_len: int) -> str:
    return text if len(text) <= max_len else text[:max_len]


def plural(n: int, word: str) -> str:
    return f"{n} {word}{'' if n == 1 else 's'}"


def format_timestamp(timestamp: int, offset: int = 0) -> str:
    """`YYYY-MM-DD HH:MM:SS` in the zone `offset` minutes east of UTC."""
    return time.strftime('%Y-%m-%d %H:%M:%S', time.gmtime(timestamp + offset * 60))


def age_class(delta: int) -> str:
    if delta < TM_MONTH:
        return 'age-recent'
    if delta < TM_YEAR:
        return 'age-months'
    return 'age-years'


def age_text(delta: int) -> str:
    if delta < TM_MIN:
        return f'{delta} seconds ago'
    if delta < TM_HOUR:
        return f'{plural(delta // TM_MIN, "minute")} ago'
    if delta < TM_DAY:
        return f'{plural(delta // TM_HOUR, "hour")} ago'
    if delta < TM_WEEK:
        return f'{plural(delta // TM_DAY, "day")} ago'
    if delta < TM_MONTH:
        return f'{plural(delta // TM_WEEK, "week")} ago'
    if delta < TM_YEAR:
        return f'{plural(int(delta // TM_MONTH), "month")} ago'
    return f'{plural(delta // TM_YEAR, "year")} ago'


def format_age(sink: Sink, timestamp: int, now: int = None) -> None:
    """Relative age of `timestamp`, wrapped in a span classed by bucket."""
    now = int(time.time()) if now is None else now
    delta = now - timestamp
    if delta < 0:
        sink.write("<span class='age-recent'>in the future</span>")
        return
    sink.write(f"<span class='{age_class(delta)}'>{age_text(delta)}</span>")


def url(ctx: Context, cmd: str, **params) -> str:
    """Query-string URL for `cmd`, carrying the repo and branch of the request."""
    query = {}
    if ctx.repo_name:
        query['r'] = ctx.repo_name
    query['cmd'] = cmd
    for k, v in params.items():
        if v is not None:
            query[k] = v
    if ctx.branch and 'h' not in query:
        query['h'] = ctx.branch
    return '?' + urlencode(query)


def write_link(sink: Sink, href: str, text: str, cls: str = None) -> None:
    sink.write("<a href='")
    sink.write_escaped(href)
    sink.write("'" + (f" class='{cls}'" if cls else "") + ">")
    sink.write_escaped(text)
    sink.write('</a>')


def write_commit_link(ctx: Context, sink: Sink, oid: ObjectId, text: Optional[str] = None) -> None:
    write_link(sink, url(ctx, 'commit', id=oid), text or short_id(oid))


def write_diff_link(
    ctx: Context,
    sink: Sink,
    old_oid: ObjectId,
    new_oid: ObjectId,
    path: Optional[str] = None,
    text: str = 'diff',
    view: str = None,
) -> None:
    write_link(sink, url(ctx, 'diff', id=new_oid, id2=old_oid, path=path, dt=view), text)


def write_blob_link(ctx: Context, sink: Sink, oid: ObjectId, path: str, text: Optional[str] = None) -> None:
    write_link(sink, url(ctx, 'blob', id=oid, path=path), text or path)


def write_decorations(ctx: Context, sink: Sink, refs: list[Ref]) -> None:
    for r in refs:
        cls = 'branch-deco' if r.kind is RefKind.BRANCH else 'tag-deco'
        sink.write(f" <span class='{cls}'>")
        cmd = 'log' if r.kind is RefKind.BRANCH else 'tag'
        write_link(sink, url(ctx, cmd, h=r.name), r.name)
        sink.write('</span>')


def write_table_header(sink: Sink, headers: list[str], cls: str = 'list') -> None:
    sink.write(f"<table class='{cls}'>\n<tr>")
    for h in headers:
        sink.write('<th>')
        sink.write_escaped(h)
        sink.write('</th>')
    sink.write('</tr>\n')


def write_not_found(sink: Sink, what: str) -> None:
    sink.write("<div class='error'>")
    sink.write_escaped(f'Not found: {what}')
    sink.write('</div>\n')
