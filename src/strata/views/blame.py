from typing import Iterable, Optional

from ..context import Context
from ..errors import PathNotFound
from ..markup import format_age, truncate, write_commit_link, write_not_found
from ..models import BlameHunk, BlameLine
from ..sink import Sink

AUTHOR_WIDTH = 20

BLAME_STYLE = """<style>
table.blame { width: 100%; border-collapse: collapse; }
table.blame td { padding: 2px 5px; vertical-align: top; }
table.blame td.blame-commit { width: 80px; font-family: monospace; }
table.blame td.blame-author { width: 150px; }
table.blame td.blame-date { width: 100px; }
table.blame td.continued { border-top: none; }
table.blame td.linenumber { width: 50px; text-align: right; color: #666; }
table.blame td.code pre { margin: 0; white-space: pre-wrap; }
</style>
"""


def _write_attribution(ctx: Context, sink: Sink, hunk: BlameHunk, now: Optional[int]) -> None:
    sink.write("<td class='blame-commit'>")
    write_commit_link(ctx, sink, hunk.final_commit_id)
    sink.write("</td><td class='blame-author'>")
    sig = hunk.final_signature
    if sig is not None:
        sink.write_escaped(truncate(sig.name, AUTHOR_WIDTH))
    sink.write("</td><td class='blame-date'>")
    if sig is not None:
        format_age(sink, sig.time, now)
    sink.write('</td>')


def render_blame(ctx: Context, sink: Sink, lines: Iterable[BlameLine], now: int = None) -> None:
    """Blame table; attribution shows once per contiguous run of the same hunk."""
    sink.write("<table class='blame'>\n")
    prev = None
    for line in lines:
        hunk = line.hunk
        sink.write('<tr>')
        if hunk is None:
            sink.write('<td>-</td><td>-</td><td>-</td>')
        elif hunk is prev:
            sink.write("<td class='blame-commit continued'></td>")
            sink.write("<td class='blame-author continued'></td>")
            sink.write("<td class='blame-date continued'></td>")
        else:
            _write_attribution(ctx, sink, hunk, now)
        prev = hunk
        n = line.line_number
        sink.write(f"<td class='linenumber'><a href='#L{n}' id='L{n}'>{n}</a></td>")
        sink.write("<td class='code'><pre>")
        sink.write_escaped(line.content)
        sink.write('</pre></td></tr>\n')
    sink.write('</table>\n')
    sink.write(BLAME_STYLE)


def render_blame_page(ctx: Context, sink: Sink, path: str, blame_lines, now: int = None) -> None:
    """Blame view for `path`; `blame_lines` is a zero-arg callable producing the lines.

    A missing path renders a "not found" fragment instead of the table.
    """
    sink.write("<div class='blame'>\n")
    sink.write("<h2 class='path'>")
    sink.write_escaped(path)
    sink.write('</h2>\n')
    try:
        lines = blame_lines()
    except PathNotFound as e:
        write_not_found(sink, e.path)
    else:
        render_blame(ctx, sink, lines, now)
    sink.write('</div>\n')
