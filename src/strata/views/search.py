from ..context import Context
from ..markup import format_age, short_id, url, write_commit_link, write_link
from ..search import SearchResults, SearchType
from ..sink import Sink

LINE_PREVIEW = 100

TITLES = {
    SearchType.COMMIT: 'Commits',
    SearchType.AUTHOR: 'Commits by author',
    SearchType.GREP: 'Files',
    SearchType.PICKAXE: 'Changes',
}


def _write_commit_result(ctx: Context, sink: Sink, commit, results: SearchResults, now) -> None:
    sink.write("<div class='search-result'>\n<div class='search-commit'>")
    write_commit_link(ctx, sink, commit.id, short_id(commit.id))
    sink.write(' ')
    sink.write_escaped(commit.summary)
    if results.type is SearchType.PICKAXE:
        sink.write(" <span class='pickaxe-term'>")
        sink.write_escaped(results.term)
        sink.write('</span>')
    sink.write("</div>\n<div class='search-meta'>")
    sink.write_escaped(commit.author.name)
    sink.write(' &middot; ')
    format_age(sink, commit.time, now)
    sink.write('</div>\n</div>\n')


def _write_grep_result(ctx: Context, sink: Sink, match) -> None:
    sink.write("<div class='grep-result'>")
    write_link(sink, url(ctx, 'blob', path=match.path), match.path)
    sink.write(f"<span class='grep-line'>:{match.line_number}</span> <code>")
    line = match.line
    if len(line) > LINE_PREVIEW:
        sink.write_escaped(line[:LINE_PREVIEW - 3])
        sink.write('...')
    else:
        sink.write_escaped(line)
    sink.write('</code></div>\n')


def render_search(ctx: Context, sink: Sink, results: SearchResults, now: int = None) -> None:
    sink.write("<div class='search'>\n<h3>")
    sink.write_escaped(f"{TITLES[results.type]} matching '{results.term}'")
    sink.write('</h3>\n')
    if results.type is SearchType.GREP:
        for match in results.matches:
            _write_grep_result(ctx, sink, match)
    else:
        for commit in results.commits:
            _write_commit_result(ctx, sink, commit, results, now)
    if results.count == 0:
        sink.write("<p class='no-results'>No results found.</p>\n")
    elif results.truncated:
        sink.write(f"<p class='results-limit'>Showing first {results.max_results} results.</p>\n")
    else:
        sink.write(f"<p class='results-count'>Found {results.count} result{'' if results.count == 1 else 's'}.</p>\n")
    sink.write('</div>\n')
