"""Render a repository's history, diffs and blame as HTML fragments.

Each command opens the repository once, renders one view to stdout and
closes it again:

    git-strata log main -p src/app.py
    git-strata commit v1.0 --view stat
    git-strata diff v1.0 --id2 v0.9 --view ssdiff
    git-strata blame README.md
    git-strata search -t pickaxe parse_config
    git-strata raw HEAD~3          # plain patch text, colorized on a TTY

Revisions are resolved by trying a full object id, then HEAD, then
refs/heads/<ref>, refs/tags/<ref> and <ref> itself, and finally HEAD.
"""

import sys
from functools import wraps

from click import Choice, echo, group
from utz import err
from utz.cli import arg, flag, opt

from .blame import blame_ref
from .config import Config
from .context import open_context
from .diff import commit_diff, diff_commits
from .errors import BackendUnavailable, RevisionUnavailable
from .history import walk
from .markup import short_id
from .pager import Pager
from .resolve import ref_map, resolve
from .search import SearchType, search as run_search
from .sink import StreamSink
from .views.blame import render_blame_page
from .views.commit import render_commit
from .views.diff import DiffView, render_diff, render_diffstat_summary, write_view_selector
from .views.log import render_log
from .views.search import render_search


# Common option decorators
repo_opt = opt('-C', '--repo', 'repo_path', default='.', envvar='STRATA_REPO', help='Path to the repository (default: current directory)')
repo_name_opt = opt('-r', '--repo-name', envvar='STRATA_REPO_NAME', help='Repository name to carry in generated links')
pager_opt = opt('--pager', type=Choice(['auto', 'always', 'never']), default='auto', help='When to use pager (default: auto)')
id_opt = opt('-i', '--id', 'commit_id', help='Full object id; takes precedence over REF')
path_opt = opt('-p', '--path', help='Restrict to this path')
context_opt = opt('-U', '--unified', 'context_lines', type=int, envvar='STRATA_CONTEXT_LINES', help='Number of context lines (default: 3)')


def common_opts(func):
    """Apply options shared by every rendering command."""
    func = repo_opt(func)
    func = repo_name_opt(func)
    func = pager_opt(func)
    return func


def fail_on_backend_errors(func):
    """Report unrecoverable backend errors on stderr and exit 1."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except BackendUnavailable as e:
            err(str(e))
            sys.exit(1)
        except RevisionUnavailable as e:
            err(f"Error: {e}")
            sys.exit(1)
    return wrapper


@group()
def cli():
    """Render git history, diffs and blame as HTML.

    Output is an HTML fragment on stdout, meant to be embedded in a page.
    """
    pass


# Register plain-text patch command
from .commands import raw as raw_module
raw_module.register(cli)


@cli.command()
@common_opts
@id_opt
@path_opt
@opt('-o', '--offset', type=int, default=0, help='Skip this many matching commits')
@opt('-n', '--max-count', type=int, envvar='STRATA_MAX_COMMIT_COUNT', help='Commits per page (default: 50)')
@opt('-s', '--sort', type=Choice(['time', 'topo']), envvar='STRATA_COMMIT_SORT', help='Commit order (default: time)')
@opt('-m', '--max-msg-len', type=int, envvar='STRATA_MAX_MSG_LEN', help='Truncate summaries to this many characters (default: 80)')
@flag('--files', envvar='STRATA_LOG_FILECOUNT', help='Show the number of files changed per commit')
@flag('--lines', envvar='STRATA_LOG_LINECOUNT', help='Show lines added/removed per commit')
@arg('ref', required=False)
@fail_on_backend_errors
def log(
    repo_path: str,
    repo_name: str,
    pager: str,
    commit_id: str,
    path: str,
    offset: int,
    max_count: int,
    sort: str,
    max_msg_len: int,
    files: bool,
    lines: bool,
    ref: str,
) -> None:
    """Commit log starting at REF (default: HEAD), optionally filtered to a path."""
    config = Config().update(
        max_commit_count=max_count,
        commit_sort=sort,
        max_msg_len=max_msg_len,
        enable_log_filecount=files or None,
        enable_log_linecount=lines or None,
    )
    with open_context(repo_path, config, repo_name=repo_name, branch=ref) as ctx:
        start = resolve(ctx, commit_id, ref)
        commits, has_more = walk(ctx, start, path_filter=path, offset=offset)
        with Pager(pager, repo_path):
            render_log(ctx, StreamSink(sys.stdout), commits, has_more, offset=offset, ref=ref, path=path, refs=ref_map(ctx))


@cli.command()
@common_opts
@id_opt
@path_opt
@context_opt
@opt('--id2', help='Old side of the diff (default: first parent)')
@opt('-v', '--view', type=Choice(['unified', 'ssdiff', 'side-by-side', 'stat']), default='unified', help='Presentation (default: unified)')
@flag('-S', '--summary', help='Prefix the view with the "N files changed" summary line')
@arg('ref', required=False)
@fail_on_backend_errors
def diff(
    repo_path: str,
    repo_name: str,
    pager: str,
    commit_id: str,
    path: str,
    context_lines: int,
    id2: str,
    view: str,
    summary: bool,
    ref: str,
) -> None:
    """Diff REF (default: HEAD) against its first parent, or against --id2."""
    config = Config().update(context_lines=context_lines)
    with open_context(repo_path, config, repo_name=repo_name, branch=ref) as ctx:
        result = diff_commits(ctx, commit_id, ref, id2, path)
        with Pager(pager, repo_path):
            sink = StreamSink(sys.stdout)
            old = short_id(result.old.id) if result.old else '(root)'
            sink.write("<div class='diff'>\n<div class='diff-header'>")
            sink.write_escaped(f'Comparing {old}...{short_id(result.new.id)}')
            if result.path:
                sink.write_escaped(f' (filtered to: {result.path})')
            sink.write('</div>\n')
            if summary:
                render_diffstat_summary(sink, result.diff.stats)
            write_view_selector(ctx, sink, result.old.id if result.old else None, result.new.id, view, result.path)
            render_diff(ctx, sink, result.diff, DiffView.parse(view))
            sink.write('</div>\n')


@cli.command()
@common_opts
@id_opt
@path_opt
@context_opt
@opt('-v', '--view', type=Choice(['unified', 'ssdiff', 'side-by-side', 'stat']), default='unified', help='Presentation of the diff (default: unified)')
@arg('ref', required=False)
@fail_on_backend_errors
def commit(
    repo_path: str,
    repo_name: str,
    pager: str,
    commit_id: str,
    path: str,
    context_lines: int,
    view: str,
    ref: str,
) -> None:
    """Commit page for REF (default: HEAD): metadata, message and first-parent diff."""
    config = Config().update(context_lines=context_lines)
    with open_context(repo_path, config, repo_name=repo_name, branch=ref) as ctx:
        target = ctx.repo.lookup_commit(resolve(ctx, commit_id, ref))
        result = commit_diff(ctx, target, path)
        with Pager(pager, repo_path):
            render_commit(ctx, StreamSink(sys.stdout), target, result, view)


@cli.command()
@common_opts
@id_opt
@flag('-M', '--track-moves', envvar='STRATA_BLAME_TRACK_MOVES', help='Detect moved/copied lines (slower)')
@arg('path')
@arg('ref', required=False)
@fail_on_backend_errors
def blame(
    repo_path: str,
    repo_name: str,
    pager: str,
    commit_id: str,
    track_moves: bool,
    path: str,
    ref: str,
) -> None:
    """Attribute each line of PATH at REF (default: HEAD) to a commit."""
    config = Config().update(blame_track_moves=track_moves or None)
    with open_context(repo_path, config, repo_name=repo_name, branch=ref) as ctx:
        with Pager(pager, repo_path):
            render_blame_page(
                ctx,
                StreamSink(sys.stdout),
                path,
                lambda: blame_ref(ctx, path, commit_id, ref),
            )


@cli.command()
@common_opts
@opt('-t', '--type', 'search_type', type=Choice([t.value for t in SearchType]), default='commit', help='What to search (default: commit messages)')
@opt('-h', '--ref', help='Branch, tag or revision to search from (default: HEAD)')
@opt('-N', '--max-results', type=int, help='Stop after this many results')
@arg('term')
@fail_on_backend_errors
def search(
    repo_path: str,
    repo_name: str,
    pager: str,
    search_type: str,
    ref: str,
    max_results: int,
    term: str,
) -> None:
    """Search commit messages, authors, file contents (grep) or changes (pickaxe)."""
    with open_context(repo_path, repo_name=repo_name, branch=ref) as ctx:
        results = run_search(ctx, term, SearchType(search_type), ref=ref, max_results=max_results)
        with Pager(pager, repo_path):
            render_search(ctx, StreamSink(sys.stdout), results)


@cli.command(name='resolve')
@repo_opt
@id_opt
@arg('ref', required=False)
@fail_on_backend_errors
def resolve_cmd(repo_path: str, commit_id: str, ref: str) -> None:
    """Print the commit id REF resolves to."""
    with open_context(repo_path) as ctx:
        echo(resolve(ctx, commit_id, ref))


if __name__ == '__main__':
    cli()
