"""Plain-text patch command."""

import sys

from click import Choice, echo, style
from utz import err
from utz.cli import arg, opt

from ..color import should_use_color
from ..context import open_context
from ..diff import diff_commits
from ..errors import BackendUnavailable, RevisionUnavailable
from ..pager import Pager
from ..sink import StringSink
from ..views.diff import write_raw_patch

LINE_COLORS = {
    '+': 'green',
    '-': 'red',
    '@': 'cyan',
}


def colorize(line: str) -> str:
    """Style one patch line by its leading character."""
    if line.startswith('diff --git ') or line.startswith('--- ') or line.startswith('+++ '):
        return style(line, bold=True)
    fg = LINE_COLORS.get(line[:1])
    return style(line, fg=fg) if fg else line


def raw(
    repo_path: str,
    color: str,
    pager: str,
    commit_id: str,
    id2: str,
    path: str,
    context_lines: int,
    ref: str,
) -> None:
    """Print the plain patch for REF (default: HEAD) against its first parent, or --id2.

    Example: git-strata raw v1.0 --id2 v0.9 -p src/
    """
    # Determine color BEFORE pager redirects stdout
    use_color = should_use_color(color)
    try:
        with open_context(repo_path) as ctx:
            result = diff_commits(ctx, commit_id, ref, id2, path, context_lines)
            sink = StringSink()
            write_raw_patch(sink, result.diff)
    except (BackendUnavailable, RevisionUnavailable) as e:
        err(str(e))
        sys.exit(1)

    with Pager(pager, repo_path):
        for line in sink.getvalue().splitlines():
            echo(colorize(line) if use_color else line, color=use_color)


def register(cli):
    """Register command with CLI."""
    decorators = [
        opt('-C', '--repo', 'repo_path', default='.', envvar='STRATA_REPO', help='Path to the repository (default: current directory)'),
        opt('-c', '--color', type=Choice(['auto', 'always', 'never']), default='auto', help='When to use colored output (default: auto)'),
        opt('--pager', type=Choice(['auto', 'always', 'never']), default='auto', help='When to use pager (default: auto)'),
        opt('-i', '--id', 'commit_id', help='Full object id; takes precedence over REF'),
        opt('--id2', help='Old side of the diff (default: first parent)'),
        opt('-p', '--path', help='Restrict to this path'),
        opt('-U', '--unified', 'context_lines', type=int, help='Number of context lines (default: 3)'),
        arg('ref', required=False),
    ]
    command = raw
    for decorator in reversed(decorators):
        command = decorator(command)
    cli.command(name='raw')(command)
