import os
import sys
from io import StringIO
from subprocess import PIPE, Popen, run


class Pager:
    """Context manager that buffers stdout and pages it through less (or git's pager)."""

    def __init__(self, use_pager: str = 'auto', repo_path: str = '.'):
        """Initialize pager settings.

        Args:
            use_pager: 'always', 'never', or 'auto' (default)
            repo_path: repository whose `core.pager` setting is honored
        """
        self.use_pager = use_pager
        self.repo_path = repo_path
        self.original_stdout = None
        self.buffer = None

    def should_page(self) -> bool:
        if self.use_pager == 'always':
            return True
        elif self.use_pager == 'never':
            return False
        else:  # auto
            return sys.stdout.isatty()

    def pager_cmd(self) -> str:
        """$GIT_PAGER, then core.pager, then $PAGER, then `less -FRSX`."""
        pager_cmd = os.environ.get('GIT_PAGER')
        if pager_cmd:
            return pager_cmd
        pager_cmd = run(
            ['git', '-C', self.repo_path, 'config', 'core.pager'],
            capture_output=True, text=True,
        ).stdout.strip()
        return pager_cmd or os.environ.get('PAGER') or 'less -FRSX'

    def __enter__(self):
        if self.should_page():
            self.original_stdout = sys.stdout
            self.buffer = StringIO()
            sys.stdout = self.buffer
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if not self.original_stdout:
            return
        sys.stdout = self.original_stdout
        output = self.buffer.getvalue()

        # Only page if output is taller than the terminal
        try:
            terminal_height = int(os.environ.get('LINES', 24))
        except ValueError:
            terminal_height = 24
        if output.count('\n') <= terminal_height - 2:
            sys.stdout.write(output)
            return
        try:
            pager = Popen(self.pager_cmd(), shell=True, stdin=PIPE, text=True)
            pager.communicate(output)
        except OSError:
            # Pager missing or broken: print directly
            sys.stdout.write(output)
