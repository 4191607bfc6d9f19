"""Test pager selection and output handling."""

import sys
from unittest.mock import patch

from strata.pager import Pager


def test_pager_never():
    """Test 'never' leaves stdout alone."""
    assert Pager('never').should_page() is False


def test_pager_auto_follows_tty():
    """Test 'auto' pages only on a TTY."""
    with patch.object(sys.stdout, 'isatty', return_value=False):
        assert Pager('auto').should_page() is False
    with patch.object(sys.stdout, 'isatty', return_value=True):
        assert Pager('auto').should_page() is True


def test_pager_short_output_printed_directly(capsys, monkeypatch):
    """Test output shorter than the terminal bypasses the pager."""
    monkeypatch.setenv('LINES', '24')
    with Pager('always'):
        print('hello')
    assert capsys.readouterr().out == 'hello\n'


def test_pager_invalid_lines_env(capsys, monkeypatch):
    """Test a non-numeric $LINES falls back to the default height."""
    monkeypatch.setenv('LINES', 'abc')
    with Pager('always'):
        print('still printed')
    assert capsys.readouterr().out == 'still printed\n'


def test_pager_cmd_prefers_git_pager(monkeypatch):
    """Test $GIT_PAGER wins over everything else."""
    monkeypatch.setenv('GIT_PAGER', 'cat')
    monkeypatch.setenv('PAGER', 'more')
    assert Pager('always').pager_cmd() == 'cat'
