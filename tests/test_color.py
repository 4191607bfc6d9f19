"""Test color utilities."""

import sys
from io import StringIO
from unittest.mock import patch

from strata.color import should_use_color
from strata.commands.raw import colorize


def test_should_use_color_always():
    """Test that 'always' always returns True."""
    assert should_use_color('always') is True


def test_should_use_color_never():
    """Test that 'never' always returns False."""
    assert should_use_color('never') is False


def test_should_use_color_auto_tty(monkeypatch):
    """Test that 'auto' returns True when stdout is a TTY."""
    monkeypatch.delenv('NO_COLOR', raising=False)
    with patch.object(sys.stdout, 'isatty', return_value=True):
        assert should_use_color('auto') is True


def test_should_use_color_auto_no_tty():
    """Test that 'auto' returns False when stdout is not a TTY."""
    with patch.object(sys.stdout, 'isatty', return_value=False):
        assert should_use_color('auto') is False


def test_should_use_color_no_color_env(monkeypatch):
    """Test that $NO_COLOR disables 'auto' even on a TTY."""
    monkeypatch.setenv('NO_COLOR', '1')
    with patch.object(sys.stdout, 'isatty', return_value=True):
        assert should_use_color('auto') is False
    assert should_use_color('always') is True


def test_should_use_color_explicit_stream(monkeypatch):
    """Test that an explicit stream is checked instead of stdout."""
    monkeypatch.delenv('NO_COLOR', raising=False)
    assert should_use_color('auto', StringIO()) is False


def test_colorize():
    """Test patch lines are styled by their leading character."""
    assert colorize('+added') == '\x1b[32m+added\x1b[0m'
    assert colorize('-removed') == '\x1b[31m-removed\x1b[0m'
    assert colorize('@@ -1 +1 @@') == '\x1b[36m@@ -1 +1 @@\x1b[0m'
    assert colorize(' context') == ' context'
    assert colorize('+++ b/f.txt') == '\x1b[1m+++ b/f.txt\x1b[0m'
