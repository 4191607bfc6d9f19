import os
import sys


def should_use_color(color_option: str, stream=None) -> bool:
    """Determine if color should be used based on option, $NO_COLOR and TTY status."""
    if color_option == 'always':
        return True
    elif color_option == 'never':
        return False
    else:  # auto
        if os.environ.get('NO_COLOR'):
            return False
        return (stream or sys.stdout).isatty()
