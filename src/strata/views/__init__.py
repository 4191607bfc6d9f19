"""Markup renderers: pure functions of (context, sink, view-model)."""

from .blame import render_blame, render_blame_page
from .commit import render_commit
from .diff import (
    DiffView,
    pair_lines,
    render_diff,
    render_diffstat_summary,
    render_side_by_side,
    render_stat,
    render_unified,
    stat_bar,
    write_raw_patch,
    write_view_selector,
)
from .log import render_log
from .search import render_search
