from dataclasses import dataclass, fields, replace
from typing import Literal

CommitSort = Literal['time', 'topo']


@dataclass(frozen=True)
class Config:
    """Rendering and traversal limits for one request.

    The CLI fills these from options (each backed by a ``STRATA_*`` env var);
    library callers construct it directly.
    """
    max_commit_count: int = 50
    max_msg_len: int = 80
    context_lines: int = 3
    commit_sort: CommitSort = 'time'
    enable_log_filecount: bool = False
    enable_log_linecount: bool = False
    max_search_results: int = 100
    max_pickaxe_results: int = 50
    max_grep_results: int = 200
    blame_min_match_characters: int = 20
    blame_track_moves: bool = False
    stat_bar_width: int = 40

    def __post_init__(self):
        if self.commit_sort not in ('time', 'topo'):
            raise ValueError(f"commit_sort must be 'time' or 'topo', not {self.commit_sort!r}")
        if self.max_commit_count < 1:
            raise ValueError(f"max_commit_count must be positive, not {self.max_commit_count}")
        if self.context_lines < 0:
            raise ValueError(f"context_lines must be non-negative, not {self.context_lines}")

    def update(self, **kwargs) -> 'Config':
        """Copy with the given fields overridden; `None` values are ignored."""
        names = {f.name for f in fields(self)}
        unknown = set(kwargs) - names
        if unknown:
            raise TypeError(f"Unknown config field(s): {', '.join(sorted(unknown))}")
        return replace(self, **{k: v for k, v in kwargs.items() if v is not None})
