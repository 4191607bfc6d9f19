from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, Optional

from .config import Config
from .git import Repository


@dataclass
class Context:
    """Per-request state threaded through the resolver, walker, diff and blame engines.

    `repo_name` and `branch` only feed link generation in rendered markup.
    """
    repo: Repository
    config: Config = field(default_factory=Config)
    repo_name: Optional[str] = None
    branch: Optional[str] = None


@contextmanager
def open_context(
    path,
    config: Config = None,
    repo_name: str = None,
    branch: str = None,
) -> Iterator[Context]:
    """Open the repository at `path` for one request, closing it on exit."""
    repo = Repository.open(path)
    try:
        yield Context(repo=repo, config=config or Config(), repo_name=repo_name, branch=branch)
    finally:
        repo.close()
