"""Fixtures that build small throwaway git repositories with deterministic dates."""

from os import environ
from pathlib import Path
from subprocess import run

import pytest

from strata.config import Config
from strata.context import open_context

START_TIME = 1_700_000_000


class RepoBuilder:
    """Create commits, branches and tags in a scratch repository."""

    def __init__(self, path: Path):
        self.path = path
        self.clock = START_TIME
        path.mkdir(parents=True, exist_ok=True)
        self.git('init', '-q')
        self.git('symbolic-ref', 'HEAD', 'refs/heads/main')
        self.git('config', 'user.name', 'Test User')
        self.git('config', 'user.email', 'test@example.com')
        self.git('config', 'commit.gpgsign', 'false')
        self.git('config', 'tag.gpgsign', 'false')

    def git(self, *args: str, env: dict = None) -> str:
        result = run(
            ['git', '-C', str(self.path), *args],
            capture_output=True, text=True, check=True,
            env=env,
        )
        return result.stdout.strip()

    def _env(self, author: str, email: str) -> dict:
        self.clock += 3600
        date = f'{self.clock} +0000'
        return {
            **environ,
            'GIT_AUTHOR_NAME': author,
            'GIT_AUTHOR_EMAIL': email,
            'GIT_AUTHOR_DATE': date,
            'GIT_COMMITTER_NAME': author,
            'GIT_COMMITTER_EMAIL': email,
            'GIT_COMMITTER_DATE': date,
        }

    def commit(
        self,
        message: str,
        files: dict = None,
        author: str = 'Alice',
        email: str = 'alice@example.com',
    ) -> str:
        """Write/delete `files` (None deletes) and commit; returns the new commit id."""
        for name, content in (files or {}).items():
            target = self.path / name
            if content is None:
                self.git('rm', '-q', name)
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                target.write_bytes(content)
            else:
                target.write_text(content)
            self.git('add', name)
        self.git('commit', '-q', '--allow-empty', '-m', message, env=self._env(author, email))
        return self.git('rev-parse', 'HEAD')

    def branch(self, name: str, rev: str = 'HEAD') -> None:
        self.git('branch', '-f', name, rev)

    def checkout(self, name: str) -> None:
        self.git('checkout', '-q', name)

    def merge(self, branch: str, message: str) -> str:
        self.git('merge', '-q', '--no-ff', '-m', message, branch, env=self._env('Alice', 'alice@example.com'))
        return self.git('rev-parse', 'HEAD')

    def tag(self, name: str, rev: str = 'HEAD', message: str = None) -> None:
        if message:
            self.git('tag', '-a', '-m', message, name, rev, env=self._env('Alice', 'alice@example.com'))
        else:
            self.git('tag', name, rev)


@pytest.fixture
def builder(tmp_path) -> RepoBuilder:
    return RepoBuilder(tmp_path / 'repo')


@pytest.fixture
def history(builder):
    """Four linear commits; only c1 and c3 touch a.txt (c1 newer).

    c3 (root): add a.txt, b.txt
    c2: modify b.txt         <- tag v1.0, branch old
    c1: modify a.txt
    c0: modify b.txt         <- main, HEAD
    """
    c3 = builder.commit('Initial import', {'a.txt': 'a1\n', 'b.txt': 'b1\n'})
    c2 = builder.commit('Touch b', {'b.txt': 'b1\nb2\n'}, author='Bob', email='bob@example.com')
    c1 = builder.commit('Touch a', {'a.txt': 'a1\na2\n'})
    c0 = builder.commit('Touch b again', {'b.txt': 'b1\nb2\nb3\n'}, author='Bob', email='bob@example.com')
    builder.tag('v1.0', c2)
    builder.branch('old', c2)
    return {'c0': c0, 'c1': c1, 'c2': c2, 'c3': c3}


@pytest.fixture
def ctx(builder):
    with open_context(builder.path, Config()) as context:
        yield context
