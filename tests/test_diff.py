"""Test structured diffs between commits and trees."""

import pytest

from strata.diff import commit_diff, commit_stats, diff, diff_commits
from strata.errors import PatchUnavailable
from strata.models import DeltaStatus, DiffStats, FileStats, LineOrigin


def test_root_commit_diff_is_all_additions(history, ctx):
    """Test a root commit diffs against the empty tree."""
    root = ctx.repo.lookup_commit(history['c3'])
    result = commit_diff(ctx, root)
    assert [d.path for d in result.deltas] == ['a.txt', 'b.txt']
    assert all(d.status is DeltaStatus.ADDED for d in result.deltas)
    assert all(d.old_blob_id is None for d in result.deltas)
    assert result.stats == DiffStats(files=2, insertions=2, deletions=0)


def test_per_file_stats_sum_to_totals(builder, ctx):
    """Test per-file line counts agree with the aggregate stats."""
    builder.commit('Root', {'a.txt': 'one\ntwo\nthree\n', 'b.txt': 'x\n'})
    sha = builder.commit('Change both', {'a.txt': 'one\nTWO\nthree\nfour\n', 'b.txt': None, 'c.txt': 'c\nc\n'})
    result = commit_diff(ctx, ctx.repo.lookup_commit(sha))

    assert len(result.file_stats) == len(result.deltas)
    assert sum(s.additions for s in result.file_stats) == result.stats.insertions
    assert sum(s.deletions for s in result.file_stats) == result.stats.deletions
    assert result.stats.files == len(result.deltas) == 3

    by_path = {d.path: (d.status, s) for d, s in zip(result.deltas, result.file_stats)}
    assert by_path['a.txt'] == (DeltaStatus.MODIFIED, FileStats(2, 1))
    assert by_path['b.txt'] == (DeltaStatus.DELETED, FileStats(0, 1))
    assert by_path['c.txt'] == (DeltaStatus.ADDED, FileStats(2, 0))
    assert result.max_changes == 3


def test_hunks_load_lazily(history, ctx):
    """Test hunks carry origins and line numbers when requested."""
    result = commit_diff(ctx, ctx.repo.lookup_commit(history['c0']))
    assert result._patches == {}
    (hunk,) = result.patch(0)
    assert result._patches
    assert [(l.origin, l.content) for l in hunk.lines] == [
        (LineOrigin.CONTEXT, 'b1'),
        (LineOrigin.CONTEXT, 'b2'),
        (LineOrigin.ADDITION, 'b3'),
    ]
    assert hunk.lines[-1].new_lineno == 3
    assert hunk.lines[-1].old_lineno is None


def test_context_lines(builder, ctx):
    """Test the context line count is passed through to hunks."""
    lines = [f'line {i}' for i in range(1, 21)]
    builder.commit('Root', {'f.txt': '\n'.join(lines) + '\n'})
    changed = list(lines)
    changed[9] = 'changed'
    sha = builder.commit('Change one line', {'f.txt': '\n'.join(changed) + '\n'})
    commit = ctx.repo.lookup_commit(sha)

    (hunk,) = commit_diff(ctx, commit, context_lines=1).patch(0)
    assert [l.origin for l in hunk.lines] == [
        LineOrigin.CONTEXT, LineOrigin.DELETION, LineOrigin.ADDITION, LineOrigin.CONTEXT,
    ]
    (hunk,) = commit_diff(ctx, commit).patch(0)
    assert len(hunk.lines) == 8


def test_rename_detected(builder, ctx):
    """Test a moved file is reported as one rename delta."""
    content = ''.join(f'row {i}\n' for i in range(20))
    builder.commit('Root', {'old_name.txt': content})
    sha = builder.commit('Move', {'old_name.txt': None, 'new_name.txt': content})
    result = commit_diff(ctx, ctx.repo.lookup_commit(sha))
    (delta,) = result.deltas
    assert delta.status is DeltaStatus.RENAMED
    assert (delta.old_path, delta.new_path) == ('old_name.txt', 'new_name.txt')
    assert delta.similarity == 100
    assert result.file_stats == [FileStats(0, 0)]


def test_binary_file(builder, ctx):
    """Test binary deltas have no line stats and no patch."""
    builder.commit('Root', {'img.bin': b'\x00\x01\x02'})
    sha = builder.commit('Change image', {'img.bin': b'\x00\x03\x04\x05'})
    result = commit_diff(ctx, ctx.repo.lookup_commit(sha))
    assert result.file_stats == [None]
    with pytest.raises(PatchUnavailable) as exc:
        result.patch(0)
    assert exc.value.reason == 'binary file'
    # Failure is cached, not recomputed
    with pytest.raises(PatchUnavailable):
        result.patch(0)


def test_path_filter(history, ctx):
    """Test the path filter restricts deltas."""
    root = ctx.repo.lookup_commit(history['c3'])
    result = diff(ctx, None, root.tree, path_filter='/b.txt')
    assert [d.path for d in result.deltas] == ['b.txt']
    assert result.stats.files == 1


def test_diff_accepts_trees(history, ctx):
    """Test trees may be given as objects or ids."""
    repo = ctx.repo
    old = repo.lookup_tree(repo.lookup_commit(history['c3']).tree)
    new = repo.lookup_commit(history['c0']).tree
    result = diff(ctx, old, new)
    assert [d.path for d in result.deltas] == ['a.txt', 'b.txt']
    assert result.stats == DiffStats(files=2, insertions=3, deletions=0)


def test_commit_stats(history, ctx):
    """Test commit_stats reports the first-parent stats."""
    stats = commit_stats(ctx, ctx.repo.lookup_commit(history['c1']))
    assert stats == DiffStats(files=1, insertions=1, deletions=0)


def test_diff_commits_default_parent(history, ctx):
    """Test diff_commits compares against the first parent by default."""
    result = diff_commits(ctx, ref='main')
    assert result.new.id == history['c0']
    assert result.old.id == history['c1']
    assert [d.path for d in result.diff.deltas] == ['b.txt']


def test_diff_commits_root(history, ctx):
    """Test a root commit has no old side."""
    result = diff_commits(ctx, id=history['c3'])
    assert result.old is None
    assert len(result.diff.deltas) == 2


def test_diff_commits_id2(history, ctx):
    """Test --id2 overrides the old side."""
    result = diff_commits(ctx, ref='main', id2='v1.0')
    assert result.old.id == history['c2']
    assert sorted(d.path for d in result.diff.deltas) == ['a.txt', 'b.txt']


def test_diff_commits_path(history, ctx):
    """Test the path is normalized and applied."""
    result = diff_commits(ctx, ref='main', id2=history['c3'], path='a.txt/')
    assert result.path == 'a.txt'
    assert [d.path for d in result.diff.deltas] == ['a.txt']


def test_diff_commits_unknown_id_falls_back_to_head(history, ctx):
    """Test an id naming no commit diffs HEAD instead of failing."""
    result = diff_commits(ctx, id='0' * 40)
    assert result.new.id == history['c0']
    assert result.old.id == history['c1']


def test_diff_commits_tree_id_falls_back_to_head(history, ctx):
    """Test a tree id given as the commit id diffs HEAD."""
    tree = ctx.repo.lookup_commit(history['c2']).tree
    assert diff_commits(ctx, id=tree).new.id == history['c0']


def test_carriage_return_in_path(builder, ctx):
    """Test paths containing a lone carriage return survive intact."""
    builder.commit('Root', {'keep.txt': 'k\n'})
    sha = builder.commit('Odd name', {'a\rb.txt': 'one\n'})
    result = commit_diff(ctx, ctx.repo.lookup_commit(sha))
    (delta,) = result.deltas
    assert delta.path == 'a\rb.txt'
    assert result.file_stats == [FileStats(1, 0)]
    (hunk,) = result.patch(0)
    assert [l.content for l in hunk.lines] == ['one']
