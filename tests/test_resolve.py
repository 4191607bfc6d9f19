"""Test revision resolution and its HEAD fallback."""

import pytest

from strata.errors import RevisionUnavailable
from strata.models import RefKind
from strata.resolve import candidates, ref_map, resolve


def test_candidates_order():
    """Test branches are tried before tags, then the name verbatim."""
    assert candidates('x') == ['refs/heads/x', 'refs/tags/x', 'x']


def test_resolve_branch_and_tag(history, ctx):
    """Test branch and tag names resolve to their commits."""
    assert resolve(ctx, None, 'main') == history['c0']
    assert resolve(ctx, None, 'old') == history['c2']
    assert resolve(ctx, None, 'v1.0') == history['c2']


def test_resolve_missing_falls_back_to_head(history, ctx):
    """Test an unknown ref resolves to HEAD instead of raising."""
    assert resolve(ctx, None, 'missing') == history['c0']


def test_resolve_head(history, ctx):
    """Test an absent ref or "HEAD" resolves to HEAD."""
    assert resolve(ctx) == history['c0']
    assert resolve(ctx, None, 'HEAD') == history['c0']


def test_resolve_full_id_used_directly(history, ctx):
    """Test a full hex id is used as-is, ahead of the ref."""
    assert resolve(ctx, history['c3'], 'main') == history['c3']
    assert resolve(ctx, history['c3'].upper()) == history['c3']


def test_resolve_short_id_is_not_an_id(history, ctx):
    """Test an abbreviated id is not taken as a full id."""
    assert resolve(ctx, history['c3'][:7]) == history['c0']


def test_resolve_qualified_ref(history, ctx):
    """Test already-qualified ref names resolve verbatim."""
    assert resolve(ctx, None, 'refs/tags/v1.0') == history['c2']
    assert resolve(ctx, None, 'refs/heads/old') == history['c2']


def test_resolve_branch_wins_over_tag(history, builder, ctx):
    """Test a name that is both a branch and a tag resolves to the branch."""
    builder.branch('v2.0', history['c1'])
    builder.tag('v2.0', history['c3'])
    assert resolve(ctx, None, 'v2.0') == history['c1']


def test_resolve_version_like_branch(history, builder, ctx):
    """Test version-shaped names are disambiguated by namespace, not shape."""
    builder.branch('release.1', history['c3'])
    assert resolve(ctx, None, 'release.1') == history['c3']


def test_resolve_annotated_tag_peels_to_commit(history, builder, ctx):
    """Test annotated tags resolve to the tagged commit."""
    builder.tag('v0.1', history['c3'], message='First release')
    assert resolve(ctx, None, 'v0.1') == history['c3']


def test_resolve_without_head(builder, ctx):
    """Test an empty repository raises RevisionUnavailable."""
    with pytest.raises(RevisionUnavailable):
        resolve(ctx, None, 'main')


def test_ref_map(history, ctx):
    """Test refs are grouped by target commit."""
    refs = ref_map(ctx)
    names = {(r.kind, r.name) for r in refs[history['c2']]}
    assert names == {(RefKind.BRANCH, 'old'), (RefKind.TAG, 'v1.0')}
    assert [r.name for r in refs[history['c0']]] == ['main']


def test_resolve_missing_full_id_uses_ref(history, ctx):
    """Test a full id naming no object falls back to the ref."""
    assert resolve(ctx, '0' * 40, 'old') == history['c2']


def test_resolve_missing_full_id_falls_back_to_head(history, ctx):
    """Test a full id naming no object falls back to HEAD."""
    assert resolve(ctx, 'f' * 40) == history['c0']


def test_resolve_non_commit_id_falls_back_to_head(history, ctx):
    """Test a full id naming a tree, not a commit, falls back to HEAD."""
    tree = ctx.repo.lookup_commit(history['c3']).tree
    assert resolve(ctx, tree) == history['c0']
