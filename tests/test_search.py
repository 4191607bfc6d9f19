"""Test history and content searches and their rendering."""

from strata.config import Config
from strata.context import Context, open_context
from strata.search import SearchResults, SearchType, count_occurrences, search
from strata.sink import StringSink
from strata.views.search import render_search


def ids(results):
    return [c.id for c in results.commits]


def test_count_occurrences():
    """Test non-overlapping counting with an empty needle guard."""
    assert count_occurrences('aaaa', 'aa') == 2
    assert count_occurrences('abc', 'x') == 0
    assert count_occurrences('abc', '') == 0


def test_commit_search(history, ctx):
    """Test commit messages are matched case-insensitively."""
    results = search(ctx, 'TOUCH B', SearchType.COMMIT)
    assert ids(results) == [history['c0'], history['c2']]
    assert not results.truncated
    assert results.max_results == 100


def test_author_search(history, ctx):
    """Test author name and email are both searched."""
    assert ids(search(ctx, 'bob', 'author')) == [history['c0'], history['c2']]
    assert ids(search(ctx, 'alice@', 'author')) == [history['c1'], history['c3']]


def test_pickaxe_search(history, ctx):
    """Test pickaxe finds commits that change a term's occurrence count."""
    assert ids(search(ctx, 'a2', SearchType.PICKAXE)) == [history['c1']]
    # Present from the root commit onwards, never changed afterwards
    assert ids(search(ctx, 'b1', SearchType.PICKAXE)) == [history['c3']]


def test_grep_search(history, ctx):
    """Test grep reports paths and line numbers in the starting tree."""
    results = search(ctx, 'B2', SearchType.GREP)
    assert [(m.path, m.line_number, m.line) for m in results.matches] == [('b.txt', 2, 'b2')]
    assert results.count == 1
    assert results.commits == []


def test_grep_search_from_ref(history, ctx):
    """Test grep searches the tree of the given ref."""
    assert search(ctx, 'b3', SearchType.GREP, ref='v1.0').count == 0
    assert search(ctx, 'b3', SearchType.GREP).count == 1


def test_search_limit(history, ctx):
    """Test results stop at max_results and are flagged as truncated."""
    results = search(ctx, 'touch', max_results=2)
    assert ids(results) == [history['c0'], history['c1']]
    assert results.truncated


def test_search_limit_from_config(history, builder):
    """Test per-type caps come from the config."""
    with open_context(builder.path, Config(max_search_results=1)) as ctx:
        results = search(ctx, 'touch')
    assert results.max_results == 1
    assert results.count == 1


def test_render_search_commits(history, ctx):
    """Test commit results link to the commit and count matches."""
    sink = StringSink()
    render_search(ctx, sink, search(ctx, 'touch b'), now=1_700_100_000)
    out = sink.getvalue()
    assert "<h3>Commits matching &#x27;touch b&#x27;</h3>" in out
    assert 'Touch b again' in out
    assert history['c0'][:7] in out
    assert 'Found 2 results.' in out


def test_render_search_empty():
    """Test an empty result set says so."""
    results = SearchResults(SearchType.COMMIT, 'zzz', [], [], 100)
    sink = StringSink()
    render_search(Context(repo=None), sink, results)
    assert 'No results found.' in sink.getvalue()


def test_render_grep_truncated(history, ctx):
    """Test grep results and the truncation notice."""
    results = search(ctx, 'b', SearchType.GREP, max_results=1)
    assert results.truncated
    sink = StringSink()
    render_search(ctx, sink, results)
    out = sink.getvalue()
    assert "<span class='grep-line'>:1</span> <code>b1</code>" in out
    assert 'Showing first 1 results.' in out


def test_search_exactly_at_limit_not_truncated(history, ctx):
    """Test exactly max_results matches are reported as complete."""
    results = search(ctx, 'touch b', max_results=2)
    assert ids(results) == [history['c0'], history['c2']]
    assert not results.truncated
    sink = StringSink()
    render_search(ctx, sink, results)
    assert 'Found 2 results.' in sink.getvalue()
    assert 'Showing first' not in sink.getvalue()


def test_grep_exactly_at_limit_not_truncated(history, ctx):
    """Test a grep with exactly max_results matches isn't flagged."""
    results = search(ctx, 'b', SearchType.GREP, max_results=3)
    assert results.count == 3
    assert not results.truncated
