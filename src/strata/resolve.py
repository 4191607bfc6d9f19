"""Turn user-supplied revision strings into commit ids.

Every entry point (log, diff, blame, search) goes through `resolve`, so the
fallback order is defined exactly once.
"""

from collections import defaultdict
from typing import Optional

from utz import err

from .context import Context
from .errors import RevisionUnavailable
from .models import ObjectId, Ref, is_full_oid


def candidates(ref: Optional[str]) -> list[str]:
    """Ref names to try, in order, for a non-HEAD `ref`.

    Branches and tags are told apart only by namespace.
    """
    return [f'refs/heads/{ref}', f'refs/tags/{ref}', ref]


def resolve(ctx: Context, id: Optional[str] = None, ref: Optional[str] = None) -> ObjectId:
    """Resolve `id` / `ref` to a commit id, falling back to HEAD.

    1. `id` that is a full hex object id naming a commit is used as-is.
    2. No `ref`, or "HEAD": symbolic HEAD.
    3-5. `refs/heads/<ref>`, `refs/tags/<ref>`, `<ref>` verbatim.
    6. HEAD.

    Raises `RevisionUnavailable` only if HEAD itself cannot be resolved.
    """
    repo = ctx.repo
    if id and is_full_oid(id):
        try:
            return repo.resolve_ref(id.lower())
        except RevisionUnavailable:
            err(f"No commit {id!r}, resolving {ref or 'HEAD'!r} instead")
    if not ref or ref == 'HEAD':
        return repo.head()
    for name in candidates(ref):
        try:
            return repo.resolve_ref(name)
        except RevisionUnavailable:
            continue
    err(f"Unable to resolve {ref!r}, falling back to HEAD")
    return repo.head()


def ref_map(ctx: Context) -> dict[ObjectId, list[Ref]]:
    """Branches and tags grouped by the commit they point at, for decorations."""
    refs = defaultdict(list)
    for r in ctx.repo.list_refs():
        refs[r.target].append(r)
    return dict(refs)
