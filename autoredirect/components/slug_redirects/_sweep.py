"""
Orphan sweeper.

After a delete the removed slug is unknown, so every active redirect whose
target sits under the content type's prefix is re-checked against live
content. Redirects whose target slug matches no live entity are switched
off; rows are never deleted and their target is kept as it was.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from autoredirect.domain.entities import Redirect

from .models import SweepPlan

ORPHAN_NOTE = "(Deactivated: target content deleted)"


def trailing_slug(to_path: str, prefix: str) -> str | None:
    """
    Slug a target path points at below prefix.

    /articles/foo?x=1#top -> foo, /articles/foo/ -> foo. Deeper paths resolve
    to their first segment. None when nothing follows the prefix.
    """
    if not to_path.startswith(prefix):
        return None
    rest = to_path[len(prefix):]
    for marker in ("?", "#"):
        rest = rest.split(marker, 1)[0]
    rest = rest.strip("/")
    if not rest:
        return None
    return rest.split("/", 1)[0]


def distinct_slugs(redirects: Iterable[Redirect], prefix: str) -> list[str]:
    """Trailing slugs in first-seen order, each once."""
    seen: dict[str, None] = {}
    for redirect in redirects:
        slug = trailing_slug(redirect.to_path, prefix)
        if slug is not None:
            seen.setdefault(slug, None)
    return list(seen)


def plan_sweep(
    redirects: Iterable[Redirect],
    prefix: str,
    live_counts: Mapping[str, int | None],
) -> SweepPlan:
    """
    Split redirects into orphans, unresolved and live.

    live_counts maps slug -> number of live entities, None where the count
    could not be read.
    """
    orphans: list[Redirect] = []
    unresolved: list[Redirect] = []
    live: list[Redirect] = []

    for redirect in redirects:
        if not redirect.is_active:
            continue
        slug = trailing_slug(redirect.to_path, prefix)
        count = live_counts.get(slug) if slug is not None else None
        if count is None:
            unresolved.append(redirect)
        elif count == 0:
            orphans.append(redirect)
        else:
            live.append(redirect)

    return SweepPlan(orphans=tuple(orphans), unresolved=tuple(unresolved), live=tuple(live))
