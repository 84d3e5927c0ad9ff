"""
Lookup helpers over RedirectStorePort.

Thin named queries used by the admin service and the auto-redirect engine,
so both read the store the same way.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from autoredirect.domain.entities import Redirect

from .models import RedirectFilter
from .ports import RedirectStorePort


def append_note(description: str | None, note: str) -> str:
    """Append an annotation without discarding prior text."""
    if not description:
        return note
    return f"{description} {note}"


async def find_by_path(
    store: RedirectStorePort,
    from_path: str,
    *,
    active_only: bool = True,
) -> Redirect | None:
    """First redirect whose source is from_path (lowest priority value wins)."""
    found = await store.find_many(
        RedirectFilter(from_path=from_path, is_active=True if active_only else None),
        limit=1,
    )
    return found[0] if found else None


async def find_by_target(
    store: RedirectStorePort,
    to_path: str,
    *,
    active_only: bool = True,
) -> list[Redirect]:
    """Every redirect currently landing on to_path."""
    return await store.find_many(
        RedirectFilter(to_path=to_path, is_active=True if active_only else None),
    )


async def find_reverse(
    store: RedirectStorePort,
    from_path: str,
    to_path: str,
) -> Redirect | None:
    """Active redirect for the exact hop from_path -> to_path, if any."""
    found = await store.find_many(
        RedirectFilter(from_path=from_path, to_path=to_path, is_active=True),
        limit=1,
    )
    return found[0] if found else None


async def find_under_prefix(store: RedirectStorePort, prefix: str) -> list[Redirect]:
    """Active redirects whose target starts with prefix."""
    return await store.find_many(RedirectFilter(to_path_prefix=prefix, is_active=True))


async def deactivate(
    store: RedirectStorePort,
    redirect: Redirect,
    reason: str,
    *,
    now: datetime | None = None,
) -> Redirect | None:
    """Switch a redirect off, keeping the row and recording why."""
    changes: dict[str, Any] = {
        "is_active": False,
        "description": append_note(redirect.description, reason),
    }
    if now is not None:
        changes["updated_at"] = now
    return await store.update(redirect.id, changes)
