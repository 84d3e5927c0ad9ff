"""
Redirects component port definitions.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

from autoredirect.domain.entities import Redirect

from .models import RedirectFilter


class RedirectStorePort(Protocol):
    """
    Persistence interface for redirects.

    Every method is a suspension point; callers await each call before
    taking the next decision.
    """

    async def find_many(
        self,
        filters: RedirectFilter,
        *,
        limit: int | None = None,
    ) -> list[Redirect]:
        """Find redirects matching filters, ordered by ascending priority."""
        ...

    async def get(self, redirect_id: UUID) -> Redirect | None:
        """Get redirect by ID."""
        ...

    async def create(self, redirect: Redirect) -> Redirect:
        """Persist a new redirect."""
        ...

    async def update(self, redirect_id: UUID, changes: dict[str, Any]) -> Redirect | None:
        """Apply field changes; None if the redirect does not exist."""
        ...

    async def delete(self, redirect_id: UUID) -> bool:
        """Delete redirect. Returns False if it did not exist."""
        ...

    async def count(self, filters: RedirectFilter) -> int:
        """Count redirects matching filters."""
        ...


class TimePort(Protocol):
    """Time provider interface."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...
