"""
Slug redirects component port definitions.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Protocol

from autoredirect.components.redirects.ports import RedirectStorePort
from autoredirect.domain.entities import EntityId

from .models import LifecycleEvent


class ContentLookupPort(Protocol):
    """Read access to the content storage layer."""

    async def get_slug(self, content_type_uid: str, entity_id: EntityId) -> str | None:
        """Currently persisted slug of an entity, None if missing."""
        ...

    async def count_by_slug(self, content_type_uid: str, slug: str) -> int:
        """Number of live entities of the type carrying slug."""
        ...


class MappingsPort(Protocol):
    """Source of frontend path overrides."""

    async def get_redirect_url_mappings(self) -> dict[str, str]:
        """Content type name -> frontend path segment. Never raises."""
        ...


LifecycleHandler = Callable[[LifecycleEvent], Awaitable[None]]


class LifecycleBusPort(Protocol):
    """Mutation event stream of the storage layer."""

    def subscribe(self, handler: LifecycleHandler) -> Callable[[], None]:
        """Register handler; returns a callable that unsubscribes it."""
        ...


class TimePort(Protocol):
    def now_utc(self) -> datetime:
        ...


__all__ = [
    "ContentLookupPort",
    "LifecycleBusPort",
    "LifecycleHandler",
    "MappingsPort",
    "RedirectStorePort",
    "TimePort",
]
