"""
SlugChangeTracker - remembers a slug between beforeUpdate and afterUpdate.

Entries are keyed per entity, so concurrent updates of different entities
never collide. Two interleaved updates of the same entity are serialized by
the storage layer, not here.
"""

from __future__ import annotations

import logging
from collections import OrderedDict

from autoredirect.domain.entities import EntityId

from .ports import ContentLookupPort

logger = logging.getLogger(__name__)

SlugKey = tuple[str, str]


def slug_key(content_type_uid: str, entity_id: EntityId) -> SlugKey:
    # ids may arrive as int from one hook and str from the other
    return (content_type_uid, str(entity_id))


class SlugChangeTracker:
    """Bounded, process-local cache of pre-update slugs."""

    def __init__(self, content: ContentLookupPort, max_entries: int = 1024) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._content = content
        self._max_entries = max_entries
        self._pending: OrderedDict[SlugKey, str] = OrderedDict()

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, key: object) -> bool:
        return key in self._pending

    async def record_old_slug(self, content_type_uid: str, entity_id: EntityId) -> None:
        """Look up the persisted slug and keep it until the matching afterUpdate."""
        try:
            slug = await self._content.get_slug(content_type_uid, entity_id)
        except Exception as exc:
            logger.debug(
                "Could not fetch old slug for %s:%s: %s", content_type_uid, entity_id, exc
            )
            return

        if not slug:
            logger.debug("No slug to remember for %s:%s", content_type_uid, entity_id)
            return

        key = slug_key(content_type_uid, entity_id)
        self._pending.pop(key, None)
        self._pending[key] = slug
        while len(self._pending) > self._max_entries:
            evicted, _ = self._pending.popitem(last=False)
            logger.warning("Slug change cache full, dropped pending entry %s:%s", *evicted)

    def take_old_slug(self, content_type_uid: str, entity_id: EntityId) -> str | None:
        """Return and forget the remembered slug, None if nothing was recorded."""
        return self._pending.pop(slug_key(content_type_uid, entity_id), None)

    def clear(self) -> None:
        self._pending.clear()
