"""In-memory storage adapters.

Single-process implementations of the redirect store, the settings repo and
the content lookup, used by tests and local tooling. The SQLite adapters are
the persistent counterparts.
"""

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from autoredirect.adapters.lifecycle_bus import InProcessLifecycleBus
from autoredirect.components.redirects import RedirectFilter
from autoredirect.components.slug_redirects import LifecycleAction, LifecycleEvent, ModelSchema
from autoredirect.domain.entities import ContentItem, EntityId, GlobalSettings, Redirect


class InMemoryRedirectStore:
    """RedirectStorePort backed by a dict. Counts writes for assertions."""

    def __init__(self, redirects: list[Redirect] | None = None) -> None:
        self._redirects: dict[UUID, Redirect] = {}
        self.writes = 0
        for redirect in redirects or []:
            self._redirects[redirect.id] = redirect

    async def find_many(
        self,
        filters: RedirectFilter,
        *,
        limit: int | None = None,
    ) -> list[Redirect]:
        found = sorted(
            (r for r in self._redirects.values() if filters.matches(r)),
            key=lambda r: (r.priority, r.created_at),
        )
        return found if limit is None else found[:limit]

    async def get(self, redirect_id: UUID) -> Redirect | None:
        return self._redirects.get(redirect_id)

    async def create(self, redirect: Redirect) -> Redirect:
        self._redirects[redirect.id] = redirect
        self.writes += 1
        return redirect

    async def update(self, redirect_id: UUID, changes: dict[str, Any]) -> Redirect | None:
        current = self._redirects.get(redirect_id)
        if current is None:
            return None
        changes = dict(changes)
        changes.setdefault("updated_at", datetime.now(UTC))
        updated = current.model_copy(update=changes)
        self._redirects[redirect_id] = updated
        self.writes += 1
        return updated

    async def delete(self, redirect_id: UUID) -> bool:
        if redirect_id in self._redirects:
            del self._redirects[redirect_id]
            self.writes += 1
            return True
        return False

    async def count(self, filters: RedirectFilter) -> int:
        return sum(1 for r in self._redirects.values() if filters.matches(r))

    def all(self) -> list[Redirect]:
        return list(self._redirects.values())

    def active(self) -> list[Redirect]:
        return [r for r in self._redirects.values() if r.is_active]

    def clear(self) -> None:
        """Clear all redirects - useful for testing."""
        self._redirects.clear()
        self.writes = 0


class InMemorySettingsRepo:
    """SettingsRepoPort holding the single settings row."""

    def __init__(self, settings: GlobalSettings | None = None) -> None:
        self._settings = settings

    async def get(self) -> GlobalSettings | None:
        return self._settings

    async def save(self, settings: GlobalSettings) -> GlobalSettings:
        self._settings = settings
        return settings


class InMemoryContentStore:
    """
    Content entities keyed by (content type uid, id).

    Implements ContentLookupPort and emits lifecycle events on update and
    delete when given a bus.
    """

    def __init__(
        self,
        bus: InProcessLifecycleBus | None = None,
        schemas: Mapping[str, ModelSchema] | None = None,
    ) -> None:
        self._items: dict[tuple[str, str], ContentItem] = {}
        self._bus = bus
        self._schemas = dict(schemas or {})

    def model_for(self, content_type_uid: str) -> ModelSchema:
        return self._schemas.get(content_type_uid) or ModelSchema(uid=content_type_uid)

    async def _emit(self, event: LifecycleEvent) -> None:
        if self._bus is not None:
            await self._bus.emit(event)

    async def get_slug(self, content_type_uid: str, entity_id: EntityId) -> str | None:
        item = self._items.get((content_type_uid, str(entity_id)))
        return item.slug if item else None

    async def count_by_slug(self, content_type_uid: str, slug: str) -> int:
        return sum(
            1
            for (uid, _), item in self._items.items()
            if uid == content_type_uid and item.slug == slug
        )

    async def get(self, content_type_uid: str, entity_id: EntityId) -> ContentItem | None:
        return self._items.get((content_type_uid, str(entity_id)))

    async def create(
        self,
        content_type_uid: str,
        slug: str | None,
        title: str = "",
        entity_id: EntityId | None = None,
    ) -> ContentItem:
        item = ContentItem(
            id=str(entity_id) if entity_id is not None else uuid4().hex,
            content_type_uid=content_type_uid,
            slug=slug,
            title=title,
        )
        self._items[(content_type_uid, str(item.id))] = item
        return item

    async def update(
        self,
        content_type_uid: str,
        entity_id: EntityId,
        changes: dict[str, Any],
    ) -> ContentItem | None:
        model = self.model_for(content_type_uid)
        params = {"where": {"id": entity_id}, "data": dict(changes)}
        await self._emit(
            LifecycleEvent(action=LifecycleAction.BEFORE_UPDATE, model=model, params=params)
        )
        key = (content_type_uid, str(entity_id))
        current = self._items.get(key)
        if current is None:
            return None
        fields = {k: v for k, v in changes.items() if k in ("slug", "title", "data_json")}
        fields["updated_at"] = datetime.now(UTC)
        saved = current.model_copy(update=fields)
        self._items[key] = saved
        await self._emit(
            LifecycleEvent(
                action=LifecycleAction.AFTER_UPDATE,
                model=model,
                params=params,
                result=saved.model_dump(mode="json"),
            )
        )
        return saved

    async def delete(self, content_type_uid: str, entity_id: EntityId) -> bool:
        item = self._items.pop((content_type_uid, str(entity_id)), None)
        if item is None:
            return False
        await self._emit(
            LifecycleEvent(
                action=LifecycleAction.AFTER_DELETE,
                model=self.model_for(content_type_uid),
                params={"where": {"id": entity_id}},
                result=item.model_dump(mode="json"),
            )
        )
        return True
