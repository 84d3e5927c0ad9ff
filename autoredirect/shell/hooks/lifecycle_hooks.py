"""
LifecycleHooks - routes storage mutation events to the redirect engine.

Key behaviors:
- beforeUpdate remembers the persisted slug of the entity
- afterUpdate compares it with the new slug and reconciles redirects
- afterDelete sweeps redirects pointing at content that no longer exists
- Internal namespaces and content types without a uid slug are ignored
- Never raises into the mutation that emitted the event
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from autoredirect.components.slug_redirects import (
    DEFAULT_ENGINE_CONFIG,
    AutoRedirectEngine,
    ContentTypeDescriptor,
    EngineConfig,
    LifecycleAction,
    LifecycleBusPort,
    LifecycleEvent,
    SlugChangeTracker,
)

logger = logging.getLogger(__name__)


class LifecycleHooks:
    """Lifecycle subscriber for automatic redirect maintenance."""

    def __init__(
        self,
        engine: AutoRedirectEngine,
        tracker: SlugChangeTracker,
        config: EngineConfig | None = None,
    ) -> None:
        self._engine = engine
        self._tracker = tracker
        self._config = config or DEFAULT_ENGINE_CONFIG
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def registered(self) -> bool:
        return self._unsubscribe is not None

    def register(self, bus: LifecycleBusPort) -> None:
        """Subscribe to the bus. Only the first call has an effect."""
        if self._unsubscribe is not None:
            logger.debug("Lifecycle hooks already registered")
            return
        self._unsubscribe = bus.subscribe(self.handle)
        logger.info("Auto-redirect lifecycle hooks registered")

    def unregister(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _tracked_descriptor(self, event: LifecycleEvent) -> ContentTypeDescriptor | None:
        uid = event.model.uid
        registry = self._engine.registry
        if registry.is_internal(uid):
            return None
        descriptor = registry.describe(event.model)
        if not descriptor.tracks_redirects:
            return None
        return descriptor

    async def handle(self, event: LifecycleEvent) -> None:
        try:
            await self._dispatch(event)
        except Exception:
            logger.exception(
                "Auto-redirect handling failed for %s on %s", event.action, event.model.uid
            )

    async def _dispatch(self, event: LifecycleEvent) -> None:
        action = event.action
        if action not in (
            LifecycleAction.BEFORE_UPDATE,
            LifecycleAction.AFTER_UPDATE,
            LifecycleAction.AFTER_DELETE,
        ):
            return

        descriptor = self._tracked_descriptor(event)
        if descriptor is None:
            return

        if action == LifecycleAction.BEFORE_UPDATE:
            entity_id = event.where_id
            if entity_id is None:
                return
            await self._tracker.record_old_slug(descriptor.uid, entity_id)

        elif action == LifecycleAction.AFTER_UPDATE:
            if not event.result:
                return
            entity_id = event.entity_id
            if entity_id is None:
                return
            old_slug = self._tracker.take_old_slug(descriptor.uid, entity_id)
            new_slug = event.result.get(self._config.slug_attribute)
            if not old_slug or not new_slug or old_slug == new_slug:
                return
            await self._engine.reconcile(descriptor.uid, old_slug, str(new_slug))

        else:
            await self._engine.sweep_orphans(descriptor.uid)
