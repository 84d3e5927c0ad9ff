"""
Tests for LifecycleHooks and the in-process bus.

Events are driven through the in-memory content store, which emits them the
way the storage layer does.
"""

from __future__ import annotations

import logging

import pytest

from autoredirect.adapters.lifecycle_bus import InProcessLifecycleBus
from autoredirect.components.slug_redirects import (
    LifecycleAction,
    LifecycleEvent,
    ModelSchema,
)
from tests.conftest import ARTICLE, ARTICLE_SCHEMA

pytestmark = pytest.mark.anyio


class TestRegistration:
    def test_register_is_once_only(self, hooks, bus) -> None:
        assert len(bus) == 1
        hooks.register(bus)
        assert len(bus) == 1

    def test_unregister(self, hooks, bus) -> None:
        hooks.unregister()
        assert len(bus) == 0
        assert not hooks.registered


class TestSlugChange:
    async def test_update_creates_redirect(self, hooks, content, store) -> None:
        await content.create(ARTICLE, "hello", entity_id=1)

        await content.update(ARTICLE, 1, {"slug": "hello-world"})

        (redirect,) = store.active()
        assert redirect.from_path == "/articles/hello"
        assert redirect.to_path == "/articles/hello-world"

    async def test_update_without_slug_change_is_noop(self, hooks, content, store) -> None:
        await content.create(ARTICLE, "hello", entity_id=1)
        await content.update(ARTICLE, 1, {"title": "New title"})
        assert store.writes == 0

    async def test_tracker_is_drained_after_update(self, hooks, tracker, content) -> None:
        await content.create(ARTICLE, "hello", entity_id=1)
        await content.update(ARTICLE, 1, {"slug": "bye"})
        assert len(tracker) == 0

    async def test_after_update_without_before_is_ignored(self, hooks, store) -> None:
        await hooks.handle(
            LifecycleEvent(
                action=LifecycleAction.AFTER_UPDATE,
                model=ARTICLE_SCHEMA,
                params={"where": {"id": 1}},
                result={"id": 1, "slug": "new"},
            )
        )
        assert store.writes == 0

    async def test_entity_id_falls_back_to_where(self, hooks, content, tracker, store) -> None:
        await content.create(ARTICLE, "old", entity_id=5)
        await tracker.record_old_slug(ARTICLE, 5)

        await hooks.handle(
            LifecycleEvent(
                action="afterUpdate",
                model=ARTICLE_SCHEMA,
                params={"where": {"id": 5}},
                result={"slug": "new"},
            )
        )

        (redirect,) = store.active()
        assert (redirect.from_path, redirect.to_path) == ("/articles/old", "/articles/new")

    async def test_before_update_without_where_id_is_ignored(self, hooks, tracker) -> None:
        await hooks.handle(
            LifecycleEvent(action=LifecycleAction.BEFORE_UPDATE, model=ARTICLE_SCHEMA, params={})
        )
        assert len(tracker) == 0


class TestFilters:
    async def test_internal_namespace_ignored(self, hooks, content, store) -> None:
        model = ModelSchema(uid="admin::user", attributes={"slug": {"type": "uid"}})
        await content.create("admin::user", "root", entity_id=1)
        await hooks.handle(
            LifecycleEvent(action=LifecycleAction.BEFORE_UPDATE, model=model, params={"where": {"id": 1}})
        )
        await hooks.handle(
            LifecycleEvent(
                action=LifecycleAction.AFTER_UPDATE,
                model=model,
                params={"where": {"id": 1}},
                result={"id": 1, "slug": "admin"},
            )
        )
        assert store.writes == 0

    async def test_type_without_uid_slug_ignored(self, hooks, tracker, content) -> None:
        model = ModelSchema(uid="api::tag.tag", attributes={"slug": {"type": "string"}})
        await content.create("api::tag.tag", "t", entity_id=1)
        await hooks.handle(
            LifecycleEvent(action=LifecycleAction.BEFORE_UPDATE, model=model, params={"where": {"id": 1}})
        )
        assert len(tracker) == 0

    async def test_unknown_action_ignored(self, hooks, store) -> None:
        await hooks.handle(LifecycleEvent(action="afterCreate", model=ARTICLE_SCHEMA))
        assert store.writes == 0


class TestDelete:
    async def test_delete_sweeps_orphans(self, hooks, content, store) -> None:
        await content.create(ARTICLE, "hello", entity_id=1)
        await content.update(ARTICLE, 1, {"slug": "hello-world"})

        await content.delete(ARTICLE, 1)

        (redirect,) = store.all()
        assert redirect.is_active is False
        assert redirect.description.endswith("(Deactivated: target content deleted)")


class TestNeverRaises:
    async def test_engine_failure_is_swallowed(self, hooks, engine, content, caplog) -> None:
        async def boom(*args, **kwargs):
            raise RuntimeError("boom")

        engine.reconcile = boom
        await content.create(ARTICLE, "hello", entity_id=1)

        with caplog.at_level(logging.ERROR):
            saved = await content.update(ARTICLE, 1, {"slug": "bye"})

        assert saved is not None
        assert saved.slug == "bye"
        assert "Auto-redirect handling failed" in caplog.text

    async def test_store_failure_does_not_reach_mutation(self, hooks, store, content) -> None:
        async def broken(*args, **kwargs):
            raise RuntimeError("locked")

        store.find_many = broken
        await content.create(ARTICLE, "hello", entity_id=1)

        saved = await content.update(ARTICLE, 1, {"slug": "bye"})
        assert saved is not None


class TestBus:
    async def test_failing_subscriber_does_not_stop_others(self, caplog) -> None:
        bus = InProcessLifecycleBus()
        seen: list[str] = []

        async def failing(event):
            raise RuntimeError("nope")

        async def recording(event):
            seen.append(event.action)

        bus.subscribe(failing)
        bus.subscribe(recording)

        with caplog.at_level(logging.ERROR):
            await bus.emit(LifecycleEvent(action="afterDelete", model=ARTICLE_SCHEMA))

        assert seen == ["afterDelete"]
        assert "Lifecycle subscriber failed" in caplog.text

    async def test_unsubscribe(self) -> None:
        bus = InProcessLifecycleBus()

        async def handler(event):
            pass

        unsubscribe = bus.subscribe(handler)
        unsubscribe()
        unsubscribe()
        assert len(bus) == 0
