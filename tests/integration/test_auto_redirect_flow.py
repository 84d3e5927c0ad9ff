"""
End-to-end: content edits through the SQLite content store drive redirect
maintenance via the lifecycle bus, and the public endpoint serves the result.
"""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from autoredirect.adapters.clock import FrozenClock
from autoredirect.adapters.lifecycle_bus import InProcessLifecycleBus
from autoredirect.adapters.sqlite.repos import (
    SQLiteContentRepo,
    SQLiteGlobalSettingsRepo,
    SQLiteRedirectRepo,
)
from autoredirect.api.deps import get_redirect_repo
from autoredirect.api.main import app
from autoredirect.app_shell.config import build_registry, content_schemas, engine_config_from_rules
from autoredirect.components.redirects import ACTIVE, RedirectFilter
from autoredirect.components.settings import SettingsService
from autoredirect.components.slug_redirects import AutoRedirectEngine, SlugChangeTracker
from autoredirect.rules.loader import load_rules
from autoredirect.shell.hooks.lifecycle_hooks import LifecycleHooks
from tests.conftest import ARTICLE, T0

ROOT = Path(__file__).resolve().parents[2]

pytestmark = pytest.mark.anyio


@pytest.fixture
def rules():
    return load_rules(ROOT / "rules.yaml")


@pytest.fixture
def stack(db_path, rules):
    bus = InProcessLifecycleBus()
    clock = FrozenClock(T0)
    config = engine_config_from_rules(rules)
    redirects = SQLiteRedirectRepo(db_path)
    settings = SettingsService(repo=SQLiteGlobalSettingsRepo(db_path), time_port=clock)
    engine = AutoRedirectEngine(
        store=redirects,
        content=SQLiteContentRepo(db_path),
        settings=settings,
        registry=build_registry(rules),
        config=config,
        time_port=clock,
    )
    hooks = LifecycleHooks(
        engine=engine,
        tracker=SlugChangeTracker(SQLiteContentRepo(db_path)),
        config=config,
    )
    hooks.register(bus)
    content = SQLiteContentRepo(db_path, bus=bus, schemas=content_schemas(rules))
    return content, redirects, settings, clock


async def active_pairs(redirects):
    return {(r.from_path, r.to_path) for r in await redirects.find_many(ACTIVE)}


async def test_rename_chain_and_delete(stack):
    content, redirects, _, clock = stack
    await content.create(ARTICLE, "hello", entity_id=1)

    await content.update(ARTICLE, 1, {"slug": "hello-world"})
    clock.advance(minutes=1)
    await content.update(ARTICLE, 1, {"slug": "hello-again"})

    assert await active_pairs(redirects) == {
        ("/articles/hello", "/articles/hello-again"),
        ("/articles/hello-world", "/articles/hello-again"),
    }

    await content.delete(ARTICLE, 1)

    assert await active_pairs(redirects) == set()
    assert len(await redirects.find_many(RedirectFilter())) == 2


async def test_rename_back_flips_redirect(stack):
    content, redirects, _, _ = stack
    await content.create(ARTICLE, "a", entity_id=1)

    await content.update(ARTICLE, 1, {"slug": "b"})
    await content.update(ARTICLE, 1, {"slug": "a"})

    assert await active_pairs(redirects) == {("/articles/b", "/articles/a")}


async def test_mapping_override_applies(stack):
    content, redirects, settings, _ = stack
    await settings.update_redirect_url_mappings({"article": "blog"})
    await content.create(ARTICLE, "a", entity_id=1)

    await content.update(ARTICLE, 1, {"slug": "b"})

    assert await active_pairs(redirects) == {("/blog/a", "/blog/b")}


async def test_untracked_type_gets_no_redirects(stack):
    content, redirects, _, _ = stack
    await content.create("api::tag.tag", "x", entity_id=1)

    await content.update("api::tag.tag", 1, {"slug": "y"})

    assert await active_pairs(redirects) == set()


def test_public_endpoint_serves_engine_output(db_path):
    redirects = SQLiteRedirectRepo(db_path)
    app.dependency_overrides[get_redirect_repo] = lambda: redirects
    try:
        client = TestClient(app)
        assert client.get("/api/redirects/active").json() == {"data": []}
        assert client.get("/health").json() == {"status": "ok", "service": "autoredirect"}
    finally:
        app.dependency_overrides.clear()


async def test_other_type_with_same_id_keeps_redirects_live(stack):
    content, redirects, _, _ = stack
    await content.create(ARTICLE, "old", entity_id=1)
    await content.update(ARTICLE, 1, {"slug": "live-article"})
    await content.create("api::page.page", "about", entity_id=1)
    await content.create(ARTICLE, "spare", entity_id=2)

    # deleting another article sweeps the article type
    await content.delete(ARTICLE, 2)

    assert await active_pairs(redirects) == {("/articles/old", "/articles/live-article")}
