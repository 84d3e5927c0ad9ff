import os
from datetime import UTC, datetime, timedelta

import pytest

from autoredirect.adapters.clock import FrozenClock
from autoredirect.adapters.lifecycle_bus import InProcessLifecycleBus
from autoredirect.adapters.memory import (
    InMemoryContentStore,
    InMemoryRedirectStore,
    InMemorySettingsRepo,
)
from autoredirect.adapters.sqlite.migrator import SQLiteMigrator
from autoredirect.components.settings import SettingsService
from autoredirect.components.slug_redirects import (
    AutoRedirectEngine,
    ContentTypeDescriptor,
    ContentTypeRegistry,
    ModelSchema,
    SlugChangeTracker,
)
from autoredirect.domain.entities import GlobalSettings, Redirect
from autoredirect.shell.hooks.lifecycle_hooks import LifecycleHooks

ARTICLE = "api::article.article"
PAGE = "api::page.page"

ARTICLE_DESCRIPTOR = ContentTypeDescriptor(
    uid=ARTICLE,
    name="article",
    display_name="Article",
    plural_name="articles",
    tracks_redirects=True,
)
PAGE_DESCRIPTOR = ContentTypeDescriptor(
    uid=PAGE,
    name="page",
    display_name="Page",
    plural_name="pages",
    tracks_redirects=True,
)

ARTICLE_SCHEMA = ModelSchema(
    uid=ARTICLE,
    attributes={"slug": {"type": "uid"}, "title": {"type": "string"}},
    info={"displayName": "Article", "pluralName": "articles"},
)

T0 = datetime(2025, 1, 1, tzinfo=UTC)


def make_redirect(
    from_path: str,
    to_path: str,
    *,
    is_active: bool = True,
    priority: int = 100,
    description: str = "",
    created_at: datetime | None = None,
) -> Redirect:
    ts = created_at or T0
    return Redirect(
        from_path=from_path,
        to_path=to_path,
        is_active=is_active,
        priority=priority,
        description=description,
        created_at=ts,
        updated_at=ts,
    )


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(T0 + timedelta(days=1))


@pytest.fixture
def store() -> InMemoryRedirectStore:
    return InMemoryRedirectStore()


@pytest.fixture
def bus() -> InProcessLifecycleBus:
    return InProcessLifecycleBus()


@pytest.fixture
def content(bus: InProcessLifecycleBus) -> InMemoryContentStore:
    return InMemoryContentStore(bus=bus, schemas={ARTICLE: ARTICLE_SCHEMA})


@pytest.fixture
def settings_repo() -> InMemorySettingsRepo:
    return InMemorySettingsRepo()


@pytest.fixture
def settings_service(settings_repo: InMemorySettingsRepo, clock: FrozenClock) -> SettingsService:
    return SettingsService(repo=settings_repo, time_port=clock)


@pytest.fixture
def registry() -> ContentTypeRegistry:
    registry = ContentTypeRegistry()
    registry.register(ARTICLE_DESCRIPTOR)
    registry.register(PAGE_DESCRIPTOR)
    return registry


@pytest.fixture
def engine(
    store: InMemoryRedirectStore,
    content: InMemoryContentStore,
    settings_service: SettingsService,
    registry: ContentTypeRegistry,
    clock: FrozenClock,
) -> AutoRedirectEngine:
    return AutoRedirectEngine(
        store=store,
        content=content,
        settings=settings_service,
        registry=registry,
        time_port=clock,
    )


@pytest.fixture
def tracker(content: InMemoryContentStore) -> SlugChangeTracker:
    return SlugChangeTracker(content)


@pytest.fixture
def hooks(
    engine: AutoRedirectEngine,
    tracker: SlugChangeTracker,
    bus: InProcessLifecycleBus,
) -> LifecycleHooks:
    hooks = LifecycleHooks(engine=engine, tracker=tracker)
    hooks.register(bus)
    return hooks


@pytest.fixture
def blog_mappings(settings_repo: InMemorySettingsRepo) -> dict[str, str]:
    mappings = {"article": "blog"}
    settings_repo._settings = GlobalSettings(redirect_url_mappings=mappings, updated_at=T0)
    return mappings


@pytest.fixture
def db_path(tmp_path) -> str:
    path = os.path.join(str(tmp_path), "autoredirect.db")
    SQLiteMigrator(path).run_migrations()
    return path
