"""
Tests for PathMapper and the content type registry.
"""

from __future__ import annotations

import logging

import pytest

from autoredirect.components.slug_redirects import (
    ContentTypeConfigError,
    ContentTypeDescriptor,
    ContentTypeRegistry,
    EngineConfig,
    ModelSchema,
    PathMapper,
    content_type_name,
)
from tests.conftest import ARTICLE, ARTICLE_SCHEMA, PAGE

pytestmark = pytest.mark.anyio


class TestContentTypeName:
    def test_api_uid(self) -> None:
        assert content_type_name("api::article.article") == "article"

    def test_plain_uid(self) -> None:
        assert content_type_name("page") == "page"


class TestPathMapper:
    def test_plural_name(self, registry) -> None:
        mapper = PathMapper(registry)
        assert mapper.map_path(ARTICLE, "hello") == "/articles/hello"
        assert mapper.prefix_for(ARTICLE) == "/articles/"

    def test_override_wins(self, registry) -> None:
        mapper = PathMapper(registry, {"article": "blog"})
        assert mapper.map_path(ARTICLE, "hello") == "/blog/hello"
        assert mapper.map_path(PAGE, "about") == "/pages/about"

    def test_unknown_type_falls_back_to_name_s(self, registry) -> None:
        mapper = PathMapper(registry)
        assert mapper.map_path("api::event.event", "launch") == "/events/launch"

    def test_malformed_override_is_ignored(self, registry, caplog) -> None:
        mapper = PathMapper(registry, {"article": "news/archive"})
        with caplog.at_level(logging.WARNING):
            assert mapper.map_path(ARTICLE, "hello") == "/articles/hello"
        assert "Ignoring malformed frontend path" in caplog.text

    def test_empty_override_is_ignored(self, registry) -> None:
        mapper = PathMapper(registry, {"article": ""})
        assert mapper.segment_for(ARTICLE) == "articles"

    def test_deterministic(self, registry) -> None:
        mapper = PathMapper(registry, {"article": "blog"})
        assert mapper.map_path(ARTICLE, "x") == mapper.map_path(ARTICLE, "x")

    async def test_from_settings_snapshots_mappings(
        self, registry, settings_service, blog_mappings
    ) -> None:
        mapper = await PathMapper.from_settings(registry, settings_service)
        assert mapper.segment_for(ARTICLE) == "blog"


class TestRegistry:
    def test_register_rejects_plural_with_slash(self) -> None:
        registry = ContentTypeRegistry()
        with pytest.raises(ContentTypeConfigError):
            registry.register(
                ContentTypeDescriptor(
                    uid="api::post.post",
                    name="post",
                    display_name="Post",
                    plural_name="blog/posts",
                    tracks_redirects=True,
                )
            )

    def test_untracked_types_are_not_path_checked(self) -> None:
        registry = ContentTypeRegistry()
        descriptor = registry.register(
            ContentTypeDescriptor(
                uid="api::odd.odd",
                name="odd",
                display_name="Odd",
                plural_name="",
                tracks_redirects=False,
            )
        )
        assert registry.get("api::odd.odd") is descriptor

    def test_describe_reads_schema_once(self) -> None:
        registry = ContentTypeRegistry()
        first = registry.describe(ARTICLE_SCHEMA)
        assert first.tracks_redirects
        assert first.display_name == "Article"
        assert first.plural_name == "articles"
        assert registry.describe(ModelSchema(uid=ARTICLE)) is first

    def test_describe_without_uid_slug_does_not_track(self) -> None:
        registry = ContentTypeRegistry()
        descriptor = registry.describe(
            ModelSchema(uid="api::tag.tag", attributes={"slug": {"type": "string"}})
        )
        assert descriptor.tracks_redirects is False

    def test_describe_malformed_schema_is_cached_as_untracked(self, caplog) -> None:
        registry = ContentTypeRegistry()
        model = ModelSchema(
            uid="api::post.post",
            attributes={"slug": {"type": "uid"}},
            info={"pluralName": "blog posts"},
        )
        with caplog.at_level(logging.ERROR):
            descriptor = registry.describe(model)
        assert descriptor.tracks_redirects is False
        assert registry.get("api::post.post") is descriptor
        assert "Auto-redirects disabled" in caplog.text

    def test_plural_defaults_to_name_s(self) -> None:
        registry = ContentTypeRegistry()
        descriptor = registry.describe(
            ModelSchema(uid="api::event.event", attributes={"slug": {"type": "uid"}})
        )
        assert descriptor.plural_name == "events"
        assert descriptor.display_name == "event"

    def test_internal_namespaces(self) -> None:
        registry = ContentTypeRegistry(EngineConfig(internal_namespaces=("admin::", "plugin::")))
        assert registry.is_internal("admin::user")
        assert registry.is_internal("plugin::users-permissions.user")
        assert not registry.is_internal(ARTICLE)
