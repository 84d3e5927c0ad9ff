"""
ContentTypeRegistry - capability descriptors per content type.

Each content type is described once: whether it takes part in redirect
tracking, the name used for path mapping and its display name. Descriptors
come from configuration at startup or, for types first seen in an event,
from the event's model schema. Later events for the same uid reuse the
cached descriptor.
"""

from __future__ import annotations

import logging

from autoredirect.domain.paths import is_valid_segment

from .models import DEFAULT_ENGINE_CONFIG, ContentTypeDescriptor, EngineConfig, ModelSchema

logger = logging.getLogger(__name__)


class ContentTypeConfigError(ValueError):
    """A content type cannot be mapped to a well-formed path."""


def content_type_name(uid: str) -> str:
    """api::article.article -> article"""
    name = uid.split("::", 1)[1] if "::" in uid else uid
    return name.split(".", 1)[0]


def validate_descriptor(descriptor: ContentTypeDescriptor) -> None:
    """Raise ContentTypeConfigError if a tracked type would map to a malformed path."""
    if not descriptor.uid:
        raise ContentTypeConfigError("Content type uid is required")
    if not descriptor.tracks_redirects:
        return
    if not is_valid_segment(descriptor.name):
        raise ContentTypeConfigError(
            f"Content type '{descriptor.uid}' has no usable name for path mapping "
            f"(got {descriptor.name!r})"
        )
    if not is_valid_segment(descriptor.plural_name):
        raise ContentTypeConfigError(
            f"Content type '{descriptor.uid}' plural name {descriptor.plural_name!r} "
            "is not a single path segment"
        )


class ContentTypeRegistry:
    """Resolves and caches ContentTypeDescriptor per uid."""

    def __init__(self, config: EngineConfig | None = None) -> None:
        self._config = config or DEFAULT_ENGINE_CONFIG
        self._descriptors: dict[str, ContentTypeDescriptor] = {}

    def is_internal(self, uid: str) -> bool:
        return uid.startswith(self._config.internal_namespaces)

    def register(self, descriptor: ContentTypeDescriptor) -> ContentTypeDescriptor:
        """Add a descriptor. Raises ContentTypeConfigError when malformed."""
        validate_descriptor(descriptor)
        self._descriptors[descriptor.uid] = descriptor
        return descriptor

    def get(self, uid: str) -> ContentTypeDescriptor | None:
        return self._descriptors.get(uid)

    def all(self) -> list[ContentTypeDescriptor]:
        return list(self._descriptors.values())

    def descriptor_from_model(self, model: ModelSchema) -> ContentTypeDescriptor:
        """Build a descriptor by reading the model schema once."""
        name = content_type_name(model.uid)
        slug = model.attributes.get(self._config.slug_attribute) or {}
        tracks = isinstance(slug, dict) and slug.get("type") == self._config.slug_attribute_type
        return ContentTypeDescriptor(
            uid=model.uid,
            name=name,
            display_name=str(model.info.get("displayName") or name),
            plural_name=str(model.info.get("pluralName") or f"{name}s"),
            tracks_redirects=tracks,
        )

    def describe(self, model: ModelSchema) -> ContentTypeDescriptor:
        """
        Descriptor for the model's uid, resolving it on first sight.

        A type whose schema cannot be mapped to a well-formed path is cached
        as non-tracking so it is not re-inspected on every event.
        """
        cached = self._descriptors.get(model.uid)
        if cached is not None:
            return cached

        descriptor = self.descriptor_from_model(model)
        try:
            return self.register(descriptor)
        except ContentTypeConfigError as exc:
            logger.error("Auto-redirects disabled for %s: %s", model.uid, exc)
            fallback = ContentTypeDescriptor(
                uid=descriptor.uid,
                name=descriptor.name,
                display_name=descriptor.display_name,
                plural_name=descriptor.plural_name,
                tracks_redirects=False,
            )
            self._descriptors[model.uid] = fallback
            return fallback
