"""
PathMapper - public URL paths for content items.

Segment resolution order for a content type:
1. frontend path override from global settings (keyed by type name)
2. the type's declared plural name
3. <name>s
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from autoredirect.domain.paths import is_valid_segment, join_path, prefix

from ._registry import ContentTypeRegistry, content_type_name
from .models import ContentTypeDescriptor
from .ports import MappingsPort

logger = logging.getLogger(__name__)


class PathMapper:
    """Deterministic for a given registry and mapping snapshot."""

    def __init__(
        self,
        registry: ContentTypeRegistry,
        mappings: Mapping[str, str] | None = None,
    ) -> None:
        self._registry = registry
        self._mappings = dict(mappings or {})

    @classmethod
    async def from_settings(
        cls,
        registry: ContentTypeRegistry,
        settings: MappingsPort,
    ) -> PathMapper:
        """Snapshot the current frontend path overrides."""
        return cls(registry, await settings.get_redirect_url_mappings())

    def _descriptor(self, content_type_uid: str) -> ContentTypeDescriptor | None:
        return self._registry.get(content_type_uid)

    def segment_for(self, content_type_uid: str) -> str:
        descriptor = self._descriptor(content_type_uid)
        name = descriptor.name if descriptor else content_type_name(content_type_uid)

        override = self._mappings.get(name)
        if override is not None:
            if is_valid_segment(override):
                return override
            logger.warning(
                "Ignoring malformed frontend path %r for %s", override, content_type_uid
            )

        if descriptor and is_valid_segment(descriptor.plural_name):
            return descriptor.plural_name
        return f"{name}s"

    def map_path(self, content_type_uid: str, slug: str) -> str:
        """/<segment>/<slug>"""
        return join_path(self.segment_for(content_type_uid), slug)

    def prefix_for(self, content_type_uid: str) -> str:
        """/<segment>/"""
        return prefix(self.segment_for(content_type_uid))
