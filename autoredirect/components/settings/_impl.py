"""
SettingsService - global settings singleton.

Holds the frontend path overrides used when building redirect paths.

Key behaviors:
- get() always returns settings (fallback to defaults if the row is missing)
- Reading the mappings never fails; a broken repo yields an empty mapping
- Updates validate every path segment before persisting
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from autoredirect.domain.entities import GlobalSettings
from autoredirect.domain.paths import is_valid_segment

from .ports import SettingsRepoPort, TimePort

logger = logging.getLogger(__name__)


@dataclass
class ValidationError:
    """Validation error with actionable message."""

    field: str
    code: str
    message: str


def get_default_settings() -> GlobalSettings:
    """
    Get fallback default settings.

    Used when the DB row doesn't exist.
    """
    return GlobalSettings(redirect_url_mappings={}, updated_at=datetime.now(UTC))


def validate_redirect_url_mappings(mappings: dict[str, str]) -> list[ValidationError]:
    """Every key must be a content type name and every value one path segment."""
    errors: list[ValidationError] = []
    for name, segment in mappings.items():
        if not is_valid_segment(name):
            errors.append(
                ValidationError(
                    field=f"redirect_url_mappings.{name}",
                    code="invalid_content_type_name",
                    message=f"Content type name '{name}' must be a single path segment",
                )
            )
        if not is_valid_segment(segment):
            errors.append(
                ValidationError(
                    field=f"redirect_url_mappings.{name}",
                    code="invalid_path_segment",
                    message=(
                        f"Frontend path for '{name}' must be a non-empty segment "
                        "without '/', whitespace, '?' or '#'"
                    ),
                )
            )
    return errors


class SettingsService:
    """Global settings read/write with validation and defaults."""

    def __init__(
        self,
        repo: SettingsRepoPort,
        time_port: TimePort | None = None,
    ) -> None:
        self._repo = repo
        self._time_port = time_port

    def _now(self) -> datetime:
        if self._time_port:
            return self._time_port.now_utc()
        return datetime.now(UTC)

    async def get(self) -> GlobalSettings:
        """Current settings, or defaults when not configured."""
        settings = await self._repo.get()
        if settings is None:
            return get_default_settings()
        return settings

    async def get_redirect_url_mappings(self) -> dict[str, str]:
        """Frontend path overrides keyed by content type name."""
        try:
            settings = await self.get()
        except Exception as exc:
            logger.warning("Global settings unavailable, using no path overrides: %s", exc)
            return {}
        return dict(settings.redirect_url_mappings or {})

    async def update_redirect_url_mappings(
        self,
        mappings: dict[str, str],
    ) -> tuple[GlobalSettings, list[ValidationError]]:
        """
        Replace the frontend path overrides.

        Returns (settings, errors). Settings are unchanged when errors is
        non-empty.
        """
        current = await self.get()
        errors = validate_redirect_url_mappings(mappings)
        if errors:
            return current, errors

        updated = current.model_copy(
            update={"redirect_url_mappings": dict(mappings), "updated_at": self._now()}
        )
        saved = await self._repo.save(updated)
        return saved, []


def create_settings_service(
    repo: SettingsRepoPort,
    time_port: TimePort | None = None,
) -> SettingsService:
    """Create a SettingsService."""
    return SettingsService(repo=repo, time_port=time_port)
