"""
Settings component port definitions.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from autoredirect.domain.entities import GlobalSettings


class SettingsRepoPort(Protocol):
    """Repository interface for the global settings singleton."""

    async def get(self) -> GlobalSettings | None:
        """Get current settings, or None if not configured."""
        ...

    async def save(self, settings: GlobalSettings) -> GlobalSettings:
        """Save or update settings (upsert)."""
        ...


class TimePort(Protocol):
    """Port for time operations."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...
