"""
Settings component - global settings singleton.
"""

from ._impl import (
    SettingsService,
    ValidationError,
    create_settings_service,
    get_default_settings,
    validate_redirect_url_mappings,
)
from .ports import SettingsRepoPort, TimePort

__all__ = [
    "SettingsRepoPort",
    "SettingsService",
    "TimePort",
    "ValidationError",
    "create_settings_service",
    "get_default_settings",
    "validate_redirect_url_mappings",
]
