import logging
import os
import secrets
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from autoredirect.adapters.clock import SystemClock
from autoredirect.adapters.lifecycle_bus import InProcessLifecycleBus
from autoredirect.adapters.sqlite.repos import (
    SQLiteContentRepo,
    SQLiteGlobalSettingsRepo,
    SQLiteRedirectRepo,
)
from autoredirect.app_shell.config import (
    build_registry,
    content_schemas,
    engine_config_from_rules,
    redirect_config_from_rules,
)
from autoredirect.components.redirects import RedirectConfig
from autoredirect.components.settings import SettingsService
from autoredirect.components.slug_redirects import (
    AutoRedirectEngine,
    ContentTypeRegistry,
    SlugChangeTracker,
)
from autoredirect.rules.loader import load_rules
from autoredirect.rules.models import Rules
from autoredirect.shell.hooks.lifecycle_hooks import LifecycleHooks

logger = logging.getLogger(__name__)


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("AUTOREDIRECT_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "autoredirect.db")
        self.rules_path = Path(
            os.environ.get("AUTOREDIRECT_RULES_PATH", str(self.base_dir / "rules.yaml"))
        )
        self.admin_token = os.environ.get("AUTOREDIRECT_ADMIN_TOKEN")


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules() -> Rules:
    return load_rules(get_settings().rules_path)


def get_redirect_config(rules: Rules = Depends(get_rules)) -> RedirectConfig:
    return redirect_config_from_rules(rules)


# --- Process singletons ---
_bus_instance: InProcessLifecycleBus | None = None
_clock_instance: SystemClock | None = None
_registry_instance: ContentTypeRegistry | None = None
_tracker_instance: SlugChangeTracker | None = None
_hooks_instance: LifecycleHooks | None = None


def get_lifecycle_bus() -> InProcessLifecycleBus:
    """Get lifecycle bus singleton."""
    global _bus_instance
    if _bus_instance is None:
        _bus_instance = InProcessLifecycleBus()
    return _bus_instance


def get_clock() -> SystemClock:
    """Get clock singleton."""
    global _clock_instance
    if _clock_instance is None:
        _clock_instance = SystemClock()
    return _clock_instance


def get_registry() -> ContentTypeRegistry:
    """Content type registry singleton. Raises ContentTypeConfigError on bad config."""
    global _registry_instance
    if _registry_instance is None:
        _registry_instance = build_registry(get_rules())
    return _registry_instance


# --- Repos ---
def get_redirect_repo(settings: Settings = Depends(get_settings)) -> SQLiteRedirectRepo:
    return SQLiteRedirectRepo(settings.db_path)


def get_global_settings_repo(
    settings: Settings = Depends(get_settings),
) -> SQLiteGlobalSettingsRepo:
    return SQLiteGlobalSettingsRepo(settings.db_path)


def get_content_repo(settings: Settings = Depends(get_settings)) -> SQLiteContentRepo:
    return SQLiteContentRepo(
        settings.db_path,
        bus=get_lifecycle_bus(),
        schemas=content_schemas(get_rules()),
    )


# --- Component Services ---
def get_settings_service(
    repo: SQLiteGlobalSettingsRepo = Depends(get_global_settings_repo),
) -> SettingsService:
    """Get settings component service."""
    return SettingsService(repo=repo, time_port=get_clock())


def _build_engine(settings: Settings, rules: Rules) -> AutoRedirectEngine:
    db_path = settings.db_path
    return AutoRedirectEngine(
        store=SQLiteRedirectRepo(db_path),
        content=SQLiteContentRepo(db_path),
        settings=SettingsService(repo=SQLiteGlobalSettingsRepo(db_path), time_port=get_clock()),
        registry=get_registry(),
        config=engine_config_from_rules(rules),
        time_port=get_clock(),
    )


def get_engine(
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
) -> AutoRedirectEngine:
    """Get auto-redirect engine."""
    return _build_engine(settings, rules)


def get_lifecycle_hooks() -> LifecycleHooks:
    """Lifecycle hooks singleton; owns the slug change tracker."""
    global _hooks_instance, _tracker_instance
    if _hooks_instance is None:
        settings = get_settings()
        rules = get_rules()
        engine = _build_engine(settings, rules)
        _tracker_instance = SlugChangeTracker(
            SQLiteContentRepo(settings.db_path),
            max_entries=rules.engine.tracker_max_entries,
        )
        _hooks_instance = LifecycleHooks(
            engine=engine,
            tracker=_tracker_instance,
            config=engine_config_from_rules(rules),
        )
    return _hooks_instance


def reset_singletons() -> None:
    """Forget cached settings, rules and process singletons - useful for testing."""
    global _bus_instance, _clock_instance, _registry_instance, _tracker_instance, _hooks_instance
    _bus_instance = None
    _clock_instance = None
    _registry_instance = None
    _tracker_instance = None
    _hooks_instance = None
    get_settings.cache_clear()
    get_rules.cache_clear()


# --- Auth ---
bearer_scheme = HTTPBearer(auto_error=False)


def require_admin(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    settings: Settings = Depends(get_settings),
) -> None:
    """Admin routes need `Authorization: Bearer <AUTOREDIRECT_ADMIN_TOKEN>`."""
    if not settings.admin_token:
        logger.warning("AUTOREDIRECT_ADMIN_TOKEN is not set; admin API is disabled")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if credentials is None or not secrets.compare_digest(
        credentials.credentials.encode(), settings.admin_token.encode()
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
