import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from autoredirect import __version__
from autoredirect.adapters.sqlite.migrator import SQLiteMigrator
from autoredirect.api.deps import (
    get_lifecycle_bus,
    get_lifecycle_hooks,
    get_registry,
    get_rules,
    get_settings,
)
from autoredirect.app_shell.config import validate_ops_rules

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    # Load rules and validate on startup (fail-fast)
    try:
        rules = get_rules()
        validate_ops_rules(rules, settings.data_dir)
        get_registry()
        SQLiteMigrator(settings.db_path).run_migrations()
        logger.info("Rules loaded from %s", settings.rules_path)
    except Exception as e:
        logger.critical("Startup failed: %s", e)
        sys.exit(1)

    hooks = get_lifecycle_hooks()
    hooks.register(get_lifecycle_bus())

    yield

    hooks.unregister()


app = FastAPI(
    title="Auto-Redirect API",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# --- Routers ---
from autoredirect.api.routes import (  # noqa: E402
    admin_redirects,
    admin_settings,
    public_redirects,
)

app.include_router(public_redirects.router, prefix="/api/redirects", tags=["Redirects Public"])
app.include_router(
    admin_redirects.router, prefix="/api/admin/redirects", tags=["Admin Redirects"]
)
app.include_router(admin_settings.router, prefix="/api/admin/settings", tags=["Admin Settings"])


# CORS (edge layer and admin frontend)
origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok", "service": "autoredirect"}
