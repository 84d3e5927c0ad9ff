"""
Slug redirects component - automatic redirect maintenance on slug changes.
"""

from ._paths import PathMapper
from ._registry import (
    ContentTypeConfigError,
    ContentTypeRegistry,
    content_type_name,
    validate_descriptor,
)
from ._resolve import (
    chain_note,
    created_description,
    load_snapshot,
    plan_reconcile,
    reversed_note,
    shadow_note,
)
from ._sweep import ORPHAN_NOTE, distinct_slugs, plan_sweep, trailing_slug
from ._tracker import SlugChangeTracker, slug_key
from .component import AutoRedirectEngine, create_auto_redirect_engine
from .models import (
    DEFAULT_ENGINE_CONFIG,
    ContentTypeDescriptor,
    CreateRedirectWrite,
    Decision,
    EngineConfig,
    LifecycleAction,
    LifecycleEvent,
    ModelSchema,
    ReconcilePlan,
    RedirectOutcome,
    RedirectSnapshot,
    SweepOutcome,
    SweepPlan,
    UpdateRedirectWrite,
)
from .ports import (
    ContentLookupPort,
    LifecycleBusPort,
    LifecycleHandler,
    MappingsPort,
    TimePort,
)

__all__ = [
    # Engine
    "AutoRedirectEngine",
    "create_auto_redirect_engine",
    # Building blocks
    "ContentTypeConfigError",
    "ContentTypeRegistry",
    "PathMapper",
    "SlugChangeTracker",
    "content_type_name",
    "slug_key",
    "validate_descriptor",
    # Resolver
    "chain_note",
    "created_description",
    "load_snapshot",
    "plan_reconcile",
    "reversed_note",
    "shadow_note",
    # Sweeper
    "ORPHAN_NOTE",
    "distinct_slugs",
    "plan_sweep",
    "trailing_slug",
    # Models
    "DEFAULT_ENGINE_CONFIG",
    "ContentTypeDescriptor",
    "CreateRedirectWrite",
    "Decision",
    "EngineConfig",
    "LifecycleAction",
    "LifecycleEvent",
    "ModelSchema",
    "ReconcilePlan",
    "RedirectOutcome",
    "RedirectSnapshot",
    "SweepOutcome",
    "SweepPlan",
    "UpdateRedirectWrite",
    # Ports
    "ContentLookupPort",
    "LifecycleBusPort",
    "LifecycleHandler",
    "MappingsPort",
    "TimePort",
]
