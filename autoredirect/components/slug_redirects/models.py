"""
Slug redirects component models.

Lifecycle events, content type descriptors, resolver snapshots and the
writes the resolver and sweeper plan.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from uuid import UUID

from autoredirect.domain.entities import EntityId, Redirect

# --- Configuration ---


@dataclass(frozen=True)
class EngineConfig:
    """Engine configuration from rules."""

    auto_status_code: int = 301
    auto_priority: int = 100
    internal_namespaces: tuple[str, ...] = ("admin::", "plugin::")
    tracker_max_entries: int = 1024
    slug_attribute: str = "slug"
    slug_attribute_type: str = "uid"


DEFAULT_ENGINE_CONFIG = EngineConfig()


# --- Lifecycle Events ---


class LifecycleAction(str, Enum):
    BEFORE_UPDATE = "beforeUpdate"
    AFTER_UPDATE = "afterUpdate"
    AFTER_DELETE = "afterDelete"


@dataclass(frozen=True)
class ModelSchema:
    """Schema of the content type an event concerns, as the storage layer reports it."""

    uid: str
    attributes: Mapping[str, Any] = field(default_factory=dict)
    info: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class LifecycleEvent:
    """One mutation event from the storage layer."""

    action: LifecycleAction | str
    model: ModelSchema
    params: Mapping[str, Any] = field(default_factory=dict)
    result: Mapping[str, Any] | None = None

    @property
    def where_id(self) -> EntityId | None:
        where = self.params.get("where") or {}
        return where.get("id")

    @property
    def entity_id(self) -> EntityId | None:
        if self.result and self.result.get("id") is not None:
            return self.result["id"]
        return self.where_id


# --- Content Types ---


@dataclass(frozen=True)
class ContentTypeDescriptor:
    """
    What the engine needs to know about a content type.

    Resolved once per uid and cached by the registry.
    """

    uid: str
    name: str
    display_name: str
    plural_name: str
    tracks_redirects: bool


# --- Resolver ---


class Decision(str, Enum):
    INELIGIBLE = "ineligible"
    FAILED = "failed"
    UNCHANGED = "unchanged"
    ALREADY_REDIRECTED = "already_redirected"
    SELF_REFERENCE = "self_reference"
    REVERSED = "reversed"
    CREATED = "created"


@dataclass(frozen=True)
class RedirectSnapshot:
    """
    The part of the redirect set relevant to one old_path -> new_path move.

    direct: active redirect from old_path (lowest priority value first)
    predecessors: active redirects landing on old_path
    shadows: active redirects leaving new_path
    reverse: active redirect for the exact opposite hop new_path -> old_path
    """

    old_path: str
    new_path: str
    direct: Redirect | None = None
    predecessors: tuple[Redirect, ...] = ()
    shadows: tuple[Redirect, ...] = ()
    reverse: Redirect | None = None


@dataclass(frozen=True)
class CreateRedirectWrite:
    from_path: str
    to_path: str
    status_code: int
    priority: int
    description: str


@dataclass(frozen=True)
class UpdateRedirectWrite:
    redirect_id: UUID
    changes: Mapping[str, Any]
    reason: str


RedirectWrite = CreateRedirectWrite | UpdateRedirectWrite


@dataclass(frozen=True)
class ReconcilePlan:
    """Writes to perform, in order, for one slug change."""

    decision: Decision
    writes: tuple[RedirectWrite, ...] = ()
    skipped: tuple[Redirect, ...] = ()


@dataclass(frozen=True)
class RedirectOutcome:
    """What a reconciliation decided and what it managed to write."""

    decision: Decision
    content_type_uid: str
    old_path: str | None = None
    new_path: str | None = None
    created: Redirect | None = None
    updated: tuple[Redirect, ...] = ()
    skipped: tuple[Redirect, ...] = ()
    writes_applied: int = 0
    success: bool = True
    error: str | None = None


# --- Sweeper ---


@dataclass(frozen=True)
class SweepPlan:
    """
    Redirects under a prefix split by what the sweep should do with them.

    orphans: target slug no longer exists, deactivate
    unresolved: target slug unknown (unparseable or count failed), leave alone
    """

    orphans: tuple[Redirect, ...] = ()
    unresolved: tuple[Redirect, ...] = ()
    live: tuple[Redirect, ...] = ()


@dataclass(frozen=True)
class SweepOutcome:
    """Result of re-validating redirects under one content type's prefix."""

    content_type_uid: str
    prefix: str | None = None
    checked: int = 0
    deactivated: tuple[Redirect, ...] = ()
    unresolved: tuple[Redirect, ...] = ()
    failed: tuple[Redirect, ...] = ()
    success: bool = True
