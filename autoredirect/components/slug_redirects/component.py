"""
Slug redirects component - keeps redirects consistent as content slugs change.

AutoRedirectEngine is the entry point the lifecycle hooks, the admin API and
the CLI share. Reads go through load_snapshot, decisions through the pure
plan_reconcile and plan_sweep, and only this module writes.

Invariants:
- No active redirect has from_path == to_path
- No two active redirects point at each other
- Repeating a slug change leaves the redirect set as it is
- Store failures are logged and reported, never raised
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from autoredirect.components.redirects import deactivate, find_under_prefix
from autoredirect.domain.entities import Redirect

from ._paths import PathMapper
from ._registry import ContentTypeRegistry
from ._resolve import load_snapshot, plan_reconcile
from ._sweep import ORPHAN_NOTE, distinct_slugs, plan_sweep
from .models import (
    DEFAULT_ENGINE_CONFIG,
    CreateRedirectWrite,
    Decision,
    EngineConfig,
    RedirectOutcome,
    RedirectWrite,
    SweepOutcome,
)
from .ports import ContentLookupPort, MappingsPort, RedirectStorePort, TimePort

logger = logging.getLogger(__name__)


class AutoRedirectEngine:
    """Reconciles redirects after slug changes and sweeps orphans after deletes."""

    def __init__(
        self,
        store: RedirectStorePort,
        content: ContentLookupPort,
        settings: MappingsPort,
        registry: ContentTypeRegistry,
        config: EngineConfig | None = None,
        time_port: TimePort | None = None,
    ) -> None:
        self._store = store
        self._content = content
        self._settings = settings
        self._registry = registry
        self._config = config or DEFAULT_ENGINE_CONFIG
        self._time_port = time_port

    @property
    def registry(self) -> ContentTypeRegistry:
        return self._registry

    def _now(self) -> datetime:
        if self._time_port:
            return self._time_port.now_utc()
        return datetime.now(UTC)

    async def path_mapper(self) -> PathMapper:
        return await PathMapper.from_settings(self._registry, self._settings)

    # --- Slug changes ---

    async def reconcile(
        self,
        content_type_uid: str,
        old_slug: str | None,
        new_slug: str | None,
    ) -> RedirectOutcome:
        """
        Bring the redirect set in line with a slug change.

        Writes are applied in plan order. The first failing write stops the
        reconciliation; earlier writes stay applied.
        """
        descriptor = self._registry.get(content_type_uid)
        if descriptor is None or not descriptor.tracks_redirects or not old_slug or not new_slug:
            logger.debug("Slug change on %s not eligible for redirects", content_type_uid)
            return RedirectOutcome(decision=Decision.INELIGIBLE, content_type_uid=content_type_uid)

        if old_slug == new_slug:
            return RedirectOutcome(decision=Decision.UNCHANGED, content_type_uid=content_type_uid)

        try:
            mapper = await self.path_mapper()
            old_path = mapper.map_path(content_type_uid, old_slug)
            new_path = mapper.map_path(content_type_uid, new_slug)
            snapshot = await load_snapshot(self._store, old_path, new_path)
        except Exception as exc:
            logger.error(
                "Failed to read redirects for %s slug change %r -> %r",
                content_type_uid,
                old_slug,
                new_slug,
                exc_info=True,
            )
            return RedirectOutcome(
                decision=Decision.FAILED,
                content_type_uid=content_type_uid,
                success=False,
                error=str(exc),
            )

        plan = plan_reconcile(
            snapshot,
            old_slug=old_slug,
            new_slug=new_slug,
            display_name=descriptor.display_name,
            status_code=self._config.auto_status_code,
            priority=self._config.auto_priority,
        )

        for redirect in plan.skipped:
            logger.warning(
                "Skipped chain update for %s -> %s: would redirect %s to itself",
                redirect.from_path,
                redirect.to_path,
                new_path,
            )

        if plan.decision is Decision.ALREADY_REDIRECTED and snapshot.direct is not None:
            logger.debug(
                "Redirect already exists for %s -> %s", old_path, snapshot.direct.to_path
            )

        created: Redirect | None = None
        updated: list[Redirect] = []
        applied = 0
        for write in plan.writes:
            try:
                saved = await self._apply(write)
            except Exception as exc:
                logger.error(
                    "Failed to apply redirect write for %s -> %s",
                    old_path,
                    new_path,
                    exc_info=True,
                )
                return RedirectOutcome(
                    decision=plan.decision,
                    content_type_uid=content_type_uid,
                    old_path=old_path,
                    new_path=new_path,
                    created=created,
                    updated=tuple(updated),
                    skipped=plan.skipped,
                    writes_applied=applied,
                    success=False,
                    error=str(exc),
                )
            applied += 1
            if saved is None:
                continue
            if isinstance(write, CreateRedirectWrite):
                created = saved
            else:
                updated.append(saved)

        if plan.decision is Decision.SELF_REFERENCE:
            logger.debug("Slug change maps %s onto itself, no redirect created", old_path)

        return RedirectOutcome(
            decision=plan.decision,
            content_type_uid=content_type_uid,
            old_path=old_path,
            new_path=new_path,
            created=created,
            updated=tuple(updated),
            skipped=plan.skipped,
            writes_applied=applied,
        )

    async def _apply(self, write: RedirectWrite) -> Redirect | None:
        now = self._now()
        if isinstance(write, CreateRedirectWrite):
            redirect = await self._store.create(
                Redirect(
                    from_path=write.from_path,
                    to_path=write.to_path,
                    status_code=write.status_code,
                    is_active=True,
                    priority=write.priority,
                    description=write.description,
                    created_at=now,
                    updated_at=now,
                )
            )
            logger.info("Created redirect: %s -> %s", redirect.from_path, redirect.to_path)
            return redirect

        changes = dict(write.changes)
        changes["updated_at"] = now
        redirect = await self._store.update(write.redirect_id, changes)
        if redirect is None:
            logger.warning("Redirect %s disappeared before %s update", write.redirect_id, write.reason)
            return None
        if write.reason == "chain":
            logger.info("Updated redirect chain: %s -> %s", redirect.from_path, redirect.to_path)
        elif write.reason == "reverse":
            logger.info("Reversed redirect: %s -> %s", redirect.from_path, redirect.to_path)
        else:
            logger.info("Deactivated redirect from live path: %s", redirect.from_path)
        return redirect

    # --- Deletes ---

    async def sweep_orphans(self, content_type_uid: str) -> SweepOutcome:
        """
        Deactivate active redirects under the type's prefix whose target is gone.

        A slug whose count cannot be read leaves its redirects untouched. A
        failed deactivation is logged and the sweep moves on.
        """
        descriptor = self._registry.get(content_type_uid)
        if descriptor is None or not descriptor.tracks_redirects:
            logger.debug("Content type %s does not track redirects, nothing to sweep", content_type_uid)
            return SweepOutcome(content_type_uid=content_type_uid, success=False)

        try:
            mapper = await self.path_mapper()
            prefix = mapper.prefix_for(content_type_uid)
            candidates = await find_under_prefix(self._store, prefix)
        except Exception:
            logger.error("Failed to handle content deletion for %s", content_type_uid, exc_info=True)
            return SweepOutcome(content_type_uid=content_type_uid, success=False)

        counts: dict[str, int | None] = {}
        for slug in distinct_slugs(candidates, prefix):
            try:
                counts[slug] = await self._content.count_by_slug(content_type_uid, slug)
            except Exception as exc:
                logger.error("Could not count %s entries with slug %r: %s", content_type_uid, slug, exc)
                counts[slug] = None

        plan = plan_sweep(candidates, prefix, counts)
        for redirect in plan.unresolved:
            logger.debug("Left redirect %s -> %s unchecked", redirect.from_path, redirect.to_path)

        deactivated: list[Redirect] = []
        failed: list[Redirect] = []
        for redirect in plan.orphans:
            try:
                saved = await deactivate(self._store, redirect, ORPHAN_NOTE, now=self._now())
            except Exception:
                logger.error(
                    "Failed to deactivate redirect %s -> %s",
                    redirect.from_path,
                    redirect.to_path,
                    exc_info=True,
                )
                failed.append(redirect)
                continue
            if saved is not None:
                deactivated.append(saved)
                logger.info("Deactivated redirect to deleted content: %s", saved.to_path)

        return SweepOutcome(
            content_type_uid=content_type_uid,
            prefix=prefix,
            checked=len(candidates),
            deactivated=tuple(deactivated),
            unresolved=plan.unresolved,
            failed=tuple(failed),
            success=not failed,
        )


# --- Factory ---


def create_auto_redirect_engine(
    store: RedirectStorePort,
    content: ContentLookupPort,
    settings: MappingsPort,
    registry: ContentTypeRegistry | None = None,
    config: EngineConfig | None = None,
    time_port: TimePort | None = None,
) -> AutoRedirectEngine:
    """Create an AutoRedirectEngine."""
    config = config or DEFAULT_ENGINE_CONFIG
    return AutoRedirectEngine(
        store=store,
        content=content,
        settings=settings,
        registry=registry or ContentTypeRegistry(config),
        config=config,
        time_port=time_port,
    )
