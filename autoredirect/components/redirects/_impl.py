"""
RedirectService - administrative redirect management with validation.

Backs the admin HTTP surface, bulk import and the CSV tooling. The
auto-redirect engine writes through the same store port but does not go
through this service: its writes are planned by the resolver instead.

Key behaviors:
- Redirects use 301 status code by default
- At most one active redirect per source path
- Internal targets only unless configured otherwise
- Creating or retargeting a redirect may not close a loop
- Active projection is ordered by ascending priority
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from urllib.parse import urlparse
from uuid import UUID

from autoredirect.domain.entities import ALLOWED_STATUS_CODES, Redirect

from ._store import find_by_path
from .models import ACTIVE, ActiveRedirect, RedirectFilter, RedirectValidationError
from .ports import RedirectStorePort, TimePort

# --- Configuration ---


@dataclass(frozen=True)
class RedirectConfig:
    """Redirect configuration from rules."""

    status_code: int = 301
    priority: int = 100
    allowed_status_codes: tuple[int, ...] = ALLOWED_STATUS_CODES

    # Constraints
    require_internal_targets: bool = True
    max_chain_length: int = 3
    prevent_loops: bool = True


DEFAULT_CONFIG = RedirectConfig()

UPDATABLE_FIELDS = frozenset(
    {"from_path", "to_path", "status_code", "is_active", "priority", "description"}
)


# --- Validation Functions ---


def normalize_path(path: str) -> str:
    """Normalize a path for comparison. Case is preserved."""
    if not path:
        return "/"

    path = path.strip()

    # Remove trailing slash (except for root)
    path = path.rstrip("/") or "/"

    # Ensure leading slash
    if not path.startswith("/"):
        path = "/" + path

    return path


def is_internal_path(path: str) -> bool:
    """Check if path is internal (not a full URL)."""
    if not path:
        return False

    if "://" in path:
        return False

    # Protocol-relative URL
    if path.startswith("//"):
        return False

    lower_path = path.lower()
    dangerous_protocols = ("javascript:", "data:", "vbscript:", "file:")
    if any(lower_path.startswith(proto) for proto in dangerous_protocols):
        return False

    return True


def is_absolute_url(url: str) -> bool:
    """Check if URL is absolute (has scheme)."""
    try:
        parsed = urlparse(url)
        return bool(parsed.scheme and parsed.netloc)
    except ValueError:
        return False


def validate_source_path(source: str) -> list[RedirectValidationError]:
    """Validate source path."""
    errors: list[RedirectValidationError] = []

    if not source:
        errors.append(
            RedirectValidationError(
                code="source_required",
                message="Source path is required",
                field="from_path",
            )
        )
        return errors

    if is_absolute_url(source):
        errors.append(
            RedirectValidationError(
                code="source_cannot_be_url",
                message="Source must be a path, not a full URL",
                field="from_path",
            )
        )
    elif not source.startswith("/"):
        errors.append(
            RedirectValidationError(
                code="source_must_start_with_slash",
                message="Source path must start with /",
                field="from_path",
            )
        )

    return errors


def validate_target_path(
    target: str,
    config: RedirectConfig = DEFAULT_CONFIG,
) -> list[RedirectValidationError]:
    """Validate target path."""
    errors: list[RedirectValidationError] = []

    if not target:
        errors.append(
            RedirectValidationError(
                code="target_required",
                message="Target path is required",
                field="to_path",
            )
        )
        return errors

    if config.require_internal_targets:
        if is_absolute_url(target):
            errors.append(
                RedirectValidationError(
                    code="external_target_not_allowed",
                    message="External URLs not allowed as redirect targets",
                    field="to_path",
                )
            )
        elif not is_internal_path(target):
            errors.append(
                RedirectValidationError(
                    code="invalid_target_path",
                    message="Target must be an internal path",
                    field="to_path",
                )
            )

    return errors


def validate_status_code(
    status_code: int,
    config: RedirectConfig = DEFAULT_CONFIG,
) -> list[RedirectValidationError]:
    """Validate the HTTP status code of a hop."""
    if status_code in config.allowed_status_codes:
        return []
    allowed = ", ".join(str(c) for c in config.allowed_status_codes)
    return [
        RedirectValidationError(
            code="invalid_status_code",
            message=f"Status code must be one of {allowed}",
            field="status_code",
        )
    ]


async def detect_loop(
    source: str,
    target: str,
    store: RedirectStorePort,
    config: RedirectConfig = DEFAULT_CONFIG,
) -> list[RedirectValidationError]:
    """
    Detect redirect loops.

    Follows active redirects from target and reports if the walk comes back
    to source before the configured chain length is exhausted.
    """
    errors: list[RedirectValidationError] = []

    if not config.prevent_loops:
        return errors

    norm_source = normalize_path(source)
    norm_target = normalize_path(target)

    # Direct loop: A -> A
    if norm_source == norm_target:
        errors.append(
            RedirectValidationError(
                code="redirect_loop",
                message="Redirect cannot point to itself",
                field="to_path",
            )
        )
        return errors

    # Indirect loops: A -> B -> ... -> A
    visited = {norm_source}
    current = norm_target
    chain_length = 1

    while chain_length <= config.max_chain_length + 1:
        if current in visited:
            errors.append(
                RedirectValidationError(
                    code="redirect_loop",
                    message=f"Redirect would create a loop via {current}",
                    field="to_path",
                )
            )
            break

        existing = await find_by_path(store, current)
        if existing is None:
            break

        visited.add(current)
        current = normalize_path(existing.to_path)
        chain_length += 1

    return errors


# --- Redirect Service ---


class RedirectService:
    """
    Redirect service.

    Manages redirects with validation on behalf of administrators.
    """

    def __init__(
        self,
        store: RedirectStorePort,
        time_port: TimePort | None = None,
        config: RedirectConfig | None = None,
    ) -> None:
        self._store = store
        self._time_port = time_port
        self._config = config or DEFAULT_CONFIG

    def _now(self) -> datetime:
        if self._time_port:
            return self._time_port.now_utc()
        return datetime.now(UTC)

    async def get(self, redirect_id: UUID) -> Redirect | None:
        """Get redirect by ID."""
        return await self._store.get(redirect_id)

    async def get_by_source(self, from_path: str) -> Redirect | None:
        """Get the active redirect for a source path."""
        return await find_by_path(self._store, normalize_path(from_path))

    async def _validate_new(
        self,
        from_path: str,
        to_path: str,
        status_code: int,
        is_active: bool,
    ) -> list[RedirectValidationError]:
        errors: list[RedirectValidationError] = []
        errors.extend(validate_source_path(from_path))
        errors.extend(validate_target_path(to_path, self._config))
        errors.extend(validate_status_code(status_code, self._config))
        if errors or not is_active:
            return errors

        norm_source = normalize_path(from_path)
        existing = await find_by_path(self._store, norm_source)
        if existing is not None:
            errors.append(
                RedirectValidationError(
                    code="source_exists",
                    message=f"Active redirect already exists for '{norm_source}'",
                    field="from_path",
                )
            )
            return errors

        if not is_absolute_url(to_path):
            errors.extend(
                await detect_loop(norm_source, normalize_path(to_path), self._store, self._config)
            )
        return errors

    async def create(
        self,
        from_path: str,
        to_path: str,
        status_code: int | None = None,
        is_active: bool = True,
        priority: int | None = None,
        description: str = "",
    ) -> tuple[Redirect | None, list[RedirectValidationError]]:
        """
        Create a new redirect.

        Returns:
            Tuple of (redirect, errors). Redirect is None if validation fails.
        """
        status = status_code or self._config.status_code
        errors = await self._validate_new(from_path, to_path, status, is_active)
        if errors:
            return None, errors

        now = self._now()
        redirect = Redirect(
            from_path=normalize_path(from_path),
            to_path=to_path if is_absolute_url(to_path) else normalize_path(to_path),
            status_code=status,
            is_active=is_active,
            priority=self._config.priority if priority is None else priority,
            description=description or "",
            created_at=now,
            updated_at=now,
        )
        saved = await self._store.create(redirect)
        return saved, []

    async def update(
        self,
        redirect_id: UUID,
        updates: dict[str, Any],
    ) -> tuple[Redirect | None, list[RedirectValidationError]]:
        """
        Update an existing redirect.

        Validates the same constraints as create for the fields that change.
        """
        errors: list[RedirectValidationError] = []

        redirect = await self._store.get(redirect_id)
        if redirect is None:
            errors.append(
                RedirectValidationError(
                    code="not_found",
                    message=f"Redirect {redirect_id} not found",
                )
            )
            return None, errors

        unknown = sorted(set(updates) - UPDATABLE_FIELDS)
        for name in unknown:
            errors.append(
                RedirectValidationError(
                    code="unknown_field",
                    message=f"Field '{name}' cannot be updated",
                    field=name,
                )
            )
        if errors:
            return redirect, errors

        changes = dict(updates)
        new_source = changes.get("from_path", redirect.from_path)
        new_target = changes.get("to_path", redirect.to_path)
        will_be_active = changes.get("is_active", redirect.is_active)

        if "from_path" in changes:
            errors.extend(validate_source_path(new_source))
            changes["from_path"] = normalize_path(new_source)
        if "to_path" in changes:
            errors.extend(validate_target_path(new_target, self._config))
            if not is_absolute_url(new_target):
                changes["to_path"] = normalize_path(new_target)
        if "status_code" in changes:
            errors.extend(validate_status_code(changes["status_code"], self._config))

        if errors:
            return redirect, errors

        norm_source = normalize_path(new_source)
        if will_be_active:
            existing = await find_by_path(self._store, norm_source)
            if existing is not None and existing.id != redirect_id:
                errors.append(
                    RedirectValidationError(
                        code="source_exists",
                        message=f"Active redirect already exists for '{norm_source}'",
                        field="from_path",
                    )
                )
            elif ("from_path" in changes or "to_path" in changes) and not is_absolute_url(
                new_target
            ):
                errors.extend(
                    await detect_loop(
                        norm_source, normalize_path(new_target), self._store, self._config
                    )
                )

        if errors:
            return redirect, errors

        changes["updated_at"] = self._now()
        saved = await self._store.update(redirect_id, changes)
        return saved, []

    async def delete(self, redirect_id: UUID) -> bool:
        """Delete a redirect."""
        return await self._store.delete(redirect_id)

    async def list_all(self, active_only: bool = False) -> list[Redirect]:
        """List redirects ordered by ascending priority."""
        return await self._store.find_many(ACTIVE if active_only else RedirectFilter())

    async def list_active(self) -> list[ActiveRedirect]:
        """Active redirects for the edge layer, lowest priority value first."""
        redirects = await self._store.find_many(ACTIVE)
        return [
            ActiveRedirect(
                from_path=r.from_path,
                to_path=r.to_path,
                status_code=r.status_code,
            )
            for r in redirects
        ]

    async def bulk_import(
        self,
        items: list[dict[str, Any]],
    ) -> tuple[list[Redirect], list[RedirectValidationError]]:
        """
        Import many redirects.

        Every item is validated before anything is written; a single invalid
        item rejects the whole batch.
        """
        errors: list[RedirectValidationError] = []
        prepared: list[Redirect] = []
        seen_sources: set[str] = set()
        now = self._now()

        for index, item in enumerate(items):
            from_path = str(item.get("from_path") or "")
            to_path = str(item.get("to_path") or "")
            status = item.get("status_code") or self._config.status_code
            is_active = bool(item.get("is_active", True))
            priority = item.get("priority")

            item_errors = await self._validate_new(from_path, to_path, status, is_active)
            norm_source = normalize_path(from_path)
            if is_active and norm_source in seen_sources:
                item_errors.append(
                    RedirectValidationError(
                        code="duplicate_in_batch",
                        message=f"'{norm_source}' appears more than once in the batch",
                        field="from_path",
                    )
                )
            if item_errors:
                errors.extend(
                    RedirectValidationError(
                        code=e.code,
                        message=e.message,
                        field=e.field,
                        index=index,
                    )
                    for e in item_errors
                )
                continue

            if is_active:
                seen_sources.add(norm_source)
            prepared.append(
                Redirect(
                    from_path=norm_source,
                    to_path=to_path if is_absolute_url(to_path) else normalize_path(to_path),
                    status_code=status,
                    is_active=is_active,
                    priority=self._config.priority if priority is None else int(priority),
                    description=str(item.get("description") or ""),
                    created_at=now,
                    updated_at=now,
                )
            )

        if errors:
            return [], errors

        created = [await self._store.create(r) for r in prepared]
        return created, []

    async def find_problems(self) -> list[tuple[Redirect, list[RedirectValidationError]]]:
        """
        Check every active redirect for self-loops, cycles and long chains.

        Returns list of (redirect, errors) for redirects with issues.
        """
        results: list[tuple[Redirect, list[RedirectValidationError]]] = []
        active = await self._store.find_many(ACTIVE)
        by_source: dict[str, Redirect] = {}
        for redirect in active:
            by_source.setdefault(redirect.from_path, redirect)

        for redirect in active:
            errors: list[RedirectValidationError] = []
            if redirect.from_path == redirect.to_path:
                errors.append(
                    RedirectValidationError(
                        code="redirect_loop",
                        message="Redirect points to itself",
                        field="to_path",
                    )
                )
            else:
                hops = 1
                current = redirect.to_path
                visited = {redirect.from_path}
                while current in by_source:
                    if current in visited:
                        errors.append(
                            RedirectValidationError(
                                code="redirect_loop",
                                message=f"Redirect loops back via {current}",
                                field="to_path",
                            )
                        )
                        break
                    visited.add(current)
                    current = by_source[current].to_path
                    hops += 1
                if not errors and hops > 1:
                    errors.append(
                        RedirectValidationError(
                            code="chain",
                            message=f"Redirect reaches its destination in {hops} hops",
                            field="to_path",
                        )
                    )

            if redirect is not by_source[redirect.from_path]:
                errors.append(
                    RedirectValidationError(
                        code="source_exists",
                        message=f"Another active redirect shadows '{redirect.from_path}'",
                        field="from_path",
                    )
                )

            if errors:
                results.append((redirect, errors))

        return results


# --- Factory ---


def create_redirect_service(
    store: RedirectStorePort,
    config: RedirectConfig | None = None,
    time_port: TimePort | None = None,
) -> RedirectService:
    """Create a RedirectService."""
    return RedirectService(store=store, time_port=time_port, config=config)
