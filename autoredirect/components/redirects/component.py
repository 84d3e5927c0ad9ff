"""
Redirects component - administrative redirect management.

Handles redirect CRUD, bulk import and the active projection served to the
edge layer.

Invariants:
- I1: At most one active redirect per source path
- I2: No circular redirects
- I3: Status code must be 301, 302, 307 or 308
- I4: Cannot redirect to self
"""

from __future__ import annotations

from dataclasses import asdict

from ._impl import RedirectConfig, RedirectService
from .models import (
    ActiveRedirectsOutput,
    BulkImportInput,
    BulkImportOutput,
    CreateRedirectInput,
    DeleteRedirectInput,
    GetRedirectInput,
    ListActiveInput,
    ListRedirectsInput,
    RedirectListOutput,
    RedirectOperationOutput,
    RedirectOutput,
    RedirectValidationError,
    UpdateRedirectInput,
)
from .ports import RedirectStorePort


def _create_service(
    store: RedirectStorePort,
    config: RedirectConfig | None,
) -> RedirectService:
    return RedirectService(store=store, config=config)


# --- Component Entry Points ---


async def run_create(
    inp: CreateRedirectInput,
    *,
    store: RedirectStorePort,
    config: RedirectConfig | None = None,
) -> RedirectOperationOutput:
    """
    Create a new redirect.

    Args:
        inp: Input containing source, target, and options.
        store: Redirect store port.
        config: Optional redirect configuration.

    Returns:
        RedirectOperationOutput with created redirect or errors.
    """
    service = _create_service(store, config)

    redirect, errors = await service.create(
        from_path=inp.from_path,
        to_path=inp.to_path,
        status_code=inp.status_code,
        is_active=inp.is_active,
        priority=inp.priority,
        description=inp.description,
    )

    return RedirectOperationOutput(
        redirect=redirect,
        errors=errors,
        success=len(errors) == 0,
    )


async def run_update(
    inp: UpdateRedirectInput,
    *,
    store: RedirectStorePort,
    config: RedirectConfig | None = None,
) -> RedirectOperationOutput:
    """
    Update an existing redirect.

    Args:
        inp: Input containing redirect_id and updates.
        store: Redirect store port.
        config: Optional redirect configuration.

    Returns:
        RedirectOperationOutput with updated redirect or errors.
    """
    service = _create_service(store, config)

    redirect, errors = await service.update(
        redirect_id=inp.redirect_id,
        updates=inp.updates,
    )

    return RedirectOperationOutput(
        redirect=redirect,
        errors=errors,
        success=len(errors) == 0,
    )


async def run_delete(
    inp: DeleteRedirectInput,
    *,
    store: RedirectStorePort,
    config: RedirectConfig | None = None,
) -> RedirectOperationOutput:
    """Delete a redirect."""
    service = _create_service(store, config)

    deleted = await service.delete(inp.redirect_id)

    if not deleted:
        return RedirectOperationOutput(
            redirect=None,
            errors=[
                RedirectValidationError(
                    code="not_found",
                    message=f"Redirect {inp.redirect_id} not found",
                )
            ],
            success=False,
        )

    return RedirectOperationOutput(redirect=None, errors=[], success=True)


async def run_get(
    inp: GetRedirectInput,
    *,
    store: RedirectStorePort,
    config: RedirectConfig | None = None,
) -> RedirectOutput:
    """Get a redirect by ID or by active source path."""
    service = _create_service(store, config)

    if inp.redirect_id is not None:
        redirect = await service.get(inp.redirect_id)
    elif inp.from_path is not None:
        redirect = await service.get_by_source(inp.from_path)
    else:
        return RedirectOutput(
            redirect=None,
            errors=[
                RedirectValidationError(
                    code="invalid_input",
                    message="Either redirect_id or from_path must be provided",
                )
            ],
            success=False,
        )

    if redirect is None:
        return RedirectOutput(
            redirect=None,
            errors=[RedirectValidationError(code="not_found", message="Redirect not found")],
            success=False,
        )

    return RedirectOutput(redirect=redirect, errors=[], success=True)


async def run_list(
    inp: ListRedirectsInput,
    *,
    store: RedirectStorePort,
    config: RedirectConfig | None = None,
) -> RedirectListOutput:
    """List redirects."""
    service = _create_service(store, config)
    redirects = await service.list_all(active_only=inp.active_only)
    return RedirectListOutput(redirects=tuple(redirects), errors=[], success=True)


async def run_list_active(
    inp: ListActiveInput,
    *,
    store: RedirectStorePort,
    config: RedirectConfig | None = None,
) -> ActiveRedirectsOutput:
    """Active redirects projected for the edge layer."""
    service = _create_service(store, config)
    return ActiveRedirectsOutput(redirects=tuple(await service.list_active()))


async def run_bulk_import(
    inp: BulkImportInput,
    *,
    store: RedirectStorePort,
    config: RedirectConfig | None = None,
) -> BulkImportOutput:
    """
    Import a batch of redirects, all or nothing.

    Returns:
        BulkImportOutput with created redirects, or per-item errors.
    """
    service = _create_service(store, config)
    created, errors = await service.bulk_import([asdict(item) for item in inp.items])
    return BulkImportOutput(
        redirects=tuple(created),
        errors=errors,
        success=len(errors) == 0,
    )
