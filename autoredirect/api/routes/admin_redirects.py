"""
Admin Redirects API Routes.

Admin endpoints for managing URL redirects, bulk import and orphan sweeps.

Key behaviors:
- Validation failures return 400 with one entry per error
- Bulk import is all or nothing; errors carry the item index
- Sweeping an untracked content type returns 404
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from autoredirect.api.deps import (
    get_engine,
    get_redirect_config,
    get_redirect_repo,
    require_admin,
)
from autoredirect.components.redirects import (
    BulkImportInput,
    CreateRedirectInput,
    DeleteRedirectInput,
    GetRedirectInput,
    ListRedirectsInput,
    Redirect,
    RedirectConfig,
    RedirectService,
    RedirectValidationError,
    UpdateRedirectInput,
    run_bulk_import,
    run_create,
    run_delete,
    run_get,
    run_list,
    run_update,
)
from autoredirect.components.slug_redirects import AutoRedirectEngine

router = APIRouter(dependencies=[Depends(require_admin)])


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateRedirectRequest(CamelModel):
    """Request to create a redirect."""

    from_path: str = Field(..., description="Source path (e.g., /old-page)")
    to_path: str = Field(..., description="Target path (e.g., /new-page)")
    status_code: int | None = Field(None, description="HTTP status code (301/302/307/308)")
    is_active: bool = True
    priority: int | None = Field(None, description="Lower values are served first")
    description: str = ""


class UpdateRedirectRequest(CamelModel):
    """Request to update a redirect."""

    from_path: str | None = None
    to_path: str | None = None
    status_code: int | None = None
    is_active: bool | None = None
    priority: int | None = None
    description: str | None = None


class RedirectResponse(CamelModel):
    """Redirect response."""

    id: str
    from_path: str
    to_path: str
    status_code: int
    is_active: bool
    priority: int
    description: str
    created_at: str
    updated_at: str


class RedirectListResponse(BaseModel):
    """List of redirects response."""

    data: list[RedirectResponse]
    count: int


class BulkImportResponse(BaseModel):
    message: str
    data: list[RedirectResponse]


class SweepResponse(CamelModel):
    content_type_uid: str
    prefix: str | None
    checked: int
    deactivated: list[RedirectResponse]
    failed: int
    unresolved: int


class ValidationErrorResponse(BaseModel):
    """Validation error response."""

    errors: list[dict[str, Any]]


# --- Helper Functions ---


def _redirect_to_response(redirect: Redirect) -> RedirectResponse:
    """Convert Redirect to response model."""
    return RedirectResponse(
        id=str(redirect.id),
        from_path=redirect.from_path,
        to_path=redirect.to_path,
        status_code=redirect.status_code,
        is_active=redirect.is_active,
        priority=redirect.priority,
        description=redirect.description,
        created_at=redirect.created_at.isoformat(),
        updated_at=redirect.updated_at.isoformat(),
    )


def _serialize_errors(
    errors: list[RedirectValidationError],
) -> list[dict[str, Any]]:
    """Serialize validation errors."""
    serialized = []
    for e in errors:
        item: dict[str, Any] = {"code": e.code, "message": e.message, "field": e.field}
        if e.index is not None:
            item["index"] = e.index
        serialized.append(item)
    return serialized


def _to_create_input(item: Any) -> CreateRedirectInput:
    request = CreateRedirectRequest.model_validate(item)
    return CreateRedirectInput(
        from_path=request.from_path,
        to_path=request.to_path,
        status_code=request.status_code,
        is_active=request.is_active,
        priority=request.priority,
        description=request.description,
    )


# --- Routes ---


@router.get("", response_model=RedirectListResponse)
async def list_redirects(
    active_only: bool = False,
    store: Any = Depends(get_redirect_repo),
) -> RedirectListResponse:
    """List redirects, lowest priority value first."""
    result = await run_list(ListRedirectsInput(active_only=active_only), store=store)
    return RedirectListResponse(
        data=[_redirect_to_response(r) for r in result.redirects],
        count=len(result.redirects),
    )


@router.post(
    "",
    response_model=RedirectResponse,
    status_code=201,
    responses={400: {"model": ValidationErrorResponse}},
)
async def create_redirect(
    request: CreateRedirectRequest,
    store: Any = Depends(get_redirect_repo),
    config: RedirectConfig = Depends(get_redirect_config),
) -> RedirectResponse:
    """
    Create a new redirect.

    Validates:
    - Source is a path, target is internal
    - No second active redirect for the same source
    - No loops
    """
    result = await run_create(
        CreateRedirectInput(
            from_path=request.from_path,
            to_path=request.to_path,
            status_code=request.status_code,
            is_active=request.is_active,
            priority=request.priority,
            description=request.description,
        ),
        store=store,
        config=config,
    )

    if not result.success:
        raise HTTPException(
            status_code=400,
            detail={"errors": _serialize_errors(result.errors)},
        )

    assert result.redirect is not None
    return _redirect_to_response(result.redirect)


@router.post(
    "/bulk-import",
    response_model=BulkImportResponse,
    responses={400: {"model": ValidationErrorResponse}},
)
async def bulk_import(
    payload: dict[str, Any] = Body(...),
    store: Any = Depends(get_redirect_repo),
    config: RedirectConfig = Depends(get_redirect_config),
) -> BulkImportResponse:
    """Import `{"data": [...]}`; nothing is written unless every item is valid."""
    data = payload.get("data")
    if not isinstance(data, list):
        raise HTTPException(status_code=400, detail="Data must be an array of redirect objects")

    items = []
    parse_errors: list[RedirectValidationError] = []
    for index, item in enumerate(data):
        try:
            items.append(_to_create_input(item))
        except ValueError as e:
            parse_errors.append(
                RedirectValidationError(code="invalid_item", message=str(e), index=index)
            )
    if parse_errors:
        raise HTTPException(status_code=400, detail={"errors": _serialize_errors(parse_errors)})

    result = await run_bulk_import(BulkImportInput(items=tuple(items)), store=store, config=config)
    if not result.success:
        raise HTTPException(
            status_code=400,
            detail={"errors": _serialize_errors(result.errors)},
        )

    return BulkImportResponse(
        message=f"Successfully imported {len(result.redirects)} redirects",
        data=[_redirect_to_response(r) for r in result.redirects],
    )


@router.post(
    "/sweep/{content_type_uid}",
    response_model=SweepResponse,
    responses={404: {"description": "Content type does not track redirects"}},
)
async def sweep_orphans(
    content_type_uid: str,
    engine: AutoRedirectEngine = Depends(get_engine),
) -> SweepResponse:
    """Deactivate redirects pointing at deleted content of a type."""
    descriptor = engine.registry.get(content_type_uid)
    if descriptor is None or not descriptor.tracks_redirects:
        raise HTTPException(status_code=404, detail="Content type does not track redirects")

    outcome = await engine.sweep_orphans(content_type_uid)
    return SweepResponse(
        content_type_uid=outcome.content_type_uid,
        prefix=outcome.prefix,
        checked=outcome.checked,
        deactivated=[_redirect_to_response(r) for r in outcome.deactivated],
        failed=len(outcome.failed),
        unresolved=len(outcome.unresolved),
    )


@router.post("/validate")
async def validate_redirects(
    store: Any = Depends(get_redirect_repo),
    config: RedirectConfig = Depends(get_redirect_config),
) -> dict[str, Any]:
    """
    Check all active redirects.

    Returns any redirects with loops, chains or shadowed sources.
    """
    service = RedirectService(store=store, config=config)
    results = await service.find_problems()

    issues = [
        {
            "redirectId": str(redirect.id),
            "fromPath": redirect.from_path,
            "errors": _serialize_errors(errors),
        }
        for redirect, errors in results
    ]

    return {
        "valid": len(issues) == 0,
        "issues": issues,
        "totalChecked": len(await service.list_all(active_only=True)),
    }


@router.get(
    "/{redirect_id}",
    response_model=RedirectResponse,
    responses={404: {"description": "Redirect not found"}},
)
async def get_redirect(
    redirect_id: UUID,
    store: Any = Depends(get_redirect_repo),
) -> RedirectResponse:
    """Get a redirect by ID."""
    result = await run_get(GetRedirectInput(redirect_id=redirect_id), store=store)
    if result.redirect is None:
        raise HTTPException(status_code=404, detail="Redirect not found")
    return _redirect_to_response(result.redirect)


@router.put(
    "/{redirect_id}",
    response_model=RedirectResponse,
    responses={
        400: {"model": ValidationErrorResponse},
        404: {"description": "Redirect not found"},
    },
)
async def update_redirect(
    redirect_id: UUID,
    request: UpdateRedirectRequest,
    store: Any = Depends(get_redirect_repo),
    config: RedirectConfig = Depends(get_redirect_config),
) -> RedirectResponse:
    """
    Update a redirect.

    Validates same constraints as create.
    """
    updates = request.model_dump(exclude_none=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No updates provided")

    result = await run_update(
        UpdateRedirectInput(redirect_id=redirect_id, updates=updates),
        store=store,
        config=config,
    )

    if not result.success:
        if any(e.code == "not_found" for e in result.errors):
            raise HTTPException(status_code=404, detail="Redirect not found")
        raise HTTPException(
            status_code=400,
            detail={"errors": _serialize_errors(result.errors)},
        )

    assert result.redirect is not None
    return _redirect_to_response(result.redirect)


@router.delete(
    "/{redirect_id}",
    responses={404: {"description": "Redirect not found"}},
)
async def delete_redirect(
    redirect_id: UUID,
    store: Any = Depends(get_redirect_repo),
) -> dict[str, bool]:
    """Delete a redirect."""
    result = await run_delete(DeleteRedirectInput(redirect_id=redirect_id), store=store)
    if not result.success:
        raise HTTPException(status_code=404, detail="Redirect not found")
    return {"deleted": True}
