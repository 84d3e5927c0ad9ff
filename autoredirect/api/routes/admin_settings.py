"""
Admin Settings API.

GET/PUT for the frontend path overrides used when building redirect paths.

Key behaviors:
- GET returns an empty mapping when the settings row is missing
- PUT validates every segment, returns 400 with actionable messages on failure
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from autoredirect.api.deps import get_settings_service, require_admin
from autoredirect.components.settings import SettingsService, ValidationError
from autoredirect.domain.entities import GlobalSettings

router = APIRouter(dependencies=[Depends(require_admin)])


# --- Request/Response Models ---


class MappingsResponse(BaseModel):
    """Frontend path overrides keyed by content type name."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    redirect_url_mappings: dict[str, str]
    updated_at: str


class MappingsUpdateRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    redirect_url_mappings: dict[str, str]


class ValidationErrorResponse(BaseModel):
    """Validation error response."""

    field: str
    code: str
    message: str


# --- Helper Functions ---


def settings_to_response(settings: GlobalSettings) -> MappingsResponse:
    return MappingsResponse(
        redirect_url_mappings=dict(settings.redirect_url_mappings),
        updated_at=settings.updated_at.isoformat(),
    )


def validation_errors_to_response(errors: list[ValidationError]) -> list[dict[str, Any]]:
    """Convert validation errors to response dicts."""
    return [
        ValidationErrorResponse(field=e.field, code=e.code, message=e.message).model_dump()
        for e in errors
    ]


# --- Endpoints ---


@router.get(
    "/redirect-url-mappings",
    response_model=MappingsResponse,
    summary="Get frontend path overrides",
)
async def get_redirect_url_mappings(
    service: SettingsService = Depends(get_settings_service),
) -> MappingsResponse:
    return settings_to_response(await service.get())


@router.put(
    "/redirect-url-mappings",
    response_model=MappingsResponse,
    summary="Replace frontend path overrides",
    responses={400: {"description": "Validation failed"}},
)
async def update_redirect_url_mappings(
    request: MappingsUpdateRequest,
    service: SettingsService = Depends(get_settings_service),
) -> MappingsResponse:
    """
    Replace the overrides.

    Returns 400 with field-level errors if any segment is malformed.
    """
    settings, errors = await service.update_redirect_url_mappings(request.redirect_url_mappings)
    if errors:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "detail": "Validation failed",
                "errors": validation_errors_to_response(errors),
            },
        )
    return settings_to_response(settings)
