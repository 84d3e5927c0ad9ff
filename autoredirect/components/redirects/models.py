"""
Redirects component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from autoredirect.domain.entities import Redirect

# --- Validation Error ---


@dataclass(frozen=True)
class RedirectValidationError:
    """Redirect validation error."""

    code: str
    message: str
    field: str | None = None
    index: int | None = None


# --- Store Filter ---


@dataclass(frozen=True)
class RedirectFilter:
    """
    Filter for redirect lookups.

    A field left as None does not constrain the result.
    """

    from_path: str | None = None
    to_path: str | None = None
    to_path_prefix: str | None = None
    is_active: bool | None = None

    def matches(self, redirect: Redirect) -> bool:
        if self.from_path is not None and redirect.from_path != self.from_path:
            return False
        if self.to_path is not None and redirect.to_path != self.to_path:
            return False
        if self.to_path_prefix is not None and not redirect.to_path.startswith(
            self.to_path_prefix
        ):
            return False
        if self.is_active is not None and redirect.is_active != self.is_active:
            return False
        return True


ACTIVE = RedirectFilter(is_active=True)


# --- Input Models ---


@dataclass(frozen=True)
class CreateRedirectInput:
    """Input for creating a new redirect."""

    from_path: str
    to_path: str
    status_code: int | None = None
    is_active: bool = True
    priority: int | None = None
    description: str = ""


@dataclass(frozen=True)
class UpdateRedirectInput:
    """Input for updating an existing redirect."""

    redirect_id: UUID
    updates: dict[str, Any]


@dataclass(frozen=True)
class DeleteRedirectInput:
    """Input for deleting a redirect."""

    redirect_id: UUID


@dataclass(frozen=True)
class GetRedirectInput:
    """Input for getting a redirect."""

    redirect_id: UUID | None = None
    from_path: str | None = None


@dataclass(frozen=True)
class ListRedirectsInput:
    """Input for listing redirects."""

    active_only: bool = False


@dataclass(frozen=True)
class ListActiveInput:
    """Input for the public active-redirect projection."""

    pass


@dataclass(frozen=True)
class BulkImportInput:
    """Input for importing many redirects at once."""

    items: tuple[CreateRedirectInput, ...]


# --- Output Models ---


@dataclass(frozen=True)
class RedirectOutput:
    """Output containing a single redirect."""

    redirect: Redirect | None
    errors: list[RedirectValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class RedirectListOutput:
    """Output containing a list of redirects."""

    redirects: tuple[Redirect, ...]
    errors: list[RedirectValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class ActiveRedirect:
    """Projection served to the edge layer."""

    from_path: str
    to_path: str
    status_code: int

    def to_wire(self) -> dict[str, Any]:
        return {
            "fromPath": self.from_path,
            "toPath": self.to_path,
            "statusCode": self.status_code,
        }


@dataclass(frozen=True)
class ActiveRedirectsOutput:
    """Active redirects ordered by ascending priority."""

    redirects: tuple[ActiveRedirect, ...]
    success: bool = True


@dataclass(frozen=True)
class RedirectOperationOutput:
    """Output for redirect operations (create, update, delete)."""

    redirect: Redirect | None = None
    errors: list[RedirectValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class BulkImportOutput:
    """Output for bulk import."""

    redirects: tuple[Redirect, ...] = ()
    errors: list[RedirectValidationError] = field(default_factory=list)
    success: bool = True
