"""
Redirects component - redirect persistence port and admin management.
"""

from autoredirect.domain.entities import Redirect

from ._impl import (
    RedirectConfig,
    RedirectService,
    create_redirect_service,
    detect_loop,
    is_absolute_url,
    is_internal_path,
    normalize_path,
    validate_source_path,
    validate_status_code,
    validate_target_path,
)
from ._store import (
    append_note,
    deactivate,
    find_by_path,
    find_by_target,
    find_reverse,
    find_under_prefix,
)
from .component import (
    run_bulk_import,
    run_create,
    run_delete,
    run_get,
    run_list,
    run_list_active,
    run_update,
)
from .models import (
    ACTIVE,
    ActiveRedirect,
    ActiveRedirectsOutput,
    BulkImportInput,
    BulkImportOutput,
    CreateRedirectInput,
    DeleteRedirectInput,
    GetRedirectInput,
    ListActiveInput,
    ListRedirectsInput,
    RedirectFilter,
    RedirectListOutput,
    RedirectOperationOutput,
    RedirectOutput,
    RedirectValidationError,
    UpdateRedirectInput,
)
from .ports import RedirectStorePort, TimePort

__all__ = [
    # Entry points
    "run_bulk_import",
    "run_create",
    "run_delete",
    "run_get",
    "run_list",
    "run_list_active",
    "run_update",
    # Input models
    "BulkImportInput",
    "CreateRedirectInput",
    "DeleteRedirectInput",
    "GetRedirectInput",
    "ListActiveInput",
    "ListRedirectsInput",
    "UpdateRedirectInput",
    # Output models
    "ActiveRedirect",
    "ActiveRedirectsOutput",
    "BulkImportOutput",
    "Redirect",
    "RedirectListOutput",
    "RedirectOperationOutput",
    "RedirectOutput",
    "RedirectValidationError",
    # Store
    "ACTIVE",
    "RedirectFilter",
    "RedirectStorePort",
    "TimePort",
    "append_note",
    "deactivate",
    "find_by_path",
    "find_by_target",
    "find_reverse",
    "find_under_prefix",
    # Service
    "RedirectConfig",
    "RedirectService",
    "create_redirect_service",
    "detect_loop",
    "is_absolute_url",
    "is_internal_path",
    "normalize_path",
    "validate_source_path",
    "validate_status_code",
    "validate_target_path",
]
