"""
Public Redirects Routes.

Serves the active redirect set to the edge layer (frontend middleware,
CDN config generators). The response shape is consumed verbatim:

    {"data": [{"fromPath": ..., "toPath": ..., "statusCode": ...}, ...]}

ordered by ascending priority.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from autoredirect.api.deps import get_redirect_repo
from autoredirect.components.redirects import ListActiveInput, run_list_active

router = APIRouter()


@router.get("/active")
async def find_active(
    store: Any = Depends(get_redirect_repo),
) -> dict[str, list[dict[str, Any]]]:
    """Active redirects, lowest priority value first."""
    result = await run_list_active(ListActiveInput(), store=store)
    return {"data": [r.to_wire() for r in result.redirects]}
