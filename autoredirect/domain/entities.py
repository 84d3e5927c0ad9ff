from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

# --- Literals ---
EntityId = int | str
ALLOWED_STATUS_CODES = (301, 302, 307, 308)


def _utcnow() -> datetime:
    return datetime.now(UTC)


# --- Redirects ---


class Redirect(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    from_path: str
    to_path: str
    status_code: int = 301
    is_active: bool = True
    priority: int = 100
    description: str = ""
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


# --- Content (owned by the storage layer) ---


class ContentItem(BaseModel):
    id: EntityId
    content_type_uid: str
    slug: str | None = None
    title: str = ""
    data_json: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


# --- Config ---


class GlobalSettings(BaseModel):
    redirect_url_mappings: dict[str, str] = Field(default_factory=dict)
    updated_at: datetime = Field(default_factory=_utcnow)
