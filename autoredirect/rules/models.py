from pydantic import BaseModel, Field, field_validator

from autoredirect.domain.entities import ALLOWED_STATUS_CODES


class ProjectRules(BaseModel):
    slug: str
    rules_version: str
    required_sections: list[str] = Field(default_factory=list)

class RedirectRules(BaseModel):
    auto_status_code: int = 301
    auto_priority: int = 100
    allowed_status_codes: list[int] = Field(default_factory=lambda: list(ALLOWED_STATUS_CODES))
    require_internal_targets: bool = True
    max_chain_length: int = 3
    prevent_loops: bool = True

    @field_validator("allowed_status_codes")
    @classmethod
    def _known_codes(cls, v: list[int]) -> list[int]:
        unknown = sorted(set(v) - set(ALLOWED_STATUS_CODES))
        if unknown:
            raise ValueError(f"unsupported redirect status codes: {unknown}")
        return v

class EngineRules(BaseModel):
    internal_namespaces: list[str] = Field(default_factory=lambda: ["admin::", "plugin::"])
    tracker_max_entries: int = Field(default=1024, ge=1)
    slug_attribute: str = "slug"
    slug_attribute_type: str = "uid"

class ContentTypeRule(BaseModel):
    uid: str
    display_name: str | None = None
    plural_name: str | None = None
    tracks_redirects: bool = True

class OpsRules(BaseModel):
    data_dir_required: bool = True
    required_env: list[str] = Field(default_factory=list)

class Rules(BaseModel):
    project: ProjectRules
    redirects: RedirectRules = Field(default_factory=RedirectRules)
    engine: EngineRules = Field(default_factory=EngineRules)
    content_types: list[ContentTypeRule] = Field(default_factory=list)
    ops: OpsRules = Field(default_factory=OpsRules)
