"""Admin API schemas.

JSON keys are camelCase to match the admin dashboard that consumes them.
"""

from datetime import datetime, timezone
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from siteaudit.db.models import Provider


def _assume_utc(value: datetime) -> datetime:
    # SQLite returns stored UTC timestamps without an offset
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


UTCDateTime = Annotated[datetime, AfterValidator(_assume_utc)]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        protected_namespaces=(),
    )


class ErrorResponse(BaseModel):
    """Error envelope used by every admin endpoint."""

    error: str


class SkillSummary(CamelModel):
    """Listing projection of an agent skill. Never carries the system prompt."""

    agent_slug: str
    agent_name: str
    category: str
    active: bool
    version: int
    updated_at: UTCDateTime


class SkillListResponse(BaseModel):
    skills: list[SkillSummary]


class SkillDetail(SkillSummary):
    """Full skill record for the detail view."""

    id: str
    system_prompt: str
    output_schema: dict[str, Any] | None = None
    model_override: str | None = None
    max_tokens: int
    temperature: float
    last_edited_by: str | None = None
    created_at: UTCDateTime


class PromptLogRecord(CamelModel):
    id: str
    refresh_id: str
    step: str
    provider: Provider
    model: str
    prompt_text: str
    response_text: str
    tokens_used: int | None = None
    response_time_ms: int | None = None
    created_at: UTCDateTime


class PromptLogListResponse(BaseModel):
    logs: list[PromptLogRecord]


class LoginRequest(BaseModel):
    password: Any = None


class LoginResponse(BaseModel):
    ok: bool = True
