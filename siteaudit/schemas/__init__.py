"""Request and response schemas for the HTTP API."""

from siteaudit.schemas.admin import (
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    PromptLogListResponse,
    PromptLogRecord,
    SkillDetail,
    SkillListResponse,
    SkillSummary,
)

__all__ = [
    "ErrorResponse",
    "LoginRequest",
    "LoginResponse",
    "PromptLogListResponse",
    "PromptLogRecord",
    "SkillDetail",
    "SkillListResponse",
    "SkillSummary",
]
