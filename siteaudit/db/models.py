"""Database models for the site audit service.

- AgentSkill: editable system prompt and generation settings per pipeline agent
- PromptLog: one immutable audit row per external AI provider call
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from sqlalchemy import DateTime
from sqlmodel import JSON, Column, Field, SQLModel


def utc_now() -> datetime:
    """Get current UTC time."""
    return datetime.now(timezone.utc)


def generate_uuid() -> str:
    """Generate a new UUID string."""
    return str(uuid4())


class Provider(str, Enum):
    """AI providers whose calls are audited."""

    CLAUDE = "claude"
    OPENAI = "openai"


class AgentSkill(SQLModel, table=True):
    """System prompt and model settings for one pipeline agent.

    The listing surface only ever reads a projection without system_prompt.
    """

    __tablename__ = "agent_skills"
    __table_args__ = {"extend_existing": True}

    id: str = Field(default_factory=generate_uuid, primary_key=True)
    agent_slug: str = Field(unique=True, index=True)
    agent_name: str
    category: str = Field(index=True)
    system_prompt: str
    output_schema: dict[str, Any] | None = Field(default=None, sa_column=Column(JSON))
    model_override: str | None = Field(default=None)
    max_tokens: int = Field(default=4096)
    temperature: float = Field(default=0.2)
    active: bool = Field(default=True)
    version: int = Field(default=1)
    last_edited_by: str | None = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={"onupdate": utc_now},
    )


class PromptLog(SQLModel, table=True):
    """Record of a single AI provider call within a refresh session."""

    __tablename__ = "prompt_logs"
    __table_args__ = {"extend_existing": True}

    id: str = Field(default_factory=generate_uuid, primary_key=True)
    refresh_id: str = Field(index=True)
    step: str
    provider: Provider
    model: str
    prompt_text: str
    response_text: str
    tokens_used: int | None = Field(default=None)
    response_time_ms: int | None = Field(default=None)
    created_at: datetime = Field(
        default_factory=utc_now,
        index=True,
        sa_type=DateTime(timezone=True),
    )
