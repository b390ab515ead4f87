"""Prompt log creation for AI provider calls.

Every Claude or OpenAI call made during a refresh must produce exactly one
PromptLog row; ``create_prompt_log`` is the call site for that.
"""

from pydantic import BaseModel, Field

from siteaudit.db.gateway import PersistenceGateway, SQLGateway
from siteaudit.db.models import Provider
from siteaudit.logging import get_logger
from siteaudit.metrics import record_prompt_log

logger = get_logger(__name__)


class PromptLogParams(BaseModel):
    """One AI provider call to be recorded."""

    refresh_id: str = Field(..., min_length=1)
    step: str
    provider: Provider
    model: str
    prompt_text: str
    response_text: str
    tokens_used: int | None = Field(default=None, ge=0)
    response_time_ms: int | None = Field(default=None, ge=0)


async def create_prompt_log(
    params: PromptLogParams,
    gateway: PersistenceGateway | None = None,
) -> None:
    """Insert one prompt log row.

    Missing token counts and latencies are written as explicit NULLs.
    Gateway errors propagate to the caller.
    """
    gateway = gateway or SQLGateway()
    await gateway.create_prompt_log(
        {
            "refresh_id": params.refresh_id,
            "step": params.step,
            "provider": params.provider,
            "model": params.model,
            "prompt_text": params.prompt_text,
            "response_text": params.response_text,
            "tokens_used": params.tokens_used,
            "response_time_ms": params.response_time_ms,
        }
    )
    record_prompt_log(params.provider.value, params.step)
    logger.info(
        "prompt_log_recorded",
        refresh_id=params.refresh_id,
        step=params.step,
        provider=params.provider.value,
        model=params.model,
        tokens_used=params.tokens_used,
        response_time_ms=params.response_time_ms,
    )
