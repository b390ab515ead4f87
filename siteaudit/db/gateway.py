"""Persistence gateway used by the admin API and the prompt logger.

The abstract gateway carries exactly the two operations the request path
needs: an ordered skill projection and a single prompt-log insert.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any

from sqlmodel import select

from siteaudit.db.engine import get_session
from siteaudit.db.models import AgentSkill, PromptLog

# Columns exposed by the skill listing; system_prompt is never among them
SKILL_LISTING_COLUMNS = (
    AgentSkill.agent_slug,
    AgentSkill.agent_name,
    AgentSkill.category,
    AgentSkill.active,
    AgentSkill.version,
    AgentSkill.updated_at,
)


class PersistenceGateway(ABC):
    """Narrow data-access interface over skills and prompt logs."""

    @abstractmethod
    async def list_skills(self) -> Sequence[Mapping[str, Any]]:
        """Return every skill's listing projection ordered by (category, slug)."""

    @abstractmethod
    async def create_prompt_log(self, data: Mapping[str, Any]) -> None:
        """Insert one prompt log row."""


class SQLGateway(PersistenceGateway):
    """Gateway backed by the SQLModel async session."""

    async def list_skills(self) -> list[dict[str, Any]]:
        query = select(*SKILL_LISTING_COLUMNS).order_by(
            AgentSkill.category.asc(),
            AgentSkill.agent_slug.asc(),
        )
        async with get_session() as session:
            result = await session.execute(query)
            return [dict(row) for row in result.mappings().all()]

    async def create_prompt_log(self, data: Mapping[str, Any]) -> None:
        async with get_session() as session:
            session.add(PromptLog.model_validate(dict(data)))

    async def get_skill(self, agent_slug: str) -> AgentSkill | None:
        """Full skill record, including the system prompt."""
        async with get_session() as session:
            result = await session.execute(
                select(AgentSkill).where(AgentSkill.agent_slug == agent_slug)
            )
            return result.scalar_one_or_none()

    async def get_active_skill(self, agent_slug: str) -> AgentSkill | None:
        async with get_session() as session:
            result = await session.execute(
                select(AgentSkill).where(
                    AgentSkill.agent_slug == agent_slug,
                    AgentSkill.active == True,  # noqa: E712
                )
            )
            return result.scalars().first()

    async def list_active_skills(self) -> list[AgentSkill]:
        async with get_session() as session:
            result = await session.execute(
                select(AgentSkill)
                .where(AgentSkill.active == True)  # noqa: E712
                .order_by(AgentSkill.category.asc(), AgentSkill.agent_slug.asc())
            )
            return list(result.scalars().all())

    async def list_prompt_logs(self, refresh_id: str) -> list[PromptLog]:
        """Prompt logs of one refresh session, oldest first."""
        async with get_session() as session:
            result = await session.execute(
                select(PromptLog)
                .where(PromptLog.refresh_id == refresh_id)
                .order_by(PromptLog.created_at.asc())
            )
            return list(result.scalars().all())


def get_gateway() -> PersistenceGateway:
    """FastAPI dependency returning the default gateway."""
    return SQLGateway()


def get_sql_gateway() -> SQLGateway:
    """FastAPI dependency for handlers that need the SQL-only reads."""
    return SQLGateway()
