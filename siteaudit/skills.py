"""Agent skill lookup for the analysis pipeline.

Pipeline agents read their system prompt and generation settings from the
database at run time so admins can tune prompts without a deploy.
"""

from siteaudit.db.gateway import SQLGateway
from siteaudit.db.models import AgentSkill

VALID_SLUGS = frozenset(
    {
        "screenshot-analysis",
        "industry-seo",
        "score",
        "creative-modern",
        "creative-classy",
        "creative-unique",
    }
)


class SkillNotFoundError(LookupError):
    """No active skill exists for the requested agent."""

    def __init__(self, agent_slug: str) -> None:
        super().__init__(f"No active skill found for agent: {agent_slug}")
        self.agent_slug = agent_slug


async def get_agent_skill(agent_slug: str, gateway: SQLGateway | None = None) -> AgentSkill:
    """Full active skill record for the given slug."""
    gateway = gateway or SQLGateway()
    skill = await gateway.get_active_skill(agent_slug)
    if skill is None:
        raise SkillNotFoundError(agent_slug)
    return skill


async def get_agent_system_prompt(agent_slug: str, gateway: SQLGateway | None = None) -> str:
    skill = await get_agent_skill(agent_slug, gateway)
    return skill.system_prompt


async def get_all_active_skills(gateway: SQLGateway | None = None) -> list[AgentSkill]:
    """All active skills in one query, ordered by (category, slug)."""
    gateway = gateway or SQLGateway()
    return await gateway.list_active_skills()
