"""Database module for site audit persistence."""

from siteaudit.db.engine import get_session, init_db
from siteaudit.db.gateway import PersistenceGateway, SQLGateway, get_gateway, get_sql_gateway
from siteaudit.db.models import AgentSkill, PromptLog, Provider

__all__ = [
    "get_session",
    "init_db",
    "get_gateway",
    "get_sql_gateway",
    "PersistenceGateway",
    "SQLGateway",
    "AgentSkill",
    "PromptLog",
    "Provider",
]
