"""Agent personas and the insight service the autopilot dispatches to."""

from .insight_service import AgentInsightService, ClaudeInsightService
from .models import (
    APPEND_JOURNAL_ENTRY,
    EXECUTE_ORDER,
    AgentInsight,
    AgentInsightRequest,
    AgentProfile,
    ToolCall,
)
from .profiles import AGENT_PROFILES, DEFAULT_ACTIVE_AGENTS, EXECUTION_BOT_ID, get_profile
from .settings import AgentSettings

__all__ = [
    "AGENT_PROFILES",
    "APPEND_JOURNAL_ENTRY",
    "AgentInsight",
    "AgentInsightRequest",
    "AgentInsightService",
    "AgentProfile",
    "AgentSettings",
    "ClaudeInsightService",
    "DEFAULT_ACTIVE_AGENTS",
    "EXECUTE_ORDER",
    "EXECUTION_BOT_ID",
    "ToolCall",
    "get_profile",
]
