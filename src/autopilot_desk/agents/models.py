# src/autopilot_desk/agents/models.py
"""Data models exchanged with the agent insight service."""
from dataclasses import dataclass, field
from typing import Any

EXECUTE_ORDER = "execute_order"
APPEND_JOURNAL_ENTRY = "append_journal_entry"


@dataclass
class ToolCall:
    """A structured action requested by an agent.

    Attributes:
        tool_name: Name of the requested tool.
        args: Arguments supplied by the agent.
        result: Upstream result when the tool already ran elsewhere.
    """

    tool_name: str
    args: dict[str, Any] = field(default_factory=dict)
    result: Any = None


@dataclass
class AgentInsight:
    """One agent's reply to a dispatch."""

    agent_id: str
    agent_name: str
    text: str | None = None
    tool_calls: list[ToolCall] = field(default_factory=list)
    error: str | None = None


@dataclass
class AgentInsightRequest:
    """A dispatch to one or more agents.

    Attributes:
        agent_ids: Agents that should answer.
        prompt: User-turn text, including the mandate and instrument.
        chart_context: Free-text chart/market context for the session.
        account_id: Broker account the session is bound to.
        journal_mode: "live" for autopilot ticks, "plan" for advisory calls.
    """

    agent_ids: list[str]
    prompt: str
    chart_context: str = ""
    account_id: str | None = None
    journal_mode: str = "live"


@dataclass(frozen=True)
class AgentProfile:
    """Static description of an agent persona."""

    agent_id: str
    name: str
    persona: str
    temperature: float = 0.5
    tools: tuple[str, ...] = ()
