"""Data models for the autopilot tick loop."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from autopilot_desk.agents.models import AgentInsight


class LoopState(Enum):
    """Whether the autopilot loop is armed."""

    IDLE = "idle"
    ARMED = "armed"


class TickLogType(Enum):
    """Kind of tick log line."""

    THOUGHT = "thought"
    ACTION = "action"
    ERROR = "error"
    SYSTEM = "system"


@dataclass(frozen=True)
class TickLogEntry:
    """One line of the autopilot's running log."""

    id: str
    timestamp: datetime
    agent_id: str
    message: str
    type: TickLogType


@dataclass
class TickResult:
    """Outcome of a single tick."""

    stopped: bool = False
    insights: list[AgentInsight] = field(default_factory=list)
    journal_ids: list[str] = field(default_factory=list)
    orders_routed: int = 0
    orders_blocked: int = 0
    error: str | None = None
