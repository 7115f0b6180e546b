# src/autopilot_desk/journal/models.py
"""Data models for the autopilot journal."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from autopilot_desk.models.trading import AutopilotMode, Direction, Environment


class ExecutionStatus(Enum):
    """Execution outcome of a journaled plan."""

    NOT_EXECUTED = "not_executed"
    EXECUTED = "executed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        """EXECUTED and CANCELLED never change again."""
        return self != ExecutionStatus.NOT_EXECUTED


class JournalSource(Enum):
    """Where a plan came from."""

    VOICE = "voice"
    RISK_PANEL = "risk-panel"
    ROUNDTABLE = "roundtable"
    OTHER = "other"


@dataclass
class AutopilotJournalEntry:
    """A single plan recorded in the autopilot journal.

    ``id`` and ``created_at`` are assigned by the journal. After creation only
    the execution fields change, and the status only moves forward.
    """

    instrument_symbol: str
    direction: Direction
    risk_percent: float
    environment: Environment
    autopilot_mode: AutopilotMode
    plan_summary: str
    allowed: bool
    recommended: bool
    risk_reasons: list[str] = field(default_factory=list)
    risk_warnings: list[str] = field(default_factory=list)
    source: JournalSource = JournalSource.OTHER
    execution_status: ExecutionStatus = ExecutionStatus.NOT_EXECUTED
    execution_price: float | None = None
    close_price: float | None = None
    pnl: float | None = None
    id: str = ""
    created_at: datetime | None = None


@dataclass
class HistoryStats:
    """Aggregate statistics over similar autopilot history.

    Attributes:
        total: Entries considered.
        closed: Executed entries with a known pnl.
        wins: Closed entries with pnl > 0.
        losses: Closed entries with pnl < 0.
        breakeven: Closed entries with pnl == 0.
        win_rate: Wins as a percent of closed entries.
        avg_risk: Mean risk percent over entries that carry a numeric one.
        avg_pnl: Mean pnl over closed entries.
        losing_streak: Consecutive losses, most recent first.
        recent_direction_bias: "long", "short" or None over the last 10 entries.
        entries: The raw history rows, newest first.
    """

    total: int = 0
    closed: int = 0
    wins: int = 0
    losses: int = 0
    breakeven: int = 0
    win_rate: float = 0.0
    avg_risk: float = 0.0
    avg_pnl: float = 0.0
    losing_streak: int = 0
    recent_direction_bias: str | None = None
    entries: list[dict] = field(default_factory=list)
