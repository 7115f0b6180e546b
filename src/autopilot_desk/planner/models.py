# src/autopilot_desk/planner/models.py
"""Data models for the autopilot planner."""
from dataclasses import dataclass, field

from autopilot_desk.models.trading import Direction


@dataclass
class AutopilotPlanRequest:
    """What the operator (or a voice/roundtable source) wants to do."""

    direction: Direction
    risk_percent: float
    notes: str | None = None
    playbook: str | None = None


@dataclass(frozen=True)
class AutopilotPlanResponse:
    """Outcome of one planning call.

    ``allowed`` is the hard risk verdict. ``recommended`` is the Execution
    Bot's advisory opinion. They are independent: a trade may be recommended
    yet blocked, or allowed yet not advisable.
    """

    allowed: bool
    recommended: bool
    plan_summary: str
    risk_reasons: list[str] = field(default_factory=list)
    risk_warnings: list[str] = field(default_factory=list)
