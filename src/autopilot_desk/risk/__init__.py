"""Risk rule evaluation for the autopilot."""

from autopilot_desk.risk.models import (
    DeskPolicy,
    PolicyMode,
    ProposedTrade,
    RiskCheckResult,
    RiskConfig,
    RiskRuntimeState,
)
from autopilot_desk.risk.risk_evaluator import evaluate_proposed_trade
from autopilot_desk.risk.settings import RiskSettings

__all__ = [
    "DeskPolicy",
    "PolicyMode",
    "ProposedTrade",
    "RiskCheckResult",
    "RiskConfig",
    "RiskRuntimeState",
    "RiskSettings",
    "evaluate_proposed_trade",
]
