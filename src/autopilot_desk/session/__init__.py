"""Trading session context consumed by the autopilot."""

from autopilot_desk.models.trading import AutopilotConfig, AutopilotMode, Environment

from .models import (
    Instrument,
    ModeTransitionError,
    TradingSessionState,
    mode_transition_block_reason,
)
from .settings import SessionSettings

__all__ = [
    "AutopilotConfig",
    "AutopilotMode",
    "Environment",
    "Instrument",
    "ModeTransitionError",
    "SessionSettings",
    "TradingSessionState",
    "mode_transition_block_reason",
]
