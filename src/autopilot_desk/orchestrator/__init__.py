"""Autopilot tick loop."""

from .models import LoopState, TickLogEntry, TickLogType, TickResult
from .settings import MANDATE_PRESETS, AutopilotLoopSettings
from .tick_log import TickLog
from .tick_loop import AutopilotTickLoop

__all__ = [
    "AutopilotLoopSettings",
    "AutopilotTickLoop",
    "LoopState",
    "MANDATE_PRESETS",
    "TickLog",
    "TickLogEntry",
    "TickLogType",
    "TickResult",
]
