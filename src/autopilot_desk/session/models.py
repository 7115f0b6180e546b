# src/autopilot_desk/session/models.py
"""Data models for the trading session that the autopilot reads from."""
from dataclasses import dataclass, field

from autopilot_desk.models.trading import AutopilotConfig, AutopilotMode, Environment
from autopilot_desk.risk.models import DeskPolicy, RiskConfig, RiskRuntimeState


class ModeTransitionError(ValueError):
    """Raised when the requested autopilot mode is not permitted."""


@dataclass
class Instrument:
    """Instrument the session is focused on."""

    symbol: str
    display_name: str | None = None

    @property
    def label(self) -> str:
        """Return the label shown to the operator."""
        return self.display_name or self.symbol


@dataclass
class TradingSessionState:
    """Explicit session context handed to the planner and each tick.

    The risk runtime counters are owned by the session. The autopilot only
    reads them, plus a single ``record_trade`` call after a broker fill.
    """

    instrument: Instrument
    environment: Environment = Environment.SIM
    autopilot_mode: AutopilotMode = AutopilotMode.OFF
    risk_config: RiskConfig = field(default_factory=RiskConfig)
    risk_runtime: RiskRuntimeState = field(default_factory=RiskRuntimeState)
    autopilot_config: AutopilotConfig = field(default_factory=AutopilotConfig)
    desk_policy: DeskPolicy | None = None
    chart_context: str = ""
    account_id: str | None = None
    timeframe: str | None = None

    def set_mode(self, mode: AutopilotMode, voice_confirmed: bool = False) -> None:
        """Switch autopilot mode after checking the live-account policy.

        Args:
            mode: The requested mode.
            voice_confirmed: Whether the operator confirmed by voice.

        Raises:
            ModeTransitionError: If the transition is not permitted.
        """
        reason = mode_transition_block_reason(
            self.environment, mode, self.autopilot_config, voice_confirmed
        )
        if reason is not None:
            raise ModeTransitionError(reason)
        self.autopilot_mode = mode


def mode_transition_block_reason(
    environment: Environment,
    target: AutopilotMode,
    config: AutopilotConfig,
    voice_confirmed: bool = False,
) -> str | None:
    """Return why a mode switch is refused, or None if it is allowed.

    Only FULL mode on a LIVE account is restricted.
    """
    if environment != Environment.LIVE or target != AutopilotMode.FULL:
        return None

    if not config.allow_full_auto_in_live:
        return "Full Autopilot is disabled for live accounts in your configuration."

    if config.require_voice_confirm_for_full_auto and not voice_confirmed:
        return "Full Autopilot on a live account requires voice confirmation."

    return None
