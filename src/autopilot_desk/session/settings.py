"""Configuration for the trading session the autopilot starts with."""

from pydantic import BaseModel, Field

from autopilot_desk.models.trading import AutopilotConfig, AutopilotMode, Environment
from autopilot_desk.risk.models import RiskConfig
from autopilot_desk.session.models import Instrument, TradingSessionState


class SessionSettings(BaseModel):
    """Startup session context.

    Attributes:
        symbol: Instrument symbol the desk focuses on.
        display_name: Optional label shown instead of the symbol.
        timeframe: Chart timeframe, used to match similar history.
        environment: "sim" or "live".
        autopilot_mode: Mode requested at startup.
        allow_full_auto_in_live: Permit full autopilot on live accounts.
        require_voice_confirm_for_full_auto: Require voice confirmation for
            full autopilot on live accounts.
    """

    symbol: str = "SPY"
    display_name: str | None = None
    timeframe: str | None = "5m"
    account_id: str | None = None
    environment: Environment = Environment.SIM
    autopilot_mode: AutopilotMode = AutopilotMode.ADVISOR

    allow_full_auto_in_live: bool = False
    require_voice_confirm_for_full_auto: bool = True

    chart_context: str = Field(default="")

    def build_session(self, risk_config: RiskConfig) -> TradingSessionState:
        """Create the session, applying the mode through the live-account gate.

        Raises:
            ModeTransitionError: If the configured mode is not permitted.
        """
        session = TradingSessionState(
            instrument=Instrument(symbol=self.symbol, display_name=self.display_name),
            environment=self.environment,
            risk_config=risk_config,
            autopilot_config=AutopilotConfig(
                allow_full_auto_in_live=self.allow_full_auto_in_live,
                require_voice_confirm_for_full_auto=self.require_voice_confirm_for_full_auto,
            ),
            chart_context=self.chart_context,
            account_id=self.account_id,
            timeframe=self.timeframe,
        )
        session.set_mode(self.autopilot_mode)
        return session
