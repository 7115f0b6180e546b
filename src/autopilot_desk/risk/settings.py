"""Configuration for risk rule evaluation."""

from pydantic import BaseModel, Field

from autopilot_desk.risk.models import RiskConfig


class RiskSettings(BaseModel):
    """Default risk ceilings and the warning margin.

    Attributes:
        max_risk_per_trade_percent: Default per-trade cap.
        max_daily_loss_percent: Default daily loss cap.
        max_weekly_loss_percent: Default weekly loss cap.
        max_trades_per_day: Default daily trade count.
        warning_ratio: Fraction of a limit above which a warning is raised.
    """

    max_risk_per_trade_percent: float = Field(default=0.5, gt=0, le=100)
    max_daily_loss_percent: float = Field(default=3.0, gt=0, le=100)
    max_weekly_loss_percent: float = Field(default=8.0, gt=0, le=100)
    max_trades_per_day: int = Field(default=5, ge=0)
    warning_ratio: float = Field(default=0.7, gt=0.0, lt=1.0)

    def to_risk_config(self) -> RiskConfig:
        """Build the runtime RiskConfig from these defaults."""
        return RiskConfig(
            max_risk_per_trade_percent=self.max_risk_per_trade_percent,
            max_daily_loss_percent=self.max_daily_loss_percent,
            max_weekly_loss_percent=self.max_weekly_loss_percent,
            max_trades_per_day=self.max_trades_per_day,
        )
