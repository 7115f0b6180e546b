"""Data models for risk management."""

from dataclasses import dataclass, field
from enum import Enum

from autopilot_desk.models.trading import Direction


@dataclass
class RiskConfig:
    """Operator-set risk ceilings, all expressed in percent of equity.

    Changes apply to the next evaluation only; past trades are never
    re-checked.

    Attributes:
        max_risk_per_trade_percent: Largest risk a single trade may carry.
        max_daily_loss_percent: Daily loss cap.
        max_weekly_loss_percent: Weekly loss cap.
        max_trades_per_day: Number of trades allowed per day.
    """

    max_risk_per_trade_percent: float = 0.5
    max_daily_loss_percent: float = 3.0
    max_weekly_loss_percent: float = 8.0
    max_trades_per_day: int = 5


@dataclass
class RiskRuntimeState:
    """Budget already consumed in the current day and week.

    Owned by the session. Day and week resets are triggered externally.

    Attributes:
        trades_taken_today: Trades filled today.
        realized_pnl_today_percent: Realized PnL today (losses are negative).
        realized_pnl_week_percent: Realized PnL this week (losses are negative).
    """

    trades_taken_today: int = 0
    realized_pnl_today_percent: float = 0.0
    realized_pnl_week_percent: float = 0.0

    def record_trade(self) -> None:
        """Count one more filled trade for today."""
        self.trades_taken_today += 1

    def record_close(self, pnl_percent: float) -> None:
        """Add realized PnL of a closed trade to the day and week totals."""
        self.realized_pnl_today_percent += pnl_percent
        self.realized_pnl_week_percent += pnl_percent

    def reset_day(self) -> None:
        """Start a new trading day."""
        self.trades_taken_today = 0
        self.realized_pnl_today_percent = 0.0

    def reset_week(self) -> None:
        """Start a new trading week (also starts a new day)."""
        self.reset_day()
        self.realized_pnl_week_percent = 0.0


@dataclass
class ProposedTrade:
    """A trade under consideration. Never persisted on its own."""

    instrument: str
    direction: Direction
    risk_percent: float
    comment: str | None = None
    playbook: str | None = None


@dataclass(frozen=True)
class RiskCheckResult:
    """Result of a risk check for a proposed trade.

    Attributes:
        allowed: False when any hard block applies.
        reasons: Hard block explanations.
        warnings: Non-blocking, near-threshold flags.
        projected_daily_loss_percent: Daily PnL if the trade stops out.
        projected_weekly_loss_percent: Weekly PnL if the trade stops out.
    """

    allowed: bool
    reasons: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    projected_daily_loss_percent: float = 0.0
    projected_weekly_loss_percent: float = 0.0


class PolicyMode(Enum):
    """Whether desk policy violations block or only warn."""

    ENFORCED = "enforced"
    ADVISORY = "advisory"


@dataclass
class DeskPolicy:
    """Optional daily overlay on top of the risk config.

    Attributes:
        mode: ENFORCED turns violations into hard blocks, ADVISORY into warnings.
        max_risk_per_trade: Tighter per-trade cap for today, in percent.
        allowed_playbooks: Playbook names allowed today. Empty means any,
            "*" also means any.
    """

    mode: PolicyMode = PolicyMode.ENFORCED
    max_risk_per_trade: float | None = None
    allowed_playbooks: list[str] = field(default_factory=list)
