"""Risk rule evaluation for proposed trades.

Everything in this module is a pure function of its arguments: no I/O, no
module state, and identical inputs always produce equal results. The planner
and the tick loop both call it right before they act, so the verdict is never
taken from a stale copy.
"""

import math

from autopilot_desk.models.trading import AutopilotConfig, AutopilotMode, Environment
from autopilot_desk.risk.models import (
    DeskPolicy,
    PolicyMode,
    ProposedTrade,
    RiskCheckResult,
    RiskConfig,
    RiskRuntimeState,
)

DEFAULT_WARNING_RATIO = 0.7


def _is_number(value: object) -> bool:
    """Return True for finite int/float values (bools excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _valid_limit(name: str, value: object, reasons: list[str]) -> bool:
    """Check that a configured limit is a finite, non-negative number."""
    if not _is_number(value) or value < 0:
        reasons.append(f"Risk limit '{name}' is not a valid number (got {value!r}).")
        return False
    return True


def _runtime_value(name: str, value: object, reasons: list[str]) -> float:
    """Return a finite runtime counter, or 0.0 after recording a block."""
    if not _is_number(value):
        reasons.append(f"Runtime value '{name}' is not a valid number (got {value!r}).")
        return 0.0
    return float(value)


def evaluate_proposed_trade(
    config: RiskConfig,
    runtime: RiskRuntimeState,
    trade: ProposedTrade,
    *,
    warning_ratio: float = DEFAULT_WARNING_RATIO,
    desk_policy: DeskPolicy | None = None,
    environment: Environment | None = None,
    autopilot_mode: AutopilotMode | None = None,
    autopilot_config: AutopilotConfig | None = None,
) -> RiskCheckResult:
    """Evaluate a proposed trade against risk limits and consumed budget.

    Checks performed:
    1. Risk percent must be a finite number > 0
    2. Per-trade risk cap
    3. Daily loss cap, assuming the trade stops out
    4. Weekly loss cap, assuming the trade stops out
    5. Daily trade count
    6. Optional desk policy (per-trade cap, allowed playbooks)
    7. Full autopilot on a live account, when the context is supplied

    Every limit also produces a warning once the value passes
    ``warning_ratio`` of the limit, so a warning always shows up before the
    corresponding block.

    Args:
        config: Risk ceilings in effect.
        runtime: Budget already consumed today and this week.
        trade: The trade under consideration.
        warning_ratio: Fraction of a limit that triggers a warning.
        desk_policy: Optional daily policy overlay.
        environment: Account environment, for the live/full gate.
        autopilot_mode: Current autopilot mode, for the live/full gate.
        autopilot_config: Live-account autopilot policy.

    Returns:
        RiskCheckResult with the verdict, reasons, warnings and projections.
    """
    reasons: list[str] = []
    warnings: list[str] = []

    risk = trade.risk_percent
    risk_valid = _is_number(risk) and risk > 0
    if not risk_valid:
        reasons.append(f"Proposed trade has no valid risk percent > 0 (got {risk!r}).")
    effective_risk = float(risk) if risk_valid else 0.0

    realized_today = _runtime_value(
        "realized_pnl_today_percent", runtime.realized_pnl_today_percent, reasons
    )
    realized_week = _runtime_value(
        "realized_pnl_week_percent", runtime.realized_pnl_week_percent, reasons
    )

    projected_daily = realized_today - effective_risk
    projected_weekly = realized_week - effective_risk
    daily_loss = max(0.0, -projected_daily)
    weekly_loss = max(0.0, -projected_weekly)

    # Per-trade cap
    max_risk = config.max_risk_per_trade_percent
    if risk_valid and _valid_limit("max_risk_per_trade_percent", max_risk, reasons):
        if effective_risk > max_risk:
            reasons.append(
                f"Trade risk ({effective_risk:.2f}%) exceeds max per-trade risk ({max_risk:.2f}%)."
            )
        elif effective_risk > max_risk * warning_ratio:
            warnings.append(
                f"Trade risk ({effective_risk:.2f}%) is close to your max per-trade risk ({max_risk:.2f}%)."
            )

    # Daily loss cap
    max_daily = config.max_daily_loss_percent
    if _valid_limit("max_daily_loss_percent", max_daily, reasons):
        if daily_loss > max_daily:
            reasons.append(
                f"This trade could push your daily loss to {daily_loss:.2f}%, beyond the daily cap ({max_daily:.2f}%)."
            )
        elif daily_loss > max_daily * warning_ratio:
            warnings.append(
                f"Projected daily loss ({daily_loss:.2f}%) is close to the daily cap ({max_daily:.2f}%)."
            )

    # Weekly loss cap
    max_weekly = config.max_weekly_loss_percent
    if _valid_limit("max_weekly_loss_percent", max_weekly, reasons):
        if weekly_loss > max_weekly:
            reasons.append(
                f"This trade could push your weekly loss to {weekly_loss:.2f}%, beyond the weekly cap ({max_weekly:.2f}%)."
            )
        elif weekly_loss > max_weekly * warning_ratio:
            warnings.append(
                f"Projected weekly loss ({weekly_loss:.2f}%) is close to the weekly cap ({max_weekly:.2f}%)."
            )

    # Trade count
    max_trades = config.max_trades_per_day
    taken = runtime.trades_taken_today
    if not _is_number(taken) or taken < 0:
        reasons.append(f"Runtime value 'trades_taken_today' is not a valid count (got {taken!r}).")
    elif _valid_limit("max_trades_per_day", max_trades, reasons):
        if taken >= max_trades:
            reasons.append(f"Max trades per day reached ({taken} of {max_trades} taken).")
        elif taken + 1 > max_trades * warning_ratio:
            warnings.append(
                f"This would be trade {taken + 1} of {max_trades} allowed today."
            )

    if desk_policy is not None:
        _apply_desk_policy(desk_policy, trade, effective_risk, risk_valid, reasons, warnings)

    if environment == Environment.LIVE and autopilot_mode == AutopilotMode.FULL:
        live_config = autopilot_config or AutopilotConfig()
        if not live_config.allow_full_auto_in_live:
            reasons.append(
                "Full Autopilot is disabled for live accounts in your configuration."
            )

    return RiskCheckResult(
        allowed=not reasons,
        reasons=reasons,
        warnings=warnings,
        projected_daily_loss_percent=projected_daily,
        projected_weekly_loss_percent=projected_weekly,
    )


def _apply_desk_policy(
    policy: DeskPolicy,
    trade: ProposedTrade,
    risk: float,
    risk_valid: bool,
    reasons: list[str],
    warnings: list[str],
) -> None:
    """Add desk policy violations as reasons (enforced) or warnings (advisory)."""
    target = reasons if policy.mode == PolicyMode.ENFORCED else warnings

    cap = policy.max_risk_per_trade
    if cap is not None and risk_valid and risk > cap:
        target.append(f"Trade risk ({risk:.2f}%) exceeds desk policy limit ({cap:.2f}%).")

    playbooks = policy.allowed_playbooks
    if playbooks and "*" not in playbooks:
        name = trade.playbook or trade.comment
        if not name or not any(p.lower() in name.lower() for p in playbooks):
            target.append(
                f"Playbook '{name}' is not in today's allowed list: [{', '.join(playbooks)}]."
            )
