# src/autopilot_desk/orchestrator/tick_loop.py
"""Armed/idle loop that periodically consults the agents and routes their orders."""

import asyncio
import json
import logging
import math
from datetime import datetime, timedelta
from typing import Any, Callable

from autopilot_desk.agents.insight_service import AgentInsightService
from autopilot_desk.agents.models import (
    APPEND_JOURNAL_ENTRY,
    EXECUTE_ORDER,
    AgentInsight,
    AgentInsightRequest,
    ToolCall,
)
from autopilot_desk.agents.profiles import DEFAULT_ACTIVE_AGENTS
from autopilot_desk.agents.prompts import build_tick_prompt
from autopilot_desk.execution.broker_bridge import BrokerBridge
from autopilot_desk.execution.models import OrderRequest
from autopilot_desk.journal.autopilot_journal import AutopilotJournal
from autopilot_desk.journal.models import AutopilotJournalEntry, ExecutionStatus, JournalSource
from autopilot_desk.models.trading import AutopilotMode, Direction
from autopilot_desk.orchestrator.models import LoopState, TickLogType, TickResult
from autopilot_desk.orchestrator.settings import AutopilotLoopSettings
from autopilot_desk.orchestrator.tick_log import TickLog
from autopilot_desk.risk.models import ProposedTrade
from autopilot_desk.risk.risk_evaluator import DEFAULT_WARNING_RATIO, evaluate_proposed_trade
from autopilot_desk.session.models import TradingSessionState

logger = logging.getLogger(__name__)

SessionProvider = Callable[[], TradingSessionState]


class AutopilotTickLoop:
    """Runs one agent consultation per tick while armed.

    A single runner task owns the schedule: it runs a tick, then sleeps the
    configured interval, so ticks never overlap. Disarming cancels a sleeping
    runner; a tick already in flight is allowed to finish and log its outcome.

    Agent orders are re-checked against the risk rules with the session as it
    is at dispatch time. Only FULL autopilot forwards them to the broker.
    """

    def __init__(
        self,
        insight_service: AgentInsightService,
        journal: AutopilotJournal,
        broker: BrokerBridge,
        session_provider: SessionProvider,
        settings: AutopilotLoopSettings,
        active_agents: dict[str, bool] | None = None,
        mandate: str | None = None,
        warning_ratio: float = DEFAULT_WARNING_RATIO,
    ):
        self._insights = insight_service
        self._journal = journal
        self._broker = broker
        self._session_provider = session_provider
        self._settings = settings
        self._warning_ratio = warning_ratio

        self._active_agents = dict(active_agents if active_agents is not None else DEFAULT_ACTIVE_AGENTS)
        self._mandate = mandate or settings.presets[settings.default_preset]
        self._log = TickLog(settings.log_capacity)

        self._armed = False
        self._dispatch_task: asyncio.Task | None = None
        self._runner: asyncio.Task | None = None
        self._tick_count = 0
        self._next_tick_at: datetime | None = None

    @property
    def state(self) -> LoopState:
        """Return the current loop state."""
        return LoopState.ARMED if self._armed else LoopState.IDLE

    @property
    def is_armed(self) -> bool:
        return self._armed

    @property
    def in_flight(self) -> bool:
        """Return True while an agent dispatch is running."""
        return self._dispatch_task is not None

    @property
    def log(self) -> TickLog:
        return self._log

    @property
    def mandate(self) -> str:
        return self._mandate

    @property
    def active_agents(self) -> dict[str, bool]:
        """Return a copy of the agent on/off map."""
        return dict(self._active_agents)

    @property
    def tick_count(self) -> int:
        """Return the number of ticks that reached the agents."""
        return self._tick_count

    @property
    def next_tick_at(self) -> datetime | None:
        """Return when the next tick is due, or None if none is scheduled."""
        return self._next_tick_at

    # Operator controls

    def set_mandate(self, mandate: str) -> None:
        """Replace the mandate. The next tick uses it.

        Raises:
            ValueError: If the mandate is blank.
        """
        mandate = mandate.strip()
        if not mandate:
            raise ValueError("Mandate cannot be empty")
        self._mandate = mandate
        self._log.append("Operator", f'UPDATED ORDERS: "{mandate}"', TickLogType.SYSTEM)

    def apply_preset(self, name: str) -> str:
        """Switch the mandate to a named preset.

        Returns:
            The preset text now in effect.

        Raises:
            ValueError: If the preset is unknown.
        """
        key = name.upper()
        if key not in self._settings.presets:
            raise ValueError(f"Unknown mandate preset: {name}. Must be one of {sorted(self._settings.presets)}")
        self._mandate = self._settings.presets[key]
        self._log.append("Operator", f"Mode switched to {key}", TickLogType.SYSTEM)
        return self._mandate

    def set_agent(self, agent_id: str, enabled: bool) -> None:
        """Turn one agent on or off for future ticks."""
        self._active_agents[agent_id] = enabled

    def toggle_agent(self, agent_id: str) -> bool:
        """Flip one agent and return its new state."""
        enabled = not self._active_agents.get(agent_id, False)
        self._active_agents[agent_id] = enabled
        return enabled

    # Arm / disarm

    async def arm(self) -> None:
        """Arm the loop and run the first tick right away. Idempotent."""
        if self._armed:
            return

        self._armed = True
        logger.info("Autopilot armed")
        self._log.append("System", "Autopilot Sequence Initiated.", TickLogType.SYSTEM)
        self._log.append("System", f'Mandate: "{self._mandate}"', TickLogType.SYSTEM)

        if self._runner is None or self._runner.done():
            self._runner = asyncio.create_task(self._run())

    def disarm(self) -> None:
        """Disarm the loop. Idempotent.

        A pending tick is cancelled. A dispatch already in flight finishes
        and logs its outcome, but no further tick is scheduled.
        """
        if not self._armed:
            return

        self._armed = False
        self._next_tick_at = None
        logger.info("Autopilot disarmed")
        self._log.append("System", "Autopilot Disengaged.", TickLogType.SYSTEM)
        self._cancel_pending_runner()

    async def toggle(self) -> LoopState:
        """Arm if idle, disarm if armed."""
        if self._armed:
            self.disarm()
        else:
            await self.arm()
        return self.state

    async def stop(self) -> None:
        """Disarm and wait for the runner, including any in-flight tick."""
        runner = self._runner
        self.disarm()
        self._runner = None
        if runner is None:
            return
        try:
            await runner
        except asyncio.CancelledError:
            pass

    async def wait_idle(self) -> None:
        """Wait until the runner exits on its own."""
        if self._runner is not None:
            try:
                await self._runner
            except asyncio.CancelledError:
                pass

    def _cancel_pending_runner(self) -> None:
        """Cancel the runner unless it is the one dispatching or calling."""
        if self._runner is None:
            return
        if self._runner is self._dispatch_task or self._runner is asyncio.current_task():
            return
        self._runner.cancel()
        self._runner = None

    async def _run(self) -> None:
        """Tick, then sleep, while armed."""
        interval = self._settings.tick_interval_seconds
        try:
            while self._armed:
                await self.run_tick()
                if not self._armed:
                    break
                self._next_tick_at = datetime.now() + timedelta(seconds=interval)
                await asyncio.sleep(interval)
        except asyncio.CancelledError:
            logger.debug("Autopilot runner cancelled")

    # Ticks

    async def run_tick(self, session: TradingSessionState | None = None) -> TickResult | None:
        """Run one tick now.

        Args:
            session: Session to use; defaults to the session provider.

        Returns:
            The tick result, or None if a dispatch was already in flight.
        """
        if self._dispatch_task is not None:
            logger.debug("Tick skipped: dispatch already in flight")
            return None

        self._dispatch_task = asyncio.current_task()
        try:
            return await self._tick(session)
        finally:
            self._dispatch_task = None

    async def _tick(self, session: TradingSessionState | None) -> TickResult:
        agent_ids = [agent_id for agent_id, enabled in self._active_agents.items() if enabled]
        if not agent_ids:
            self._log.append("System", "No agents active. Pausing loop.", TickLogType.ERROR)
            logger.warning("No agents active; autopilot stopping")
            self._force_idle()
            return TickResult(stopped=True)

        result = TickResult()
        try:
            session = session or self._session_provider()
            mandate = self._mandate
            self._tick_count += 1
            self._log.append(
                "System",
                f"Ping... Analyzing {session.instrument.label} context...",
                TickLogType.SYSTEM,
            )

            request = AgentInsightRequest(
                agent_ids=agent_ids,
                prompt=build_tick_prompt(session.instrument.label, mandate),
                chart_context=session.chart_context,
                account_id=session.account_id,
                journal_mode="live",
            )
            result.insights = await self._insights.fetch_insights(request)

            for insight in result.insights:
                await self._interpret(insight, session, result)

        except Exception as e:
            logger.error(f"Autopilot tick failed: {e}")
            self._log.append("System", f"Loop Critical Failure: {e}", TickLogType.ERROR)
            result.error = str(e)

        return result

    def _force_idle(self) -> None:
        if not self._armed:
            return
        self._armed = False
        self._next_tick_at = None
        self._cancel_pending_runner()

    async def _interpret(self, insight: AgentInsight, session: TradingSessionState, result: TickResult) -> None:
        """Turn one agent's response into log lines, journal entries and orders."""
        name = insight.agent_name or insight.agent_id

        if insight.error:
            self._log.append(name, insight.error, TickLogType.ERROR)
            return

        if insight.text:
            self._log.append(name, insight.text, TickLogType.THOUGHT)

        for call in insight.tool_calls:
            if call.tool_name == EXECUTE_ORDER:
                await self._handle_execute_order(name, call, session, result)
            elif call.tool_name == APPEND_JOURNAL_ENTRY:
                title = call.args.get("title") or "Untitled"
                self._log.append(name, f"Journaling: {title}", TickLogType.ACTION)
            else:
                self._log.append(name, f"Ignoring unknown tool request: {call.tool_name}", TickLogType.SYSTEM)

    async def _handle_execute_order(
        self,
        name: str,
        call: ToolCall,
        session: TradingSessionState,
        result: TickResult,
    ) -> None:
        args = call.args
        side = str(args.get("side") or "?").upper()
        self._log.append(
            name,
            f"EXECUTING: {side} {args.get('size')} {args.get('symbol')}",
            TickLogType.ACTION,
        )

        # Already executed upstream; report only
        if call.result is not None:
            self._log.append("Broker", f"Order Result: {_format_result(call.result)}", TickLogType.ACTION)
            return

        try:
            order = OrderRequest.from_tool_args(args)
        except ValueError as e:
            logger.warning(f"Rejected malformed order from {name}: {e}")
            self._log.append(name, f"Rejected order request: {e}", TickLogType.ERROR)
            result.orders_blocked += 1
            return

        risk_percent = _order_risk_percent(args, self._settings.default_order_risk_percent)
        direction = Direction.from_side(order.side)
        risk = evaluate_proposed_trade(
            session.risk_config,
            session.risk_runtime,
            ProposedTrade(
                instrument=order.symbol,
                direction=direction,
                risk_percent=risk_percent,
                comment=args.get("comment"),
            ),
            warning_ratio=self._warning_ratio,
            desk_policy=session.desk_policy,
            environment=session.environment,
            autopilot_mode=session.autopilot_mode,
            autopilot_config=session.autopilot_config,
        )

        verdict = "ALLOWED" if risk.allowed else "BLOCKED"
        entry_id = self._journal.add_entry(
            AutopilotJournalEntry(
                instrument_symbol=order.symbol,
                direction=direction,
                risk_percent=risk_percent,
                environment=session.environment,
                autopilot_mode=session.autopilot_mode,
                plan_summary=(
                    f"{name} requested {order.side.upper()} {order.size:g} {order.symbol} "
                    f"at {_format_percent(risk_percent)} risk. Risk verdict: {verdict}."
                ),
                allowed=risk.allowed,
                recommended=True,
                risk_reasons=list(risk.reasons),
                risk_warnings=list(risk.warnings),
                source=JournalSource.OTHER,
            ),
            session,
        )
        result.journal_ids.append(entry_id)

        if not risk.allowed:
            reasons = "; ".join(risk.reasons)
            logger.error(f"Autopilot order blocked by risk rules: {reasons}")
            self._log.append("Risk", f"BLOCKED {order.side.upper()} {order.size:g} {order.symbol}: {reasons}", TickLogType.ERROR)
            result.orders_blocked += 1
            return

        for warning in risk.warnings:
            self._log.append("Risk", f"Warning: {warning}", TickLogType.SYSTEM)

        if session.autopilot_mode != AutopilotMode.FULL:
            logger.info(f"Order held: {session.autopilot_mode.value} mode, operator confirmation required")
            self._log.append(
                "System",
                f"Order held for operator confirmation ({session.autopilot_mode.value} mode).",
                TickLogType.SYSTEM,
            )
            return

        try:
            broker_result = await self._broker.execute_order(order)
        except Exception as e:
            logger.error(f"Broker rejected autopilot order: {e}")
            self._log.append("Broker", f"Order failed: {e}", TickLogType.ERROR)
            self._journal.update_execution(entry_id, ExecutionStatus.CANCELLED, session=session)
            return

        result.orders_routed += 1
        self._log.append("Broker", f"Order Result: {_format_result(broker_result)}", TickLogType.ACTION)
        session.risk_runtime.record_trade()

        price = broker_result.get("filled_avg_price") if isinstance(broker_result, dict) else None
        self._journal.update_execution(
            entry_id,
            ExecutionStatus.EXECUTED,
            execution_price=price,
            session=session,
        )


def _order_risk_percent(args: dict[str, Any], default: float) -> float:
    """Read the order's risk percent; malformed values become NaN so the risk check blocks them."""
    value = args.get("risk_percent", args.get("riskPercent"))
    if value is None:
        return default
    if isinstance(value, bool):
        return math.nan
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def _format_percent(value: float) -> str:
    if isinstance(value, (int, float)) and math.isfinite(value):
        return f"{value:.2f}%"
    return "unknown"


def _format_result(result: Any) -> str:
    if isinstance(result, (dict, list)):
        return json.dumps(result, default=str)
    return str(result)
