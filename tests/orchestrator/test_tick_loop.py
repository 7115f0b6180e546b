# tests/orchestrator/test_tick_loop.py
"""Tests for AutopilotTickLoop."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from autopilot_desk.agents.models import APPEND_JOURNAL_ENTRY, EXECUTE_ORDER, AgentInsight, ToolCall
from autopilot_desk.journal.autopilot_journal import AutopilotJournal
from autopilot_desk.journal.models import ExecutionStatus, JournalSource
from autopilot_desk.models.trading import AutopilotMode, Direction, Environment
from autopilot_desk.orchestrator.models import LoopState, TickLogType
from autopilot_desk.orchestrator.settings import MANDATE_PRESETS, AutopilotLoopSettings
from autopilot_desk.orchestrator.tick_loop import AutopilotTickLoop
from autopilot_desk.risk.models import RiskConfig, RiskRuntimeState
from autopilot_desk.session.models import Instrument, TradingSessionState


def make_session(
    mode: AutopilotMode = AutopilotMode.FULL,
    risk_config: RiskConfig | None = None,
    runtime: RiskRuntimeState | None = None,
) -> TradingSessionState:
    """Create a test session."""
    return TradingSessionState(
        instrument=Instrument(symbol="SPY"),
        environment=Environment.SIM,
        autopilot_mode=mode,
        risk_config=risk_config or RiskConfig(),
        risk_runtime=runtime or RiskRuntimeState(),
        chart_context="Price 502.3, VWAP 501.9",
        account_id="acct-1",
    )


def make_order_call(symbol: str = "SPY", side: str = "buy", size=10, **extra) -> ToolCall:
    return ToolCall(tool_name=EXECUTE_ORDER, args={"symbol": symbol, "side": side, "size": size, **extra})


def make_bot_insight(*tool_calls: ToolCall, text: str | None = None) -> AgentInsight:
    return AgentInsight(
        agent_id="quant_bot",
        agent_name="Execution Bot",
        text=text,
        tool_calls=list(tool_calls),
    )


def make_insight_service(*insights: AgentInsight) -> MagicMock:
    service = MagicMock()
    service.fetch_insights = AsyncMock(return_value=list(insights))
    return service


def make_broker(result: dict | None = None) -> MagicMock:
    broker = MagicMock()
    broker.execute_order = AsyncMock(
        return_value=result or {"id": "order-1", "status": "filled", "filled_avg_price": 502.15}
    )
    return broker


def make_loop(
    service: MagicMock,
    session: TradingSessionState | None = None,
    broker: MagicMock | None = None,
    journal: AutopilotJournal | None = None,
    active_agents: dict[str, bool] | None = None,
    **settings,
) -> AutopilotTickLoop:
    session = session or make_session()
    settings.setdefault("tick_interval_seconds", 60)
    return AutopilotTickLoop(
        insight_service=service,
        journal=journal or AutopilotJournal(),
        broker=broker or make_broker(),
        session_provider=lambda: session,
        settings=AutopilotLoopSettings(**settings),
        active_agents=active_agents if active_agents is not None else {"quant_bot": True},
    )


def messages(loop: AutopilotTickLoop, type: TickLogType | None = None) -> list[str]:
    return [e.message for e in loop.log.entries if type is None or e.type == type]


class TestRunTick:
    """Tests for a single tick."""

    @pytest.mark.asyncio
    async def test_dispatches_mandate_prompt_to_active_agents(self):
        service = make_insight_service(make_bot_insight(text="HOLDing. Waiting for a VWAP reclaim."))
        loop = AutopilotTickLoop(
            insight_service=service,
            journal=AutopilotJournal(),
            broker=make_broker(),
            session_provider=make_session,
            settings=AutopilotLoopSettings(),
        )

        result = await loop.run_tick()

        request = service.fetch_insights.call_args.args[0]
        assert request.agent_ids == ["trend_master", "pattern_gpt", "quant_bot"]
        assert MANDATE_PRESETS["SCALP"] in request.prompt
        assert "TARGET ASSET: SPY" in request.prompt
        assert request.chart_context == "Price 502.3, VWAP 501.9"
        assert request.account_id == "acct-1"
        assert request.journal_mode == "live"
        assert loop.tick_count == 1
        assert result.error is None

    @pytest.mark.asyncio
    async def test_logs_ping_and_thought(self):
        loop = make_loop(make_insight_service(make_bot_insight(text="HOLDing.")))

        await loop.run_tick()

        assert messages(loop, TickLogType.SYSTEM) == ["Ping... Analyzing SPY context..."]
        thoughts = [e for e in loop.log.entries if e.type == TickLogType.THOUGHT]
        assert len(thoughts) == 1
        assert thoughts[0].agent_id == "Execution Bot"
        assert thoughts[0].message == "HOLDing."

    @pytest.mark.asyncio
    async def test_agent_error_logged_as_error(self):
        insight = AgentInsight(agent_id="trend_master", agent_name="TrendMaster AI", error="overloaded")
        loop = make_loop(make_insight_service(insight))

        await loop.run_tick()

        assert messages(loop, TickLogType.ERROR) == ["overloaded"]

    @pytest.mark.asyncio
    async def test_dispatch_failure_is_caught(self):
        """A failing dispatch is logged and the loop stays armed."""
        service = MagicMock()
        service.fetch_insights = AsyncMock(side_effect=ConnectionError("gateway timeout"))
        loop = make_loop(service)
        await loop.arm()

        result = await loop.run_tick()

        assert result.error == "gateway timeout"
        assert "Loop Critical Failure: gateway timeout" in messages(loop, TickLogType.ERROR)
        assert loop.is_armed is True
        await loop.stop()

    @pytest.mark.asyncio
    async def test_session_provider_read_every_tick(self):
        sessions = [make_session(), make_session()]
        sessions[1].instrument = Instrument(symbol="QQQ")
        provider = MagicMock(side_effect=sessions)
        service = make_insight_service()
        loop = AutopilotTickLoop(
            insight_service=service,
            journal=AutopilotJournal(),
            broker=make_broker(),
            session_provider=provider,
            settings=AutopilotLoopSettings(),
        )

        await loop.run_tick()
        await loop.run_tick()

        assert provider.call_count == 2
        assert "TARGET ASSET: QQQ" in service.fetch_insights.call_args.args[0].prompt

    @pytest.mark.asyncio
    async def test_concurrent_tick_is_rejected(self):
        release = asyncio.Event()
        started = asyncio.Event()

        async def slow_fetch(request):
            started.set()
            await release.wait()
            return []

        service = MagicMock()
        service.fetch_insights = slow_fetch
        loop = make_loop(service)

        first = asyncio.create_task(loop.run_tick())
        await asyncio.wait_for(started.wait(), timeout=1)

        assert loop.in_flight is True
        assert await loop.run_tick() is None

        release.set()
        assert (await first) is not None
        assert loop.in_flight is False
        assert loop.tick_count == 1


class TestToolCalls:
    """Tests for interpreting agent tool requests."""

    @pytest.mark.asyncio
    async def test_full_mode_routes_allowed_order(self):
        session = make_session(mode=AutopilotMode.FULL)
        broker = make_broker()
        journal = AutopilotJournal()
        loop = make_loop(make_insight_service(make_bot_insight(make_order_call())), session, broker, journal)

        result = await loop.run_tick()

        order = broker.execute_order.call_args.args[0]
        assert (order.symbol, order.side, order.size) == ("SPY", "buy", 10.0)
        assert result.orders_routed == 1
        assert session.risk_runtime.trades_taken_today == 1

        assert "EXECUTING: BUY 10 SPY" in messages(loop, TickLogType.ACTION)
        assert any(m.startswith("Order Result: ") and "order-1" in m for m in messages(loop, TickLogType.ACTION))

        entry = journal.entries[0]
        assert entry.allowed is True
        assert entry.recommended is True
        assert entry.direction == Direction.LONG
        assert entry.risk_percent == 0.25
        assert entry.source == JournalSource.OTHER
        assert entry.execution_status == ExecutionStatus.EXECUTED
        assert entry.execution_price == 502.15

    @pytest.mark.parametrize("mode", [AutopilotMode.ADVISOR, AutopilotMode.SEMI, AutopilotMode.OFF])
    @pytest.mark.asyncio
    async def test_non_full_modes_hold_order(self, mode):
        session = make_session(mode=mode)
        broker = make_broker()
        journal = AutopilotJournal()
        loop = make_loop(make_insight_service(make_bot_insight(make_order_call(side="sell"))), session, broker, journal)

        await loop.run_tick()

        broker.execute_order.assert_not_awaited()
        assert journal.entries[0].allowed is True
        assert journal.entries[0].direction == Direction.SHORT
        assert journal.entries[0].execution_status == ExecutionStatus.NOT_EXECUTED
        assert any("operator confirmation" in m for m in messages(loop, TickLogType.SYSTEM))
        assert session.risk_runtime.trades_taken_today == 0

    @pytest.mark.asyncio
    async def test_blocked_order_is_journaled_not_routed(self):
        session = make_session(runtime=RiskRuntimeState(trades_taken_today=5))
        broker = make_broker()
        journal = AutopilotJournal()
        loop = make_loop(make_insight_service(make_bot_insight(make_order_call())), session, broker, journal)

        result = await loop.run_tick()

        broker.execute_order.assert_not_awaited()
        assert result.orders_blocked == 1
        entry = journal.entries[0]
        assert entry.allowed is False
        assert entry.execution_status == ExecutionStatus.NOT_EXECUTED
        assert any("Max trades per day reached" in r for r in entry.risk_reasons)
        assert any(m.startswith("BLOCKED BUY 10 SPY") for m in messages(loop, TickLogType.ERROR))

    @pytest.mark.asyncio
    async def test_revalidation_sees_fills_from_same_tick(self):
        """The second order is checked against the count after the first fill."""
        session = make_session(risk_config=RiskConfig(max_trades_per_day=1))
        broker = make_broker()
        journal = AutopilotJournal()
        insight = make_bot_insight(make_order_call(), make_order_call(symbol="QQQ"))
        loop = make_loop(make_insight_service(insight), session, broker, journal)

        result = await loop.run_tick()

        assert broker.execute_order.await_count == 1
        assert result.orders_routed == 1
        assert result.orders_blocked == 1
        assert [e.allowed for e in journal.entries] == [True, False]

    @pytest.mark.asyncio
    async def test_order_risk_percent_from_args(self):
        """riskPercent above the per-trade cap blocks the order."""
        broker = make_broker()
        journal = AutopilotJournal()
        loop = make_loop(
            make_insight_service(make_bot_insight(make_order_call(riskPercent=2.0))),
            broker=broker,
            journal=journal,
        )

        await loop.run_tick()

        broker.execute_order.assert_not_awaited()
        assert journal.entries[0].risk_percent == 2.0
        assert any("exceeds max per-trade risk" in r for r in journal.entries[0].risk_reasons)

    @pytest.mark.asyncio
    async def test_malformed_risk_percent_blocks(self):
        broker = make_broker()
        journal = AutopilotJournal()
        loop = make_loop(
            make_insight_service(make_bot_insight(make_order_call(risk_percent="a lot"))),
            broker=broker,
            journal=journal,
        )

        await loop.run_tick()

        broker.execute_order.assert_not_awaited()
        assert journal.entries[0].allowed is False

    @pytest.mark.asyncio
    async def test_malformed_order_rejected(self):
        broker = make_broker()
        journal = AutopilotJournal()
        loop = make_loop(
            make_insight_service(make_bot_insight(make_order_call(size=0))),
            broker=broker,
            journal=journal,
        )

        result = await loop.run_tick()

        broker.execute_order.assert_not_awaited()
        assert journal.entries == []
        assert result.orders_blocked == 1
        assert any("invalid size" in m for m in messages(loop, TickLogType.ERROR))

    @pytest.mark.asyncio
    async def test_broker_failure_cancels_entry(self):
        session = make_session()
        broker = MagicMock()
        broker.execute_order = AsyncMock(side_effect=RuntimeError("insufficient buying power"))
        journal = AutopilotJournal()
        loop = make_loop(make_insight_service(make_bot_insight(make_order_call())), session, broker, journal)

        await loop.run_tick()

        assert journal.entries[0].execution_status == ExecutionStatus.CANCELLED
        assert "Order failed: insufficient buying power" in messages(loop, TickLogType.ERROR)
        assert session.risk_runtime.trades_taken_today == 0

    @pytest.mark.asyncio
    async def test_upstream_result_is_logged_not_forwarded(self):
        broker = make_broker()
        journal = AutopilotJournal()
        call = ToolCall(
            tool_name=EXECUTE_ORDER,
            args={"symbol": "SPY", "side": "buy", "size": 1},
            result={"status": "accepted", "id": "upstream-7"},
        )
        loop = make_loop(make_insight_service(make_bot_insight(call)), broker=broker, journal=journal)

        await loop.run_tick()

        broker.execute_order.assert_not_awaited()
        assert journal.entries == []
        assert 'Order Result: {"status": "accepted", "id": "upstream-7"}' in messages(loop, TickLogType.ACTION)

    @pytest.mark.asyncio
    async def test_journal_tool_logs_title(self):
        call = ToolCall(tool_name=APPEND_JOURNAL_ENTRY, args={"title": "Morning sweep", "summary": "..."})
        loop = make_loop(make_insight_service(make_bot_insight(call)))

        await loop.run_tick()

        assert "Journaling: Morning sweep" in messages(loop, TickLogType.ACTION)

    @pytest.mark.asyncio
    async def test_unknown_tool_logged_as_system(self):
        call = ToolCall(tool_name="draw_chart", args={})
        loop = make_loop(make_insight_service(make_bot_insight(call)))

        await loop.run_tick()

        assert "Ignoring unknown tool request: draw_chart" in messages(loop, TickLogType.SYSTEM)


class TestArmDisarm:
    """Tests for the armed/idle lifecycle."""

    @pytest.mark.asyncio
    async def test_arm_runs_first_tick_and_schedules_next(self):
        service = make_insight_service(make_bot_insight(text="HOLDing."))
        loop = make_loop(service)

        await loop.arm()
        assert loop.state == LoopState.ARMED
        await asyncio.sleep(0.05)

        assert service.fetch_insights.await_count == 1
        assert loop.next_tick_at is not None
        assert messages(loop)[:2] == [
            "Autopilot Sequence Initiated.",
            f'Mandate: "{MANDATE_PRESETS["SCALP"]}"',
        ]
        await loop.stop()
        assert loop.next_tick_at is None

    @pytest.mark.asyncio
    async def test_arm_is_idempotent(self):
        service = make_insight_service()
        loop = make_loop(service)

        await loop.arm()
        await loop.arm()
        await asyncio.sleep(0.05)

        assert service.fetch_insights.await_count == 1
        assert messages(loop).count("Autopilot Sequence Initiated.") == 1
        await loop.stop()

    @pytest.mark.asyncio
    async def test_ticks_repeat_after_interval(self):
        service = make_insight_service()
        loop = make_loop(service, tick_interval_seconds=0.01)

        await loop.arm()
        await asyncio.sleep(0.2)
        await loop.stop()

        assert service.fetch_insights.await_count >= 2

    @pytest.mark.asyncio
    async def test_disarm_cancels_pending_tick(self):
        service = make_insight_service()
        loop = make_loop(service, tick_interval_seconds=0.05)

        await loop.arm()
        await asyncio.sleep(0.01)
        loop.disarm()
        await asyncio.sleep(0.15)

        assert service.fetch_insights.await_count == 1
        assert loop.state == LoopState.IDLE
        assert messages(loop)[-1] == "Autopilot Disengaged."

    @pytest.mark.asyncio
    async def test_disarm_when_idle_is_noop(self):
        loop = make_loop(make_insight_service())

        loop.disarm()

        assert loop.log.entries == []

    @pytest.mark.asyncio
    async def test_disarm_during_dispatch_logs_outcome_once(self):
        """An in-flight dispatch finishes and logs once; nothing else is scheduled."""
        release = asyncio.Event()
        started = asyncio.Event()
        calls = []

        async def slow_fetch(request):
            calls.append(request)
            started.set()
            await release.wait()
            return [make_bot_insight(text="Setup invalidated. Standing down.")]

        service = MagicMock()
        service.fetch_insights = slow_fetch
        loop = make_loop(service, tick_interval_seconds=0.01)

        await loop.arm()
        await asyncio.wait_for(started.wait(), timeout=1)
        loop.disarm()
        assert loop.in_flight is True

        release.set()
        await asyncio.wait_for(loop.wait_idle(), timeout=1)
        await asyncio.sleep(0.05)

        entries = messages(loop)
        after_disarm = entries[entries.index("Autopilot Disengaged.") + 1:]
        assert after_disarm == ["Setup invalidated. Standing down."]
        assert len(calls) == 1
        assert loop.next_tick_at is None
        assert loop.state == LoopState.IDLE

    @pytest.mark.asyncio
    async def test_rearm_after_disarm(self):
        service = make_insight_service()
        loop = make_loop(service)

        await loop.arm()
        await asyncio.sleep(0.01)
        loop.disarm()
        await loop.arm()
        await asyncio.sleep(0.05)

        assert loop.is_armed is True
        assert service.fetch_insights.await_count == 2
        await loop.stop()

    @pytest.mark.asyncio
    async def test_toggle(self):
        loop = make_loop(make_insight_service())

        assert await loop.toggle() == LoopState.ARMED
        assert await loop.toggle() == LoopState.IDLE
        await loop.stop()


class TestActiveAgents:
    """Tests for the zero-agent auto-stop and live agent toggles."""

    @pytest.mark.asyncio
    async def test_no_active_agents_stops_loop(self):
        service = make_insight_service()
        loop = make_loop(service, active_agents={"quant_bot": False})

        await loop.arm()
        await asyncio.wait_for(loop.wait_idle(), timeout=1)

        service.fetch_insights.assert_not_awaited()
        assert loop.state == LoopState.IDLE
        assert "No agents active. Pausing loop." in messages(loop, TickLogType.ERROR)
        assert loop.next_tick_at is None
        assert loop.tick_count == 0

    @pytest.mark.asyncio
    async def test_agent_set_emptied_mid_run(self):
        service = make_insight_service()
        loop = make_loop(service)

        await loop.arm()
        await asyncio.sleep(0.01)
        assert loop.next_tick_at is not None

        loop.set_agent("quant_bot", False)
        result = await loop.run_tick()
        await asyncio.wait_for(loop.wait_idle(), timeout=1)

        assert result.stopped is True
        assert loop.state == LoopState.IDLE
        assert loop.next_tick_at is None
        assert service.fetch_insights.await_count == 1

    @pytest.mark.asyncio
    async def test_rearm_after_auto_stop(self):
        service = make_insight_service()
        loop = make_loop(service, active_agents={"quant_bot": False})
        await loop.arm()
        await loop.wait_idle()

        assert loop.toggle_agent("quant_bot") is True
        await loop.arm()
        await asyncio.sleep(0.01)

        assert service.fetch_insights.await_count == 1
        await loop.stop()

    @pytest.mark.asyncio
    async def test_agent_toggle_applies_next_tick(self):
        service = make_insight_service()
        loop = make_loop(service, active_agents={"quant_bot": True, "trend_master": False})

        await loop.run_tick()
        loop.set_agent("trend_master", True)
        await loop.run_tick()

        first, second = [c.args[0].agent_ids for c in service.fetch_insights.call_args_list]
        assert first == ["quant_bot"]
        assert second == ["quant_bot", "trend_master"]

    def test_active_agents_returns_copy(self):
        loop = make_loop(make_insight_service())

        loop.active_agents["quant_bot"] = False

        assert loop.active_agents == {"quant_bot": True}


class TestMandate:
    """Tests for live mandate edits."""

    @pytest.mark.asyncio
    async def test_set_mandate_applies_next_tick(self):
        service = make_insight_service()
        loop = make_loop(service)

        loop.set_mandate("  Only trade the opening range breakout.  ")
        await loop.run_tick()

        assert loop.mandate == "Only trade the opening range breakout."
        assert '"Only trade the opening range breakout."' in service.fetch_insights.call_args.args[0].prompt
        assert 'UPDATED ORDERS: "Only trade the opening range breakout."' in messages(loop, TickLogType.SYSTEM)

    def test_blank_mandate_rejected(self):
        loop = make_loop(make_insight_service())

        with pytest.raises(ValueError):
            loop.set_mandate("   ")

    def test_apply_preset(self):
        loop = make_loop(make_insight_service())

        text = loop.apply_preset("defensive")

        assert text == MANDATE_PRESETS["DEFENSIVE"]
        assert loop.mandate == MANDATE_PRESETS["DEFENSIVE"]
        assert "Mode switched to DEFENSIVE" in messages(loop, TickLogType.SYSTEM)

    def test_unknown_preset_rejected(self):
        loop = make_loop(make_insight_service())

        with pytest.raises(ValueError, match="Unknown mandate preset"):
            loop.apply_preset("yolo")

    def test_log_capacity_from_settings(self):
        loop = make_loop(make_insight_service(), log_capacity=3)

        for i in range(5):
            loop.set_mandate(f"mandate {i}")

        assert len(loop.log) == 3
