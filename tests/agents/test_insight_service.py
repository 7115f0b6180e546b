# tests/agents/test_insight_service.py
"""Tests for ClaudeInsightService."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from autopilot_desk.agents.insight_service import ClaudeInsightService
from autopilot_desk.agents.models import EXECUTE_ORDER, AgentInsightRequest


def make_text_block(text: str) -> MagicMock:
    block = MagicMock()
    block.type = "text"
    block.text = text
    return block


def make_tool_block(name: str, args: dict) -> MagicMock:
    block = MagicMock()
    block.type = "tool_use"
    block.name = name
    block.input = args
    return block


def make_response(*blocks) -> MagicMock:
    response = MagicMock()
    response.content = list(blocks)
    return response


def make_request(agent_ids: list[str] | None = None, chart_context: str = "") -> AgentInsightRequest:
    return AgentInsightRequest(
        agent_ids=agent_ids or ["trend_master"],
        prompt="[AUTOPILOT SYSTEM TICK] TARGET ASSET: SPY",
        chart_context=chart_context,
    )


@pytest.fixture
def mock_anthropic():
    with patch("autopilot_desk.agents.insight_service.Anthropic") as mock:
        yield mock


@pytest.fixture
def service(mock_anthropic):
    service = ClaudeInsightService(api_key="test-key", rate_limit_per_minute=100)
    service._enforce_rate_limit = AsyncMock()
    return service


class TestClaudeInsightService:
    def test_init_creates_client(self, mock_anthropic):
        ClaudeInsightService(api_key="test-key")
        mock_anthropic.assert_called_once_with(api_key="test-key")

    def test_defaults(self, mock_anthropic):
        service = ClaudeInsightService(api_key="test-key")
        assert service.model == ClaudeInsightService.DEFAULT_MODEL
        assert service.max_tokens == ClaudeInsightService.DEFAULT_MAX_TOKENS

    @pytest.mark.asyncio
    async def test_text_reply_becomes_insight(self, service, mock_anthropic):
        mock_anthropic.return_value.messages.create.return_value = make_response(
            make_text_block("HTF bias is bullish above 5020.")
        )

        insights = await service.fetch_insights(make_request())

        assert len(insights) == 1
        assert insights[0].agent_id == "trend_master"
        assert insights[0].agent_name == "TrendMaster AI"
        assert insights[0].text == "HTF bias is bullish above 5020."
        assert insights[0].tool_calls == []
        assert insights[0].error is None

    @pytest.mark.asyncio
    async def test_tool_use_becomes_tool_call(self, service, mock_anthropic):
        """Tool use blocks are returned as requests, never executed."""
        mock_anthropic.return_value.messages.create.return_value = make_response(
            make_text_block("Sweep of the lows confirmed."),
            make_tool_block(EXECUTE_ORDER, {"symbol": "SPY", "side": "buy", "size": 10}),
        )

        insights = await service.fetch_insights(make_request(["quant_bot"]))

        call = insights[0].tool_calls[0]
        assert call.tool_name == EXECUTE_ORDER
        assert call.args == {"symbol": "SPY", "side": "buy", "size": 10}
        assert call.result is None

    @pytest.mark.asyncio
    async def test_execution_bot_gets_tools(self, service, mock_anthropic):
        mock_anthropic.return_value.messages.create.return_value = make_response(make_text_block("HOLDing."))

        await service.fetch_insights(make_request(["quant_bot"]))

        kwargs = mock_anthropic.return_value.messages.create.call_args.kwargs
        tool_names = [tool["name"] for tool in kwargs["tools"]]
        assert tool_names == ["execute_order", "append_journal_entry"]
        assert "Execution Bot" in kwargs["system"]

    @pytest.mark.asyncio
    async def test_agents_without_tools_send_no_tools(self, service, mock_anthropic):
        mock_anthropic.return_value.messages.create.return_value = make_response(make_text_block("ok"))

        await service.fetch_insights(make_request(["pattern_gpt"]))

        kwargs = mock_anthropic.return_value.messages.create.call_args.kwargs
        assert "tools" not in kwargs

    @pytest.mark.asyncio
    async def test_chart_context_is_prepended(self, service, mock_anthropic):
        mock_anthropic.return_value.messages.create.return_value = make_response(make_text_block("ok"))

        await service.fetch_insights(make_request(chart_context="Price 5032, VWAP 5025"))

        kwargs = mock_anthropic.return_value.messages.create.call_args.kwargs
        content = kwargs["messages"][0]["content"]
        assert content.startswith("<chart_context>\nPrice 5032, VWAP 5025")
        assert "TARGET ASSET: SPY" in content

    @pytest.mark.asyncio
    async def test_one_failing_agent_does_not_fail_dispatch(self, service, mock_anthropic):
        """A per-agent API error becomes an error insight."""
        mock_anthropic.return_value.messages.create.side_effect = [
            make_response(make_text_block("Bullish.")),
            Exception("overloaded"),
        ]

        insights = await service.fetch_insights(make_request(["trend_master", "pattern_gpt"]))

        assert len(insights) == 2
        errors = [insight for insight in insights if insight.error]
        assert len(errors) == 1
        assert errors[0].error == "overloaded"

    @pytest.mark.asyncio
    async def test_unknown_agent_uses_generic_profile(self, service, mock_anthropic):
        mock_anthropic.return_value.messages.create.return_value = make_response(make_text_block("ok"))

        insights = await service.fetch_insights(make_request(["macro_owl"]))

        assert insights[0].agent_id == "macro_owl"
        assert insights[0].agent_name == "macro_owl"

    @pytest.mark.asyncio
    async def test_blank_text_is_dropped(self, service, mock_anthropic):
        mock_anthropic.return_value.messages.create.return_value = make_response(make_text_block("   "))

        insights = await service.fetch_insights(make_request())

        assert insights[0].text is None


class TestRateLimit:
    @pytest.mark.asyncio
    async def test_first_call_does_not_wait(self, mock_anthropic):
        service = ClaudeInsightService(api_key="test-key", rate_limit_per_minute=20)

        with patch("autopilot_desk.agents.insight_service.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            await service._enforce_rate_limit()

        mock_sleep.assert_not_called()
        assert service._last_call_time is not None

    @pytest.mark.asyncio
    async def test_second_call_waits(self, mock_anthropic):
        service = ClaudeInsightService(api_key="test-key", rate_limit_per_minute=20)

        with patch("autopilot_desk.agents.insight_service.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            await service._enforce_rate_limit()
            await service._enforce_rate_limit()

        mock_sleep.assert_called_once()
        assert 0 < mock_sleep.call_args.args[0] <= 3.0
