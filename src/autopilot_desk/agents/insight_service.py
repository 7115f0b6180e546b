"""Agent insight service: fan a prompt out to agent personas on Claude."""

import asyncio
import logging
import time
from typing import Protocol

from anthropic import Anthropic

from autopilot_desk.agents.models import AgentInsight, AgentInsightRequest, AgentProfile, ToolCall
from autopilot_desk.agents.profiles import get_profile
from autopilot_desk.agents.prompts import build_system_prompt, build_user_content, tools_for

logger = logging.getLogger(__name__)


class AgentInsightService(Protocol):
    """Anything that can answer a dispatch with zero or more insights."""

    async def fetch_insights(self, request: AgentInsightRequest) -> list[AgentInsight]:
        ...


class ClaudeInsightService:
    """Dispatch a prompt to several agent personas backed by Claude.

    Each agent gets its own system prompt and tool list. Tool use blocks are
    returned as ToolCall requests and are never executed here; the caller
    decides what to do with them.

    Note: Rate limiting via _enforce_rate_limit() is not thread-safe.
    This is acceptable for the async single-threaded design of this system.
    """

    DEFAULT_MODEL = "claude-sonnet-4-20250514"
    DEFAULT_MAX_TOKENS = 1000

    def __init__(
        self,
        api_key: str,
        model: str | None = None,
        max_tokens: int | None = None,
        rate_limit_per_minute: int = 20,
    ):
        self.client = Anthropic(api_key=api_key)
        self.model = model or self.DEFAULT_MODEL
        self.max_tokens = max_tokens or self.DEFAULT_MAX_TOKENS
        self.rate_limit_per_minute = rate_limit_per_minute
        self._last_call_time: float | None = None

    async def fetch_insights(self, request: AgentInsightRequest) -> list[AgentInsight]:
        """Ask every requested agent and collect their replies.

        A failing agent yields an AgentInsight with ``error`` set instead of
        failing the whole dispatch.

        Args:
            request: The dispatch to send.

        Returns:
            One AgentInsight per requested agent, in request order.
        """
        profiles = [get_profile(agent_id) for agent_id in request.agent_ids]
        tasks = [self._ask_agent(profile, request) for profile in profiles]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        insights = []
        for profile, result in zip(profiles, results):
            if isinstance(result, Exception):
                logger.warning(f"Agent {profile.agent_id} failed: {result}")
                insights.append(
                    AgentInsight(
                        agent_id=profile.agent_id,
                        agent_name=profile.name,
                        error=str(result),
                    )
                )
            else:
                insights.append(result)
        return insights

    async def _ask_agent(self, profile: AgentProfile, request: AgentInsightRequest) -> AgentInsight:
        """Send the request to a single agent persona."""
        await self._enforce_rate_limit()

        kwargs = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": profile.temperature,
            "system": build_system_prompt(profile),
            "messages": [
                {
                    "role": "user",
                    "content": build_user_content(request.prompt, request.chart_context),
                }
            ],
        }
        tools = tools_for(profile)
        if tools:
            kwargs["tools"] = tools

        # Run synchronous Claude API call in thread pool to avoid blocking event loop
        response = await asyncio.to_thread(self.client.messages.create, **kwargs)
        return self._parse_response(profile, response)

    def _parse_response(self, profile: AgentProfile, response) -> AgentInsight:
        """Split a Claude message into prose and tool requests."""
        texts: list[str] = []
        tool_calls: list[ToolCall] = []

        for block in response.content:
            if block.type == "text":
                if block.text.strip():
                    texts.append(block.text.strip())
            elif block.type == "tool_use":
                tool_calls.append(ToolCall(tool_name=block.name, args=dict(block.input)))

        return AgentInsight(
            agent_id=profile.agent_id,
            agent_name=profile.name,
            text="\n\n".join(texts) if texts else None,
            tool_calls=tool_calls,
        )

    async def _enforce_rate_limit(self) -> None:
        """Enforce rate limiting between API calls."""
        if self._last_call_time is not None:
            min_interval = 60.0 / self.rate_limit_per_minute
            elapsed = time.time() - self._last_call_time
            if elapsed < min_interval:
                self._last_call_time += min_interval
                await asyncio.sleep(min_interval - elapsed)
                return
        self._last_call_time = time.time()
