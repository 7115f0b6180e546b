"""Autopilot planner: hard risk verdict plus the Execution Bot's opinion."""

import asyncio
import json
import logging

from autopilot_desk.agents.insight_service import AgentInsightService
from autopilot_desk.agents.models import AgentInsightRequest
from autopilot_desk.agents.prompts import build_plan_prompt
from autopilot_desk.planner.models import AutopilotPlanRequest, AutopilotPlanResponse
from autopilot_desk.planner.settings import PlannerSettings
from autopilot_desk.risk.models import ProposedTrade, RiskCheckResult
from autopilot_desk.risk.risk_evaluator import DEFAULT_WARNING_RATIO, evaluate_proposed_trade
from autopilot_desk.session.models import TradingSessionState

logger = logging.getLogger(__name__)


class AutopilotPlanner:
    """Produces a plan for one proposed trade.

    The risk verdict is always computed and always authoritative. The
    Execution Bot recommendation is best effort: any failure turns into
    ``recommended=False`` plus a warning, never an exception.
    """

    def __init__(
        self,
        insight_service: AgentInsightService,
        settings: PlannerSettings,
        warning_ratio: float = DEFAULT_WARNING_RATIO,
    ):
        self._insights = insight_service
        self._settings = settings
        self._warning_ratio = warning_ratio

    async def plan(
        self,
        session: TradingSessionState,
        request: AutopilotPlanRequest,
    ) -> AutopilotPlanResponse:
        """Plan a trade on the session's instrument.

        Args:
            session: Current session context (instrument, limits, counters).
            request: Direction, risk percent and optional notes.

        Returns:
            AutopilotPlanResponse with the risk verdict and recommendation
            reported separately.
        """
        trade = ProposedTrade(
            instrument=session.instrument.symbol,
            direction=request.direction,
            risk_percent=request.risk_percent,
            comment=request.notes,
            playbook=request.playbook,
        )
        risk = evaluate_proposed_trade(
            session.risk_config,
            session.risk_runtime,
            trade,
            warning_ratio=self._warning_ratio,
            desk_policy=session.desk_policy,
            environment=session.environment,
            autopilot_mode=session.autopilot_mode,
            autopilot_config=session.autopilot_config,
        )

        warnings = list(risk.warnings)
        recommended = False
        bot_summary = ""
        try:
            recommended, bot_summary = await asyncio.wait_for(
                self._ask_execution_bot(session, request),
                timeout=self._settings.recommendation_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning("Execution Bot recommendation timed out")
            warnings.append(
                f"Execution Bot did not answer within {self._settings.recommendation_timeout_seconds:.0f}s; "
                "treating as not recommended."
            )
        except Exception as e:
            logger.warning(f"Execution Bot recommendation failed: {e}")
            warnings.append(f"Execution Bot unavailable ({e}); treating as not recommended.")

        return AutopilotPlanResponse(
            allowed=risk.allowed,
            recommended=recommended,
            plan_summary=self._build_summary(risk, recommended, bot_summary),
            risk_reasons=list(risk.reasons),
            risk_warnings=warnings,
        )

    async def _ask_execution_bot(
        self,
        session: TradingSessionState,
        request: AutopilotPlanRequest,
    ) -> tuple[bool, str]:
        """Ask the Execution Bot persona for an advisory verdict.

        Raises:
            RuntimeError: If the bot reports an error.
            ValueError: If the bot does not answer or answers unparsable JSON.
        """
        bot_id = self._settings.execution_bot_id
        prompt = build_plan_prompt(
            symbol=session.instrument.label,
            environment=session.environment.value,
            mode=session.autopilot_mode.value,
            direction=request.direction.value,
            risk_percent=request.risk_percent,
            notes=request.notes,
        )
        insights = await self._insights.fetch_insights(
            AgentInsightRequest(
                agent_ids=[bot_id],
                prompt=prompt,
                chart_context=session.chart_context,
                account_id=session.account_id,
                journal_mode="plan",
            )
        )

        insight = next((i for i in insights if i.agent_id == bot_id), None)
        if insight is None:
            raise ValueError("no reply from Execution Bot")
        if insight.error:
            raise RuntimeError(insight.error)
        if not insight.text:
            raise ValueError("empty reply from Execution Bot")

        return parse_recommendation(insight.text)

    def _build_summary(self, risk: RiskCheckResult, recommended: bool, bot_summary: str) -> str:
        lines = [
            f"Risk verdict: {'ALLOWED' if risk.allowed else 'BLOCKED'}.",
            f"Execution Bot: {'RECOMMENDS' if recommended else 'DOES NOT RECOMMEND'}.",
        ]
        if bot_summary:
            lines.append(bot_summary)
        return "\n".join(lines)


def parse_recommendation(text: str) -> tuple[bool, str]:
    """Parse the Execution Bot's JSON reply.

    Accepts a bare JSON object or one wrapped in a markdown code block.

    Returns:
        Tuple of (recommended, summary).

    Raises:
        ValueError: If no JSON object with a boolean ``recommended`` is found.
    """
    result_text = text.strip()

    # Strip markdown code blocks if present
    if result_text.startswith("```"):
        lines = result_text.split("\n")
        if lines[0].startswith("```"):
            lines = lines[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        result_text = "\n".join(lines)

    start = result_text.find("{")
    end = result_text.rfind("}")
    if start == -1 or end < start:
        raise ValueError("Execution Bot reply contains no JSON object")

    try:
        data = json.loads(result_text[start : end + 1])
    except json.JSONDecodeError as e:
        raise ValueError(f"Execution Bot reply is not valid JSON: {e}") from e

    recommended = data.get("recommended") if isinstance(data, dict) else None
    if not isinstance(recommended, bool):
        raise ValueError("Execution Bot reply has no boolean 'recommended' field")

    return recommended, str(data.get("summary") or "").strip()
