# src/autopilot_desk/journal/autopilot_coach.py
"""History coach: turns similar-context stats into agent feedback."""
import logging
from dataclasses import dataclass

from autopilot_desk.agents.insight_service import AgentInsightService
from autopilot_desk.agents.models import AgentInsightRequest
from autopilot_desk.agents.prompts import build_coach_prompt
from autopilot_desk.journal.history_store import AutopilotHistoryStore
from autopilot_desk.journal.models import HistoryStats
from autopilot_desk.journal.settings import JournalSettings
from autopilot_desk.session.models import TradingSessionState

logger = logging.getLogger(__name__)


@dataclass
class CoachReport:
    """Stats the coach looked at plus its notes.

    Attributes:
        stats: Aggregate stats for the session's context.
        notes: Coach feedback; empty when the agent failed.
        error: Why no notes were produced, if anything went wrong.
    """

    stats: HistoryStats
    notes: str = ""
    error: str | None = None


class AutopilotCoach:
    """Asks the Journal Coach agent what the autopilot history says.

    Only history from a similar context (instrument, environment, mode and
    timeframe) is considered. Agent failures are reported on the
    CoachReport; the stats are always returned.
    """

    def __init__(
        self,
        history_store: AutopilotHistoryStore,
        insight_service: AgentInsightService,
        settings: JournalSettings,
    ):
        self._history = history_store
        self._insights = insight_service
        self._settings = settings

    async def review(self, session: TradingSessionState) -> CoachReport:
        """Compute history stats for the session and ask for coaching."""
        stats = await self._history.get_stats(session, self._settings.stats_history_limit)

        prompt = build_coach_prompt(
            symbol=session.instrument.label,
            timeframe=session.timeframe,
            environment=session.environment.value,
            mode=session.autopilot_mode.value,
            stats=format_stats(stats),
            history=format_history(stats.entries),
        )
        agent_id = self._settings.coach_agent_id

        try:
            insights = await self._insights.fetch_insights(
                AgentInsightRequest(
                    agent_ids=[agent_id],
                    prompt=prompt,
                    chart_context=session.chart_context,
                    account_id=session.account_id,
                    journal_mode="coach",
                )
            )
        except Exception as e:
            logger.warning(f"History coach failed: {e}")
            return CoachReport(stats=stats, error=str(e))

        insight = next((i for i in insights if i.agent_id == agent_id), None)
        if insight is None:
            return CoachReport(stats=stats, error="no reply from coach")
        if insight.error:
            logger.warning(f"History coach failed: {insight.error}")
            return CoachReport(stats=stats, error=insight.error)

        return CoachReport(stats=stats, notes=(insight.text or "").strip())


def format_stats(stats: HistoryStats) -> str:
    """Render stats as the bullet block the coach reads."""
    return "\n".join([
        f"- Total entries: {stats.total}",
        f"- Closed trades: {stats.closed}",
        f"- Wins: {stats.wins}, Losses: {stats.losses}, Breakeven: {stats.breakeven}",
        f"- Win rate (closed only): {stats.win_rate:.1f}%",
        f"- Avg risk: {stats.avg_risk:.2f}% of equity",
        f"- Avg PnL per closed trade: {stats.avg_pnl:.2f}",
        f"- Current losing streak: {stats.losing_streak}",
        f"- Recent direction bias: {stats.recent_direction_bias or 'none'}",
    ])


def format_history(rows: list[dict]) -> str:
    """One numbered line per history row, newest first."""
    lines = []
    for idx, row in enumerate(rows, start=1):
        risk = row.get("risk_percent")
        risk_text = f"{risk}%" if risk is not None else ""
        pnl = row.get("pnl")
        pnl_text = f"PnL={pnl:.2f}" if isinstance(pnl, (int, float)) else "PnL=unknown"
        if not row.get("allowed"):
            verdict = "Blocked"
        elif row.get("recommended"):
            verdict = "Allowed/Rec"
        else:
            verdict = "Allowed/NoRec"
        lines.append(
            f"{idx}. {row.get('created_at')} {row.get('instrument_symbol')} "
            f"{str(row.get('direction') or '').upper()} {risk_text} ({verdict}) {pnl_text} "
            f"[mode={row.get('autopilot_mode')}, env={row.get('environment')}] "
            f"- {row.get('plan_summary') or ''}"
        )
    return "\n".join(lines)
