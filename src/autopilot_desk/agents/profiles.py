"""Roster of agent personas available to the autopilot."""

from autopilot_desk.agents.models import APPEND_JOURNAL_ENTRY, EXECUTE_ORDER, AgentProfile

EXECUTION_BOT_ID = "quant_bot"

AGENT_PROFILES: dict[str, AgentProfile] = {
    "trend_master": AgentProfile(
        agent_id="trend_master",
        name="TrendMaster AI",
        persona=(
            "You focus on higher-timeframe structure and trend. State the HTF "
            "bias and whether the lower-timeframe idea agrees with it."
        ),
        temperature=0.5,
    ),
    "pattern_gpt": AgentProfile(
        agent_id="pattern_gpt",
        name="Pattern_GPT",
        persona=(
            "You focus on chart patterns and liquidity grabs. Name the pattern, "
            "its invalidation level and the target zones."
        ),
        temperature=0.5,
    ),
    EXECUTION_BOT_ID: AgentProfile(
        agent_id=EXECUTION_BOT_ID,
        name="Execution Bot",
        persona=(
            "You are the execution desk. You turn a validated idea into a "
            "concrete order with entry, stop and size, or you decline."
        ),
        temperature=0.3,
        tools=(EXECUTE_ORDER, APPEND_JOURNAL_ENTRY),
    ),
    "journal_coach": AgentProfile(
        agent_id="journal_coach",
        name="Journal Coach",
        persona=(
            "You keep the trading journal. Summarise what happened and what "
            "the trader should learn from it."
        ),
        temperature=0.5,
        tools=(APPEND_JOURNAL_ENTRY,),
    ),
}

DEFAULT_ACTIVE_AGENTS: dict[str, bool] = {
    "trend_master": True,
    "pattern_gpt": True,
    EXECUTION_BOT_ID: True,
    "journal_coach": False,
}


def get_profile(agent_id: str) -> AgentProfile:
    """Return the profile for an agent id.

    Unknown ids get a generic analyst persona so new agents can be toggled
    on without a code change.
    """
    profile = AGENT_PROFILES.get(agent_id)
    if profile is not None:
        return profile
    return AgentProfile(
        agent_id=agent_id,
        name=agent_id,
        persona="You are a trading analyst on the desk.",
    )
