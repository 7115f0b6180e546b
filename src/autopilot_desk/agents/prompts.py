# src/autopilot_desk/agents/prompts.py

"""Prompt templates and tool schemas for the autopilot agents."""

from autopilot_desk.agents.models import APPEND_JOURNAL_ENTRY, EXECUTE_ORDER, AgentProfile

GLOBAL_SYSTEM_PROMPT = """You are part of a professional AI trading desk.
Each agent has a specialty and should speak in that persona.

PRIME DIRECTIVE: CAPITAL PRESERVATION.
- You are NOT here to force trades. You are here to protect the trader's capital.
- If the setup is C-grade or the market is choppy, explicitly advise "NO TRADE".
- NEVER suggest a trade with less than 1.5R (Risk:Reward).
- ALWAYS identify the invalidation level (stop loss) before the entry.

You always:
- Explain your reasoning step by step using data.
- Call out key levels, trend context and specific risk.
- Respect the trader's timeframe and instrument."""

TICK_PROMPT = """[AUTOPILOT SYSTEM TICK]
TARGET ASSET: {symbol}

*** OPERATIONAL MANDATE (STRICT) ***
"{mandate}"
************************************

INSTRUCTIONS:
1. TrendMaster: Analyze structure/bias vs the Mandate.
2. PatternGPT: Find entry zones that align with the Mandate.
3. Execution Bot: EXECUTE ONLY IF:
   - Setup matches the Mandate.
   - Confidence > 80%.
   - Use the 'execute_order' tool.

If no trade aligns with the Mandate, output: "HOLDing. Waiting for [specific condition]." """

PLAN_PROMPT = """[AUTOPILOT PLAN REVIEW]
Instrument: {symbol}
Environment: {environment} | Autopilot mode: {mode}
Proposed trade: {direction} risking {risk_percent} of equity
Notes: {notes}

Judge only whether this trade is advisable right now. Hard risk limits are
checked elsewhere; do not repeat them.

Respond ONLY with a JSON object:
{{"recommended": true or false, "summary": "2-4 sentences explaining why"}}"""

COACH_PROMPT = """[AUTOPILOT HISTORY REVIEW]
Instrument: {symbol} | Timeframe: {timeframe}
Environment: {environment} | Autopilot mode: {mode}

STATS (similar context)
{stats}

RECENT HISTORY (most recent first)
{history}

Explain what this trader's OWN data says about win rate and expectancy,
which kinds of trades work or fail, and whether they are on a cold or hot
streak. Then give 3-6 concrete rules of thumb for THIS context. Interpret the
numbers; do not restate them. Stay under 450 words."""

TOOL_DEFINITIONS: dict[str, dict] = {
    EXECUTE_ORDER: {
        "name": EXECUTE_ORDER,
        "description": "Request a market order. The desk re-checks risk before routing it.",
        "input_schema": {
            "type": "object",
            "properties": {
                "symbol": {"type": "string"},
                "side": {"type": "string", "enum": ["buy", "sell"]},
                "size": {"type": "number", "exclusiveMinimum": 0},
                "risk_percent": {
                    "type": "number",
                    "description": "Percent of equity at risk if the stop is hit.",
                },
                "comment": {"type": "string"},
            },
            "required": ["symbol", "side", "size"],
        },
    },
    APPEND_JOURNAL_ENTRY: {
        "name": APPEND_JOURNAL_ENTRY,
        "description": "Write a short entry into the trading journal.",
        "input_schema": {
            "type": "object",
            "properties": {
                "title": {"type": "string"},
                "summary": {"type": "string"},
                "sentiment": {
                    "type": "string",
                    "enum": ["bullish", "bearish", "neutral", "mixed"],
                },
                "tags": {"type": "array", "items": {"type": "string"}},
            },
            "required": ["title"],
        },
    },
}


def build_system_prompt(profile: AgentProfile) -> str:
    """Combine the desk-wide prompt with an agent persona."""
    return f"{GLOBAL_SYSTEM_PROMPT}\n\nYou are {profile.name}. {profile.persona}"


def build_tick_prompt(symbol: str, mandate: str) -> str:
    """Build the per-tick prompt embedding the current mandate verbatim."""
    return TICK_PROMPT.format(symbol=symbol, mandate=mandate).strip()


def build_plan_prompt(
    symbol: str,
    environment: str,
    mode: str,
    direction: str,
    risk_percent: object,
    notes: str | None,
) -> str:
    """Build the advisory prompt sent to the Execution Bot for one plan."""
    if isinstance(risk_percent, (int, float)) and not isinstance(risk_percent, bool):
        risk_text = f"{risk_percent:.2f}%"
    else:
        risk_text = f"{risk_percent!r}%"
    return PLAN_PROMPT.format(
        symbol=symbol,
        environment=environment.upper(),
        mode=mode.upper(),
        direction=direction.upper(),
        risk_percent=risk_text,
        notes=notes or "none",
    )


def build_user_content(prompt: str, chart_context: str) -> str:
    """Attach chart context, when present, ahead of the prompt."""
    if not chart_context:
        return prompt
    return f"<chart_context>\n{chart_context}\n</chart_context>\n\n{prompt}"


def tools_for(profile: AgentProfile) -> list[dict]:
    """Return the tool definitions an agent is allowed to call."""
    return [TOOL_DEFINITIONS[name] for name in profile.tools if name in TOOL_DEFINITIONS]


def build_coach_prompt(
    symbol: str,
    timeframe: str | None,
    environment: str,
    mode: str,
    stats: str,
    history: str,
) -> str:
    """Build the history review prompt sent to the Journal Coach."""
    return COACH_PROMPT.format(
        symbol=symbol,
        timeframe=timeframe or "n/a",
        environment=environment.upper(),
        mode=mode.upper(),
        stats=stats,
        history=history or "(no matching history entries)",
    )
