# src/autopilot_desk/journal/settings.py
"""Settings for the journal module."""
from pydantic import BaseModel, Field


class JournalSettings(BaseModel):
    """Configuration settings for the autopilot journal.

    Attributes:
        enabled: Whether durable history writes are enabled.
        history_file: JSON file holding the durable autopilot history.
        similar_history_limit: Default number of rows for similar-context queries.
        stats_history_limit: Default number of rows used for stats.
        coach_on_startup: Run the history coach before the autopilot is armed.
        coach_agent_id: Agent asked to interpret the history stats.
    """

    enabled: bool = True
    history_file: str = "data/autopilot_history.json"

    similar_history_limit: int = Field(default=30, ge=1, le=1000)
    stats_history_limit: int = Field(default=100, ge=1, le=5000)

    coach_on_startup: bool = True
    coach_agent_id: str = "journal_coach"
