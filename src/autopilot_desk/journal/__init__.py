# src/autopilot_desk/journal/__init__.py
"""Journal module for autopilot plans and their outcomes."""

from .autopilot_coach import AutopilotCoach, CoachReport
from .autopilot_journal import AutopilotJournal
from .history_store import AutopilotHistoryStore
from .models import AutopilotJournalEntry, ExecutionStatus, HistoryStats, JournalSource
from .settings import JournalSettings

__all__ = [
    "AutopilotCoach",
    "AutopilotHistoryStore",
    "AutopilotJournal",
    "AutopilotJournalEntry",
    "CoachReport",
    "ExecutionStatus",
    "HistoryStats",
    "JournalSettings",
    "JournalSource",
]
