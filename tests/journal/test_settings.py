"""Tests for JournalSettings."""

import pytest
from pydantic import ValidationError

from autopilot_desk.journal.settings import JournalSettings


class TestJournalSettings:
    def test_defaults(self):
        settings = JournalSettings()

        assert settings.enabled is True
        assert settings.history_file == "data/autopilot_history.json"
        assert settings.similar_history_limit == 30
        assert settings.stats_history_limit == 100
        assert settings.coach_on_startup is True
        assert settings.coach_agent_id == "journal_coach"

    def test_limits_must_be_positive(self):
        with pytest.raises(ValidationError):
            JournalSettings(similar_history_limit=0)
