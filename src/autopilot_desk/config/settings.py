# src/autopilot_desk/config/settings.py
from pathlib import Path

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from autopilot_desk.agents.settings import AgentSettings
from autopilot_desk.execution.settings import ExecutionSettings
from autopilot_desk.journal.settings import JournalSettings
from autopilot_desk.orchestrator.settings import AutopilotLoopSettings
from autopilot_desk.planner.settings import PlannerSettings
from autopilot_desk.risk.settings import RiskSettings
from autopilot_desk.session.settings import SessionSettings


class SystemConfig(BaseModel):
    name: str = "Autopilot Desk"
    version: str = "0.1.0"


class AlpacaConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="ALPACA_")

    api_key: str = ""
    secret_key: str = ""
    paper: bool = True


class AnthropicConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="ANTHROPIC_")

    api_key: str = ""


class Settings(BaseModel):
    system: SystemConfig = Field(default_factory=SystemConfig)
    session: SessionSettings = Field(default_factory=SessionSettings)
    risk: RiskSettings = Field(default_factory=RiskSettings)
    agents: AgentSettings = Field(default_factory=AgentSettings)
    planner: PlannerSettings = Field(default_factory=PlannerSettings)
    journal: JournalSettings = Field(default_factory=JournalSettings)
    autopilot: AutopilotLoopSettings = Field(default_factory=AutopilotLoopSettings)
    execution: ExecutionSettings = Field(default_factory=ExecutionSettings)
    alpaca: AlpacaConfig = Field(default_factory=AlpacaConfig)
    anthropic: AnthropicConfig = Field(default_factory=AnthropicConfig)

    @classmethod
    def from_yaml(cls, path: Path) -> "Settings":
        """Load settings from YAML file with env var overrides."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}

        data.pop("alpaca", None)
        data.pop("anthropic", None)

        return cls(
            **data,
            alpaca=AlpacaConfig(),
            anthropic=AnthropicConfig(),
        )
