"""Configuration for the agent insight service."""

from pydantic import BaseModel, Field


class AgentSettings(BaseModel):
    """Settings for Claude-backed agents."""

    model: str = "claude-sonnet-4-20250514"
    max_tokens: int = Field(default=1000, ge=100, le=4096)
    rate_limit_per_minute: int = Field(default=20, gt=0, le=100)
