"""Configuration for order execution."""

from pydantic import BaseModel, Field


class ExecutionSettings(BaseModel):
    """Settings for trade execution."""

    enabled: bool = True
    paper_mode: bool = True
    default_time_in_force: str = Field(default="day")
