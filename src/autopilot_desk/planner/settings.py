"""Configuration for the autopilot planner."""

from pydantic import BaseModel, Field


class PlannerSettings(BaseModel):
    """Settings for AutopilotPlanner.

    Attributes:
        execution_bot_id: Agent asked for the advisory recommendation.
        recommendation_timeout_seconds: Upper bound on the advisory call.
    """

    execution_bot_id: str = "quant_bot"
    recommendation_timeout_seconds: float = Field(default=30.0, gt=0)
