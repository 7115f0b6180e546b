"""Autopilot planner combining risk rules with the Execution Bot."""

from .autopilot_planner import AutopilotPlanner, parse_recommendation
from .models import AutopilotPlanRequest, AutopilotPlanResponse
from .settings import PlannerSettings

__all__ = [
    "AutopilotPlanRequest",
    "AutopilotPlanResponse",
    "AutopilotPlanner",
    "PlannerSettings",
    "parse_recommendation",
]
