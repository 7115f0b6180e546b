"""Shared value types."""

from .trading import AutopilotConfig, AutopilotMode, Direction, Environment

__all__ = ["AutopilotConfig", "AutopilotMode", "Direction", "Environment"]
