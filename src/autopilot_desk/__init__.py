"""Risk-gated autopilot loop for an AI trading desk."""

__version__ = "0.1.0"
