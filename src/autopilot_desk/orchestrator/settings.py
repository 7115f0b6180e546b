"""Configuration for the autopilot tick loop."""

from pydantic import BaseModel, Field, model_validator

MANDATE_PRESETS: dict[str, str] = {
    "SCALP": (
        "Aggressive Scalping. Look for 1m/5m liquidity sweeps. Quick profits "
        "(1:1.5 RR). High frequency execution."
    ),
    "SWING": (
        "Conservative Swing. Only trade with H1/H4 trend structure. Wide stops, "
        "targets > 1:3 RR. Low frequency."
    ),
    "DEFENSIVE": (
        "Capital Preservation. Only A+ setups with clear invalidation. Reduce "
        "size by 50%. No counter-trend trades."
    ),
}


class AutopilotLoopSettings(BaseModel):
    """Settings for AutopilotTickLoop.

    Attributes:
        tick_interval_seconds: Pause between the end of one tick and the next.
        log_capacity: Number of log lines kept; oldest are evicted first.
        default_preset: Mandate preset used when no mandate is given.
        presets: Named mandate presets.
        default_order_risk_percent: Risk assumed for execute_order requests
            that do not state one.
    """

    tick_interval_seconds: float = Field(default=15.0, gt=0)
    log_capacity: int = Field(default=200, ge=1, le=10000)
    default_preset: str = "SCALP"
    presets: dict[str, str] = Field(default_factory=lambda: dict(MANDATE_PRESETS))
    default_order_risk_percent: float = Field(default=0.25, gt=0, le=100)

    @model_validator(mode="after")
    def validate_default_preset(self) -> "AutopilotLoopSettings":
        """Ensure the default preset exists."""
        self.presets = {name.upper(): text for name, text in self.presets.items()}
        self.default_preset = self.default_preset.upper()
        if self.default_preset not in self.presets:
            raise ValueError(
                f"Unknown default_preset: {self.default_preset}. Must be one of {sorted(self.presets)}"
            )
        return self
