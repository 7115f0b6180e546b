# src/autopilot_desk/models/trading.py
"""Enums and small value types shared across the autopilot packages."""
from dataclasses import dataclass
from enum import Enum


class Direction(Enum):
    """Trade direction."""

    LONG = "long"
    SHORT = "short"

    @property
    def side(self) -> str:
        """Return the broker order side for this direction."""
        return "buy" if self == Direction.LONG else "sell"

    @classmethod
    def from_side(cls, side: str) -> "Direction":
        """Map a broker side or direction string to a Direction.

        Raises:
            ValueError: If the value is not a recognised side.
        """
        normalized = side.strip().lower()
        if normalized in ("buy", "long"):
            return cls.LONG
        if normalized in ("sell", "short"):
            return cls.SHORT
        raise ValueError(f"Unknown order side: {side!r}")


class Environment(Enum):
    """Account environment the session is connected to."""

    SIM = "sim"
    LIVE = "live"


class AutopilotMode(Enum):
    """How much authority the autopilot has over execution."""

    OFF = "off"
    ADVISOR = "advisor"
    SEMI = "semi"
    FULL = "full"


@dataclass
class AutopilotConfig:
    """Operator policy for full autopilot on live accounts.

    Attributes:
        allow_full_auto_in_live: Whether FULL mode may be used on a live account.
        require_voice_confirm_for_full_auto: Whether entering FULL mode on a
            live account needs an explicit voice confirmation.
    """

    allow_full_auto_in_live: bool = False
    require_voice_confirm_for_full_auto: bool = True
