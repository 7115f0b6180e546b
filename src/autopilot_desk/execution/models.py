# src/autopilot_desk/execution/models.py
"""Data models for the execution bridge."""
import math
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class OrderRequest:
    """An order on its way to the broker.

    Attributes:
        symbol: Symbol to trade.
        side: "buy" or "sell".
        size: Quantity, always > 0.
    """

    symbol: str
    side: str
    size: float

    @classmethod
    def from_tool_args(cls, args: dict[str, Any]) -> "OrderRequest":
        """Build an order from ``execute_order`` tool arguments.

        Raises:
            ValueError: If symbol, side or size is missing or malformed.
        """
        symbol = str(args.get("symbol") or "").strip().upper()
        if not symbol:
            raise ValueError("execute_order is missing a symbol")

        side = str(args.get("side") or "").strip().lower()
        if side not in ("buy", "sell"):
            raise ValueError(f"execute_order has an invalid side: {args.get('side')!r}")

        try:
            size = float(args.get("size"))
        except (TypeError, ValueError):
            raise ValueError(f"execute_order has an invalid size: {args.get('size')!r}") from None
        if not math.isfinite(size) or size <= 0:
            raise ValueError(f"execute_order has an invalid size: {args.get('size')!r}")

        return cls(symbol=symbol, side=side, size=size)
