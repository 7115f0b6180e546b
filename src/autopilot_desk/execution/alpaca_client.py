# src/autopilot_desk/execution/alpaca_client.py
"""Thin async wrapper over the Alpaca trading client."""

from typing import Optional

from alpaca.trading.client import TradingClient
from alpaca.trading.enums import OrderSide, TimeInForce
from alpaca.trading.requests import MarketOrderRequest

TIME_IN_FORCE = {
    "day": TimeInForce.DAY,
    "gtc": TimeInForce.GTC,
    "ioc": TimeInForce.IOC,
    "fok": TimeInForce.FOK,
}


class AlpacaClient:
    """Account lookup and market orders for the broker bridge.

    ``paper`` selects the paper or live endpoint inside alpaca-py.
    """

    def __init__(self, api_key: str, secret_key: str, paper: bool = True):
        self._api_key = api_key
        self._secret_key = secret_key
        self._paper = paper
        self._trading_client: Optional[TradingClient] = None

    @property
    def paper(self) -> bool:
        """Return whether client is in paper trading mode."""
        return self._paper

    @property
    def is_connected(self) -> bool:
        return self._trading_client is not None

    async def connect(self) -> None:
        """Create the underlying TradingClient."""
        self._trading_client = TradingClient(
            api_key=self._api_key,
            secret_key=self._secret_key,
            paper=self._paper,
        )

    async def disconnect(self) -> None:
        self._trading_client = None

    def _require_client(self) -> TradingClient:
        if self._trading_client is None:
            raise RuntimeError("AlpacaClient is not connected")
        return self._trading_client

    async def get_account(self) -> dict:
        """Return cash, portfolio_value and buying_power as floats."""
        account = self._require_client().get_account()
        return {
            "cash": float(account.cash),
            "portfolio_value": float(account.portfolio_value),
            "buying_power": float(account.buying_power),
        }

    async def submit_market_order(
        self,
        symbol: str,
        qty: float,
        side: str,
        time_in_force: str = "day",
    ) -> dict:
        """Submit a market order.

        Args:
            symbol: Symbol to trade (e.g., "SPY").
            qty: Quantity; fractional quantities are passed through.
            side: "buy" or "sell".
            time_in_force: "day", "gtc", "ioc" or "fok". Unknown values fall
                back to "day".

        Returns:
            Dict with id, status, symbol, qty, side, type, filled_qty and
            filled_avg_price (None until filled).
        """
        request = MarketOrderRequest(
            symbol=symbol,
            qty=qty,
            side=OrderSide.BUY if side.lower() == "buy" else OrderSide.SELL,
            time_in_force=TIME_IN_FORCE.get(time_in_force.lower(), TimeInForce.DAY),
        )
        order = self._require_client().submit_order(request)
        return {
            "id": str(order.id),
            "status": str(order.status),
            "symbol": order.symbol,
            "qty": float(order.qty) if order.qty else 0.0,
            "side": str(order.side),
            "type": str(order.type),
            "filled_qty": float(order.filled_qty) if order.filled_qty else 0.0,
            "filled_avg_price": float(order.filled_avg_price) if order.filled_avg_price else None,
        }
