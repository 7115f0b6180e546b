"""Broker execution bridge used by the autopilot tick loop."""

import logging
from typing import Any, Protocol

from autopilot_desk.execution.alpaca_client import AlpacaClient
from autopilot_desk.execution.models import OrderRequest
from autopilot_desk.execution.settings import ExecutionSettings

logger = logging.getLogger(__name__)


class BrokerBridge(Protocol):
    """Anything that can route an order and return an opaque result."""

    async def execute_order(self, order: OrderRequest) -> Any:
        ...


class AlpacaBrokerBridge:
    """Route autopilot orders to Alpaca as market orders.

    The returned dict is the raw order description from AlpacaClient. The
    autopilot logs it verbatim and only looks at ``filled_avg_price`` when
    present.
    """

    def __init__(self, alpaca_client: AlpacaClient, settings: ExecutionSettings):
        self._alpaca = alpaca_client
        self._settings = settings

    async def execute_order(self, order: OrderRequest) -> dict:
        """Submit a market order.

        Raises:
            RuntimeError: If execution is disabled in settings.
        """
        if not self._settings.enabled:
            raise RuntimeError("Order execution is disabled in settings")

        if not self._alpaca.is_connected:
            await self._alpaca.connect()

        logger.info(f"Routing order: {order.side.upper()} {order.size} {order.symbol}")
        return await self._alpaca.submit_market_order(
            symbol=order.symbol,
            qty=order.size,
            side=order.side,
            time_in_force=self._settings.default_time_in_force,
        )
