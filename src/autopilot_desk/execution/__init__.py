# src/autopilot_desk/execution/__init__.py
"""Broker execution bridge."""

from .alpaca_client import AlpacaClient
from .broker_bridge import AlpacaBrokerBridge, BrokerBridge
from .models import OrderRequest
from .settings import ExecutionSettings

__all__ = [
    "AlpacaBrokerBridge",
    "AlpacaClient",
    "BrokerBridge",
    "ExecutionSettings",
    "OrderRequest",
]
