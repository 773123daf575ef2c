"""
Broker integration for the Alpaca plugin.

Provides the host-side trading model and the Alpaca Trading API client.
All HTTP goes through the host-supplied transport in broker.http_transport.
"""

from broker.alpaca_client import AlpacaAPIError, AlpacaClient
from broker.models import (
    AccountBalance,
    AccountSummary,
    Order,
    OrderRequest,
    OrderSide,
    OrderStatus,
    OrderType,
    Position,
)

__all__ = [
    'AccountBalance',
    'AccountSummary',
    'AlpacaAPIError',
    'AlpacaClient',
    'Order',
    'OrderRequest',
    'OrderSide',
    'OrderStatus',
    'OrderType',
    'Position',
]
