"""
Alpaca Trading API wire shapes and enum mapping tables.

Alpaca transmits every amount and quantity as a decimal string. The shapes
here keep them as strings; conversion to floats happens in the client so
a single bad field degrades to 0.0 instead of failing the whole response.

Documentation: https://docs.alpaca.markets/reference
"""

import logging
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from broker.models import OrderSide, OrderStatus, OrderType

logger = logging.getLogger(__name__)


class _AlpacaModel(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)


# ============================================================================
# Responses
# ============================================================================

class AlpacaAccount(_AlpacaModel):
    """GET /v2/account"""
    id: str
    account_number: str
    status: str
    currency: str
    cash: Optional[str] = None
    portfolio_value: Optional[str] = None
    buying_power: Optional[str] = None
    equity: Optional[str] = None
    last_equity: Optional[str] = None
    daytrade_count: Optional[int] = None
    pattern_day_trader: Optional[bool] = None


class AlpacaPosition(_AlpacaModel):
    """One entry of GET /v2/positions"""
    symbol: str
    qty: Optional[str] = None
    avg_entry_price: Optional[str] = None
    current_price: Optional[str] = None
    market_value: Optional[str] = None
    unrealized_pl: Optional[str] = None
    unrealized_plpc: Optional[str] = None
    side: str = "long"


class AlpacaOrder(_AlpacaModel):
    """POST /v2/orders and GET /v2/orders/{id}"""
    id: str
    client_order_id: str
    status: str
    symbol: str
    qty: Optional[str] = None
    side: Optional[str] = None
    order_type: Optional[str] = Field(default=None, alias="type")
    filled_qty: Optional[str] = None
    filled_avg_price: Optional[str] = None
    limit_price: Optional[str] = None
    stop_price: Optional[str] = None
    created_at: str
    updated_at: str


# ============================================================================
# Requests
# ============================================================================

class CreateOrderBody(_AlpacaModel):
    """POST /v2/orders body; unset prices are omitted, not sent as null."""
    model_config = ConfigDict(populate_by_name=True)

    symbol: str
    qty: str
    side: str
    order_type: str = Field(alias="type")
    time_in_force: str
    limit_price: Optional[str] = None
    stop_price: Optional[str] = None
    client_order_id: Optional[str] = None

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


# ============================================================================
# Enum mapping
# ============================================================================

class AlpacaOrderStatus(Enum):
    """Alpaca API order status values."""
    NEW = "new"
    PARTIALLY_FILLED = "partially_filled"
    FILLED = "filled"
    DONE_FOR_DAY = "done_for_day"
    CANCELED = "canceled"
    EXPIRED = "expired"
    REPLACED = "replaced"
    PENDING_CANCEL = "pending_cancel"
    PENDING_REPLACE = "pending_replace"
    PENDING_NEW = "pending_new"
    ACCEPTED = "accepted"
    ACCEPTED_FOR_BIDDING = "accepted_for_bidding"
    STOPPED = "stopped"
    REJECTED = "rejected"
    SUSPENDED = "suspended"
    CALCULATED = "calculated"
    HELD = "held"


# Rejected is folded into Canceled; the raw token stays available in the
# order's "alpaca_status" extension.
ALPACA_STATUS_MAP: Dict[AlpacaOrderStatus, OrderStatus] = {
    AlpacaOrderStatus.NEW: OrderStatus.SUBMITTED,
    AlpacaOrderStatus.ACCEPTED: OrderStatus.SUBMITTED,
    AlpacaOrderStatus.PENDING_NEW: OrderStatus.SUBMITTED,
    AlpacaOrderStatus.PARTIALLY_FILLED: OrderStatus.PARTIALLY_FILLED,
    AlpacaOrderStatus.FILLED: OrderStatus.FILLED,
    AlpacaOrderStatus.CANCELED: OrderStatus.CANCELED,
    AlpacaOrderStatus.EXPIRED: OrderStatus.CANCELED,
    AlpacaOrderStatus.REJECTED: OrderStatus.CANCELED,
    # Transitional or administrative states the host has no name for
    AlpacaOrderStatus.DONE_FOR_DAY: OrderStatus.SUBMITTED,
    AlpacaOrderStatus.REPLACED: OrderStatus.SUBMITTED,
    AlpacaOrderStatus.PENDING_CANCEL: OrderStatus.SUBMITTED,
    AlpacaOrderStatus.PENDING_REPLACE: OrderStatus.SUBMITTED,
    AlpacaOrderStatus.ACCEPTED_FOR_BIDDING: OrderStatus.SUBMITTED,
    AlpacaOrderStatus.STOPPED: OrderStatus.SUBMITTED,
    AlpacaOrderStatus.SUSPENDED: OrderStatus.SUBMITTED,
    AlpacaOrderStatus.CALCULATED: OrderStatus.SUBMITTED,
    AlpacaOrderStatus.HELD: OrderStatus.SUBMITTED,
}

SIDE_TO_ALPACA: Dict[OrderSide, str] = {
    OrderSide.BUY: "buy",
    OrderSide.SELL: "sell",
}

ORDER_TYPE_TO_ALPACA: Dict[OrderType, str] = {
    OrderType.MARKET: "market",
    OrderType.LIMIT: "limit",
    OrderType.STOP: "stop",
    OrderType.STOP_LIMIT: "stop_limit",
}

ALPACA_TO_ORDER_TYPE: Dict[str, OrderType] = {v: k for k, v in ORDER_TYPE_TO_ALPACA.items()}


def alpaca_to_order_status(alpaca_status: str) -> OrderStatus:
    """Convert an Alpaca status token to the host OrderStatus."""
    try:
        status = AlpacaOrderStatus(alpaca_status)
    except ValueError:
        logger.warning(f"Unknown Alpaca status: {alpaca_status}")
        return OrderStatus.SUBMITTED

    return ALPACA_STATUS_MAP[status]


def alpaca_to_order_side(token: Optional[str]) -> OrderSide:
    # Alpaca only ever reports buy or sell
    return OrderSide.BUY if token == "buy" else OrderSide.SELL


def alpaca_to_order_type(token: Optional[str]) -> OrderType:
    order_type = ALPACA_TO_ORDER_TYPE.get(token or "")
    if order_type is None:
        logger.warning(f"Unknown Alpaca order type: {token}")
        return OrderType.MARKET
    return order_type
