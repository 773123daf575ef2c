"""
Host-side trading model.

These are the shapes the host platform speaks, independent of any broker:
accounts, balances, positions, order requests and orders. All models are
immutable (frozen); updated copies are made with ``model_copy``.

JSON encoding:
- Enums by variant name ("Buy", "StopLimit", "PartiallyFilled")
- Timestamps as RFC 3339 UTC
- Absent optionals as null
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictFloat, StrictInt, StrictStr

# Broker-specific metadata. Order matters: bool before int so JSON true
# never decays to 1.
ExtensionValue = Union[StrictBool, StrictInt, StrictFloat, StrictStr]
Extensions = Dict[str, ExtensionValue]


class OrderSide(str, Enum):
    """Order direction."""
    BUY = "Buy"
    SELL = "Sell"


class OrderType(str, Enum):
    """Order type."""
    MARKET = "Market"
    LIMIT = "Limit"
    STOP = "Stop"
    STOP_LIMIT = "StopLimit"


class OrderStatus(str, Enum):
    """Order lifecycle status as seen by the host."""
    SUBMITTED = "Submitted"                # Accepted by broker, awaiting fill
    PARTIALLY_FILLED = "PartiallyFilled"
    FILLED = "Filled"
    CANCELED = "Canceled"                  # Canceled, expired or rejected upstream
    REJECTED = "Rejected"                  # Never reached the broker


class _HostModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class AccountBalance(_HostModel):
    currency: str
    total_equity: float = 0.0
    available_cash: float = 0.0
    buying_power: float = 0.0
    locked_cash: float = 0.0


class Position(_HostModel):
    """Open position; quantity is negative for shorts."""
    symbol_id: str
    quantity: float
    average_price: float = 0.0
    current_price: float = 0.0
    unrealized_pnl: float = 0.0
    unrealized_pnl_percent: float = 0.0


class AccountSummary(_HostModel):
    id: str
    name: str
    broker_id: str
    is_paper: bool
    balance: AccountBalance
    positions: List[Position] = Field(default_factory=list)
    updated_at: datetime
    extensions: Optional[Extensions] = None


class OrderRequest(_HostModel):
    """Order as requested by the host, before the broker has seen it."""
    symbol_id: str
    quantity: float
    side: OrderSide
    order_type: OrderType
    limit_price: Optional[float] = None
    stop_price: Optional[float] = None
    reference_price: Optional[float] = None
    time_in_force: Optional[str] = None
    extensions: Optional[Extensions] = None
    persona_id: str = ""


class Order(_HostModel):
    """Order as tracked by the broker."""
    id: str
    request: OrderRequest
    status: OrderStatus
    created_at: datetime
    updated_at: datetime
    filled_quantity: float = 0.0
    average_filled_price: Optional[float] = None
    extensions: Optional[Extensions] = None
    persona_id: str = ""
