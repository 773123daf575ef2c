"""
Request and response envelopes exchanged with the host.

Every entry point takes one JSON document and returns one JSON document.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from broker.models import AccountSummary, Order, OrderRequest, Position


class InitializeRequest(BaseModel):
    """
    A key or secret that is not a string counts as missing. Any
    ``is_paper`` other than a JSON ``false`` means paper trading.
    """
    api_key: Optional[Any] = None
    api_secret: Optional[Any] = None
    is_paper: Optional[Any] = None

    @property
    def key(self) -> str:
        return self.api_key if isinstance(self.api_key, str) else ""

    @property
    def secret(self) -> str:
        return self.api_secret if isinstance(self.api_secret, str) else ""

    @property
    def paper(self) -> bool:
        # Only a JSON boolean false selects the live endpoint
        return self.is_paper is not False


class SubmitOrderRequest(BaseModel):
    order: OrderRequest


class OrderIdRequest(BaseModel):
    order_id: str


class StatusResponse(BaseModel):
    """
    Success/failure acknowledgement.

    Serialized without empty keys, so a success carries only
    ``success`` plus its payload keys and a failure only ``success``/``error``.
    """
    success: bool
    message: Optional[str] = None
    order_id: Optional[str] = None
    order: Optional[Order] = None
    error: Optional[str] = None
    requires_auth: Optional[bool] = None

    def to_payload(self) -> Dict[str, Any]:
        # Drop unset keys at the top level only; a nested order keeps its nulls
        return {k: v for k, v in self.model_dump(mode="json").items() if v is not None}


class GetAccountsResponse(BaseModel):
    accounts: List[AccountSummary] = Field(default_factory=list)


class GetPositionsResponse(BaseModel):
    positions: List[Position] = Field(default_factory=list)


class SubmitOrderResponse(BaseModel):
    order: Order
