"""
Entry-point dispatcher.

Each handler:
1. Decodes the host's request bytes (malformed input raises InvalidRequestError)
2. Takes the state lock
3. Delegates to the AlpacaClient
4. Encodes a response, always well-formed

Client failures are never surfaced as exceptions. They become error-shaped
payloads: an account named "Error: ...", an empty position list, a Rejected
order carrying an "error" extension, or ``{"success": false, "error": ...}``.
The failure itself goes to the log.
"""

import json
import logging
import time
from datetime import datetime, timezone
from typing import Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from broker.alpaca_client import AlpacaAPIError, AlpacaClient
from broker.http_transport import HostHttpFunction
from broker.models import AccountBalance, AccountSummary, Order, OrderRequest, OrderStatus
from config.settings import BROKER_ID, DEFAULT_CURRENCY
from plugin.messages import (
    GetAccountsResponse,
    GetPositionsResponse,
    InitializeRequest,
    OrderIdRequest,
    StatusResponse,
    SubmitOrderRequest,
    SubmitOrderResponse,
)
from plugin.state import BrokerState

logger = logging.getLogger(__name__)

Buffer = Union[bytes, bytearray, memoryview]
RequestT = TypeVar("RequestT", bound=BaseModel)

NOT_INITIALIZED = "Plugin not initialized"
NOT_INITIALIZED_ACCOUNT = "Plugin not initialized. Provide api_key and api_secret."
MISSING_CREDENTIALS = "Missing required configuration: api_key and api_secret"


class InvalidRequestError(ValueError):
    """Host sent a request buffer that does not decode. A contract violation."""
    pass


# ============================================================================
# Codec helpers
# ============================================================================

def decode_request(payload: Buffer, model: Type[RequestT]) -> RequestT:
    try:
        return model.model_validate_json(bytes(payload))
    except ValidationError as e:
        raise InvalidRequestError(f"Malformed {model.__name__}: {e}") from e


def check_ignored_request(payload: Buffer) -> None:
    """Requests whose content is ignored may be empty, but not garbage."""
    data = bytes(payload).strip()
    if not data:
        return
    try:
        json.loads(data)
    except ValueError as e:
        raise InvalidRequestError(f"Malformed request: {e}") from e


def encode_response(response: BaseModel) -> bytes:
    if isinstance(response, StatusResponse):
        return json.dumps(response.to_payload()).encode("utf-8")
    return response.model_dump_json().encode("utf-8")


# ============================================================================
# Placeholders
# ============================================================================

def error_account(error: str) -> AccountSummary:
    """Stand-in account that carries an error message in its name."""
    return AccountSummary(
        id="error",
        name=f"Error: {error}",
        broker_id=BROKER_ID,
        is_paper=True,
        balance=AccountBalance(currency=DEFAULT_CURRENCY),
        positions=[],
        updated_at=datetime.now(timezone.utc),
        extensions=None,
    )


def error_order(request: OrderRequest, error: str) -> Order:
    """Rejected order that never reached the broker."""
    now = datetime.now(timezone.utc)
    return Order(
        id=f"error_{int(time.time() * 1000)}",
        request=request,
        status=OrderStatus.REJECTED,
        created_at=now,
        updated_at=now,
        filled_quantity=0.0,
        average_filled_price=None,
        extensions={"error": error},
        persona_id=request.persona_id,
    )


# ============================================================================
# Handlers
# ============================================================================

class PluginHandlers:
    """The plugin's entry points, bound to an explicit state and host capability."""

    def __init__(self, state: BrokerState, host_call: HostHttpFunction):
        self.state = state
        self.host_call = host_call

    def _call_host(self, payload: bytes) -> bytes:
        # Late-bound so a host capability swapped after initialize is honored
        return self.host_call(payload)

    def initialize(self, payload: Buffer) -> bytes:
        """Configure the client from ``{api_key, api_secret, is_paper}``."""
        req = decode_request(payload, InitializeRequest)

        if not req.key or not req.secret:
            logger.warning("initialize rejected: api_key and api_secret are required")
            return encode_response(StatusResponse(
                success=False,
                error=MISSING_CREDENTIALS,
                requires_auth=True,
            ))

        client = AlpacaClient(req.key, req.secret, req.paper, self._call_host)
        with self.state.locked() as state:
            state.install_client(client)

        mode = "paper" if req.paper else "live"
        return encode_response(StatusResponse(
            success=True,
            message=f"Alpaca plugin initialized ({mode})",
        ))

    def get_accounts(self, payload: Buffer) -> bytes:
        check_ignored_request(payload)

        with self.state.locked() as state:
            if state.client is None:
                return encode_response(GetAccountsResponse(
                    accounts=[error_account(NOT_INITIALIZED_ACCOUNT)],
                ))

            try:
                accounts = state.client.list_accounts()
            except AlpacaAPIError as e:
                logger.error(f"Failed to fetch accounts: {e}")
                accounts = [error_account(str(e))]

        return encode_response(GetAccountsResponse(accounts=accounts))

    def get_positions(self, payload: Buffer) -> bytes:
        check_ignored_request(payload)

        with self.state.locked() as state:
            if state.client is None:
                return encode_response(GetPositionsResponse(positions=[]))

            try:
                positions = state.client.get_positions()
            except AlpacaAPIError as e:
                logger.error(f"Failed to fetch positions: {e}")
                positions = []

        return encode_response(GetPositionsResponse(positions=positions))

    def submit_order(self, payload: Buffer) -> bytes:
        """
        Submit ``{order: OrderRequest}``.

        Successful orders are cached by id and get the caller's persona id
        if the broker did not supply one.
        """
        req = decode_request(payload, SubmitOrderRequest)

        with self.state.locked() as state:
            if state.client is None:
                return encode_response(SubmitOrderResponse(
                    order=error_order(req.order, NOT_INITIALIZED),
                ))

            try:
                order = state.client.submit_order(req.order)
            except AlpacaAPIError as e:
                logger.error(f"Order failed: {e}")
                return encode_response(SubmitOrderResponse(order=error_order(req.order, str(e))))

            # No-op while AlpacaClient.submit_order copies the request persona itself
            if not order.persona_id:
                order = order.model_copy(update={"persona_id": req.order.persona_id})
            state.record_order(order)

        logger.info(f"Order {order.id} accepted: {order.status.value}")
        return encode_response(SubmitOrderResponse(order=order))

    def cancel_order(self, payload: Buffer) -> bytes:
        req = decode_request(payload, OrderIdRequest)

        with self.state.locked() as state:
            if state.client is None:
                return encode_response(StatusResponse(success=False, error=NOT_INITIALIZED))

            try:
                state.client.cancel_order(req.order_id)
            except AlpacaAPIError as e:
                logger.warning(f"Cancel failed for {req.order_id}: {e}")
                return encode_response(StatusResponse(success=False, error=str(e)))

        return encode_response(StatusResponse(success=True, order_id=req.order_id))

    def get_order(self, payload: Buffer) -> bytes:
        """
        Fetch ``{order_id}`` from the broker.

        Alpaca does not know the persona; if the order was submitted through
        this process, the persona id is restored from the order cache.
        """
        req = decode_request(payload, OrderIdRequest)

        with self.state.locked() as state:
            if state.client is None:
                return encode_response(StatusResponse(success=False, error=NOT_INITIALIZED))

            try:
                order = state.client.get_order(req.order_id)
            except AlpacaAPIError as e:
                logger.warning(f"Order lookup failed for {req.order_id}: {e}")
                return encode_response(StatusResponse(success=False, error=str(e)))

            cached = state.cached_order(order.id)

        if cached is not None and not order.persona_id:
            order = order.model_copy(update={"persona_id": cached.persona_id})

        return encode_response(StatusResponse(success=True, order=order))
