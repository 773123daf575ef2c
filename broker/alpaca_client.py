"""
Alpaca Markets Trading API client.

Translates the host trading model to Alpaca's REST API and back.
Authentication is an API key pair sent as headers:
- APCA-API-KEY-ID: API key
- APCA-API-SECRET-KEY: API secret

Failure policy:
- Every network, HTTP or decoding failure raises AlpacaAPIError
- Unparsable amounts degrade to 0.0; the call still succeeds
- Unparsable timestamps fall back to the current time

Documentation: https://docs.alpaca.markets/
"""

import logging
import math
import random
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

from broker.alpaca_schemas import (
    ORDER_TYPE_TO_ALPACA,
    SIDE_TO_ALPACA,
    AlpacaAccount,
    AlpacaOrder,
    AlpacaPosition,
    CreateOrderBody,
    alpaca_to_order_side,
    alpaca_to_order_status,
    alpaca_to_order_type,
)
from broker.http_transport import (
    HostHttpFunction,
    HttpMethod,
    HttpRequest,
    HttpResponse,
    ResponseDecodeError,
    execute,
)
from broker.models import AccountBalance, AccountSummary, Order, OrderRequest, Position
from config.settings import (
    ACCOUNT_PATH,
    BROKER_ID,
    CLIENT_ORDER_ID_PREFIX,
    DEFAULT_TIME_IN_FORCE,
    LIVE_ACCOUNT_NAME,
    LIVE_API_URL,
    ORDERS_PATH,
    PAPER_ACCOUNT_NAME,
    PAPER_API_URL,
    POSITIONS_PATH,
    REQUEST_TIMEOUT_MS,
)

logger = logging.getLogger(__name__)


class AlpacaAPIError(Exception):
    """Alpaca request failed (transport, HTTP status or response shape)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


# ============================================================================
# Value conversion
# ============================================================================

def parse_amount(value: Optional[str]) -> float:
    """Parse an Alpaca decimal string; anything unparsable or non-finite is 0.0."""
    if value is None:
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    return amount if math.isfinite(amount) else 0.0


def parse_optional_amount(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return None
    return amount if math.isfinite(amount) else None


def format_decimal(value: float) -> str:
    """
    Render a float the way Alpaca expects decimal strings.

    Integral values drop the fractional part (10.0 -> "10"), everything
    else uses the shortest round-trip digits in plain notation
    (101.5 -> "101.5", 2e-05 -> "0.00002").
    """
    if not math.isfinite(value):
        return repr(value)
    if value.is_integer():
        return str(int(value))
    return format(Decimal(repr(value)), "f")


def parse_timestamp(value: Optional[str]) -> datetime:
    """Parse an RFC 3339 timestamp to UTC; falls back to now."""
    if value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            logger.debug(f"Unparsable timestamp from Alpaca: {value}")
        else:
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed.astimezone(timezone.utc)
    return datetime.now(timezone.utc)


def generate_client_order_id() -> str:
    """Idempotency token: prefix + 16 lowercase hex digits from 64 random bits."""
    return f"{CLIENT_ORDER_ID_PREFIX}{random.getrandbits(64):016x}"


# ============================================================================
# Client
# ============================================================================

class AlpacaClient:
    """Alpaca Trading API client bound to one key pair and one endpoint."""

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        is_paper: bool,
        host_call: HostHttpFunction,
    ):
        """
        Initialize Alpaca client.

        Args:
            api_key: Alpaca API key id
            api_secret: Alpaca API secret key
            is_paper: Paper endpoint if True, live endpoint otherwise
            host_call: Host HTTP capability used for every exchange

        Raises:
            ValueError: If key or secret is empty
        """
        if not api_key or not api_secret:
            raise ValueError("API key and secret required")

        self._api_key = api_key
        self._api_secret = api_secret
        self._host_call = host_call
        self.is_paper = is_paper
        self.base_url = PAPER_API_URL if is_paper else LIVE_API_URL

        logger.info(f"AlpacaClient initialized: url={self.base_url}, paper={is_paper}")

    def _default_headers(self) -> Dict[str, str]:
        return {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "APCA-API-KEY-ID": self._api_key,
            "APCA-API-SECRET-KEY": self._api_secret,
        }

    def _exchange(self, method: HttpMethod, path: str, body: Optional[str] = None) -> HttpResponse:
        """
        Perform exactly one HTTP exchange.

        Raises:
            AlpacaAPIError: On transport failure or any non-2xx status
        """
        response = execute(
            HttpRequest(
                method=method,
                url=f"{self.base_url}{path}",
                headers=self._default_headers(),
                body=body,
                timeout_ms=REQUEST_TIMEOUT_MS,
            ),
            self._host_call,
        )

        if not response.is_success():
            detail = response.error if response.error is not None else response.body
            raise AlpacaAPIError(f"API error {response.status}: {detail}", status_code=response.status)

        return response

    def _decode(self, response: HttpResponse, target: Any) -> Any:
        try:
            return response.parse_json(target)
        except ResponseDecodeError as e:
            raise AlpacaAPIError(str(e), status_code=response.status) from e

    def _api_get(self, path: str, target: Any) -> Any:
        return self._decode(self._exchange(HttpMethod.GET, path), target)

    def _api_post(self, path: str, body: CreateOrderBody, target: Any) -> Any:
        return self._decode(self._exchange(HttpMethod.POST, path, body.to_json()), target)

    def _api_delete(self, path: str) -> None:
        self._exchange(HttpMethod.DELETE, path)

    # ------------------------------------------------------------------
    # Accounts & positions
    # ------------------------------------------------------------------

    def get_account(self) -> AccountSummary:
        """
        Get account information, including current positions.

        A failure fetching positions is tolerated: the account is reported
        with an empty position list.

        Returns:
            AccountSummary keyed by the human-readable account number

        Raises:
            AlpacaAPIError: If the account itself cannot be fetched
        """
        account: AlpacaAccount = self._api_get(ACCOUNT_PATH, AlpacaAccount)

        try:
            positions = self.get_positions()
        except AlpacaAPIError as e:
            logger.warning(f"Positions unavailable, reporting account without them: {e}")
            positions = []

        extensions: Dict[str, Any] = {
            "account_id": account.id,
            "status": account.status,
        }
        if account.pattern_day_trader is not None:
            extensions["pattern_day_trader"] = account.pattern_day_trader
        if account.daytrade_count is not None:
            extensions["daytrade_count"] = account.daytrade_count

        return AccountSummary(
            id=account.account_number,
            name=PAPER_ACCOUNT_NAME if self.is_paper else LIVE_ACCOUNT_NAME,
            broker_id=BROKER_ID,
            is_paper=self.is_paper,
            balance=AccountBalance(
                currency=account.currency,
                total_equity=parse_amount(account.equity),
                available_cash=parse_amount(account.cash),
                buying_power=parse_amount(account.buying_power),
                locked_cash=0.0,
            ),
            positions=positions,
            updated_at=datetime.now(timezone.utc),
            extensions=extensions,
        )

    def list_accounts(self) -> List[AccountSummary]:
        """Alpaca has a single account per API key."""
        return [self.get_account()]

    def get_positions(self) -> List[Position]:
        """
        Get all open positions.

        Returns:
            Positions in broker order; shorts carry negative quantity
        """
        raw: List[AlpacaPosition] = self._api_get(POSITIONS_PATH, List[AlpacaPosition])

        positions = []
        for p in raw:
            multiplier = -1.0 if p.side == "short" else 1.0
            positions.append(Position(
                symbol_id=p.symbol,
                quantity=parse_amount(p.qty) * multiplier,
                average_price=parse_amount(p.avg_entry_price),
                current_price=parse_amount(p.current_price),
                unrealized_pnl=parse_amount(p.unrealized_pl),
                unrealized_pnl_percent=parse_amount(p.unrealized_plpc) * 100.0,
            ))
        return positions

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def submit_order(self, order: OrderRequest) -> Order:
        """
        Submit an order as a day order.

        A fresh client_order_id is generated per call. It is reported back in
        the order's extensions but not remembered, so it cannot deduplicate
        retries across calls.

        Args:
            order: Host order request

        Returns:
            Order carrying the caller's request and persona id

        Raises:
            AlpacaAPIError: If Alpaca rejects the request or the reply is malformed
        """
        body = CreateOrderBody(
            symbol=order.symbol_id,
            qty=format_decimal(order.quantity),
            side=SIDE_TO_ALPACA[order.side],
            order_type=ORDER_TYPE_TO_ALPACA[order.order_type],
            time_in_force=DEFAULT_TIME_IN_FORCE,
            limit_price=format_decimal(order.limit_price) if order.limit_price is not None else None,
            stop_price=format_decimal(order.stop_price) if order.stop_price is not None else None,
            client_order_id=generate_client_order_id(),
        )

        logger.info(
            f"Submitting {body.side} {body.qty} {body.symbol} "
            f"({body.order_type}, client_order_id={body.client_order_id})"
        )

        resp: AlpacaOrder = self._api_post(ORDERS_PATH, body, AlpacaOrder)

        return self._to_order(resp, request=order, persona_id=order.persona_id)

    def cancel_order(self, order_id: str) -> None:
        """
        Cancel an order.

        Raises:
            AlpacaAPIError: If Alpaca refuses the cancel (e.g. already filled)
        """
        self._api_delete(f"{ORDERS_PATH}/{order_id}")

    def get_order(self, order_id: str) -> Order:
        """
        Get order by ID.

        The request is rebuilt from Alpaca's view of the order; the persona
        id and time in force of the original request are not recoverable.

        Raises:
            AlpacaAPIError: If the order cannot be fetched
        """
        resp: AlpacaOrder = self._api_get(f"{ORDERS_PATH}/{order_id}", AlpacaOrder)

        request = OrderRequest(
            symbol_id=resp.symbol,
            quantity=parse_amount(resp.qty),
            side=alpaca_to_order_side(resp.side),
            order_type=alpaca_to_order_type(resp.order_type),
            limit_price=parse_optional_amount(resp.limit_price),
            stop_price=parse_optional_amount(resp.stop_price),
            persona_id="",
        )
        return self._to_order(resp, request=request, persona_id="")

    def _to_order(self, resp: AlpacaOrder, request: OrderRequest, persona_id: str) -> Order:
        return Order(
            id=resp.id,
            request=request,
            status=alpaca_to_order_status(resp.status),
            created_at=parse_timestamp(resp.created_at),
            updated_at=parse_timestamp(resp.updated_at),
            filled_quantity=parse_amount(resp.filled_qty),
            average_filled_price=parse_optional_amount(resp.filled_avg_price),
            extensions={
                "client_order_id": resp.client_order_id,
                "alpaca_status": resp.status,
            },
            persona_id=persona_id,
        )
