"""Shared fixtures: a fake host HTTP capability and canned Alpaca payloads."""

import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlsplit

import pytest

# Ensure root project directory is first in path
root = Path(__file__).parent.parent
if str(root) not in sys.path:
    sys.path.insert(0, str(root))


class FakeHost:
    """
    Host HTTP capability that replays canned replies.

    Replies are keyed by (method, path). Unknown routes answer 404.
    Every decoded request is recorded in ``requests``.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self.requests: List[Dict[str, Any]] = []

    def reply(
        self,
        method: str,
        path: str,
        body: Any = None,
        status: int = 200,
        error: Optional[str] = None,
    ) -> None:
        if body is None:
            text = ""
        elif isinstance(body, str):
            text = body
        else:
            text = json.dumps(body)
        self.routes[(method, path)] = {
            "status": status,
            "headers": {"Content-Type": "application/json"},
            "body": text,
            "error": error,
        }

    def __call__(self, payload: bytes) -> bytes:
        request = json.loads(payload)
        self.requests.append(request)
        key = (request["method"], urlsplit(request["url"]).path)
        reply = self.routes.get(key, {
            "status": 404,
            "headers": {},
            "body": '{"code":40410000,"message":"not found"}',
            "error": None,
        })
        return json.dumps(reply).encode("utf-8")

    def last_request(self) -> Dict[str, Any]:
        return self.requests[-1]


@pytest.fixture
def fake_host():
    return FakeHost()


@pytest.fixture
def alpaca_account():
    return {
        "id": "904837e3-3b76-47ec-b432-046db621571b",
        "account_number": "PA3ABCDEFGH1",
        "status": "ACTIVE",
        "currency": "USD",
        "cash": "25000.50",
        "portfolio_value": "103820.56",
        "buying_power": "50001.00",
        "equity": "103820.56",
        "last_equity": "103529.24",
        "daytrade_count": 2,
        "pattern_day_trader": False,
        "trading_blocked": False,
    }


@pytest.fixture
def alpaca_positions():
    return [
        {
            "asset_id": "b0b6dd9d-8b9b-48a9-ba46-b9d54906e415",
            "symbol": "AAPL",
            "qty": "10",
            "avg_entry_price": "150.25",
            "current_price": "155.00",
            "market_value": "1550.00",
            "unrealized_pl": "47.50",
            "unrealized_plpc": "0.0316",
            "side": "long",
        },
        {
            "asset_id": "8ccae427-5dd0-45b3-b5fe-7ba5e422c766",
            "symbol": "TSLA",
            "qty": "10",
            "avg_entry_price": "200.00",
            "current_price": "190.00",
            "market_value": "-1900.00",
            "unrealized_pl": "100.00",
            "unrealized_plpc": "0.05",
            "side": "short",
        },
    ]


@pytest.fixture
def alpaca_order():
    return {
        "id": "61e69015-8549-4bfd-b9c3-01e75843f47d",
        "client_order_id": "KL0123456789abcdef",
        "created_at": "2026-02-05T14:30:01.123456Z",
        "updated_at": "2026-02-05T14:30:02.654321Z",
        "submitted_at": "2026-02-05T14:30:01.123456Z",
        "filled_at": None,
        "symbol": "AAPL",
        "qty": "10",
        "filled_qty": "0",
        "filled_avg_price": None,
        "order_type": "limit",
        "type": "limit",
        "side": "buy",
        "time_in_force": "day",
        "limit_price": "101.5",
        "stop_price": None,
        "status": "accepted",
    }
