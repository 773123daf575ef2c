"""
Tests for the host-side trading model.
"""

import json
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from broker.models import Order, OrderRequest, OrderSide, OrderStatus, OrderType


@pytest.fixture
def request_json():
    return {
        "symbol_id": "MSFT",
        "quantity": 5,
        "side": "Sell",
        "order_type": "StopLimit",
        "limit_price": 400.0,
        "stop_price": 401.5,
        "persona_id": "persona-1",
        "extensions": {"strategy": "momo", "urgent": True, "attempt": 2, "score": 0.75},
    }


class TestOrderRequest:

    def test_decodes_variant_names(self, request_json):
        req = OrderRequest.model_validate(request_json)

        assert req.side == OrderSide.SELL
        assert req.order_type == OrderType.STOP_LIMIT
        assert req.quantity == 5.0
        assert req.reference_price is None
        assert req.time_in_force is None

    def test_extension_values_keep_their_type(self, request_json):
        req = OrderRequest.model_validate(request_json)

        assert req.extensions["urgent"] is True
        assert req.extensions["attempt"] == 2 and isinstance(req.extensions["attempt"], int)
        assert req.extensions["score"] == 0.75
        assert req.extensions["strategy"] == "momo"

    def test_nested_extension_values_rejected(self, request_json):
        request_json["extensions"] = {"nested": {"a": 1}}

        with pytest.raises(ValidationError):
            OrderRequest.model_validate(request_json)

    def test_unknown_side_rejected(self, request_json):
        request_json["side"] = "buy"

        with pytest.raises(ValidationError):
            OrderRequest.model_validate(request_json)

    def test_immutable(self, request_json):
        req = OrderRequest.model_validate(request_json)

        with pytest.raises(ValidationError):
            req.quantity = 10


class TestOrderEncoding:

    def test_json_shape(self, request_json):
        req = OrderRequest.model_validate(request_json)
        order = Order(
            id="o-1",
            request=req,
            status=OrderStatus.PARTIALLY_FILLED,
            created_at=datetime(2026, 2, 5, 14, 30, tzinfo=timezone.utc),
            updated_at=datetime(2026, 2, 5, 14, 31, tzinfo=timezone.utc),
            filled_quantity=2.0,
            persona_id="persona-1",
        )

        encoded = json.loads(order.model_dump_json())

        assert encoded["status"] == "PartiallyFilled"
        assert encoded["request"]["order_type"] == "StopLimit"
        assert encoded["created_at"] == "2026-02-05T14:30:00Z"
        assert encoded["average_filled_price"] is None
        assert encoded["extensions"] is None
