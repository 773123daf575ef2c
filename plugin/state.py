"""
Adapter state shared by all entry points.

Holds at most one configured AlpacaClient and the local cache of submitted
orders. Every access goes through ``BrokerState.locked()`` so no caller can
observe a half-replaced client or a partial cache insert.

Client slot:
    Uninitialized --initialize(ok)--> Ready --initialize(ok)--> Ready
A failed initialize leaves the slot as it was.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from broker.alpaca_client import AlpacaClient
from broker.models import Order

logger = logging.getLogger(__name__)


class BrokerState:
    """Client slot plus order cache, guarded by one lock."""

    def __init__(self):
        self.client: Optional[AlpacaClient] = None
        self.orders: Dict[str, Order] = {}
        self._lock = threading.Lock()

    @contextmanager
    def locked(self) -> Iterator["BrokerState"]:
        """Hold the state lock; released even if the body raises."""
        with self._lock:
            yield self

    @property
    def is_ready(self) -> bool:
        return self.client is not None

    def install_client(self, client: AlpacaClient) -> None:
        """Replace the client wholesale. Caller holds the lock."""
        if self.client is not None:
            logger.info(
                f"Replacing Alpaca client (paper={self.client.is_paper} -> paper={client.is_paper})"
            )
        self.client = client

    def record_order(self, order: Order) -> None:
        """Remember the latest snapshot of an order. Caller holds the lock."""
        self.orders[order.id] = order

    def cached_order(self, order_id: str) -> Optional[Order]:
        return self.orders.get(order_id)
