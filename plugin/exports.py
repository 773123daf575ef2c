"""
Host boundary.

The embedding host calls these functions with a request buffer and gets a
response buffer back (JSON in, JSON out). They are bound to one
process-wide BrokerState; tests and other embedders should build their own
PluginHandlers instead.

Usage:
    from plugin import exports

    exports.configure_host(host_http_function)
    buf = exports.alloc(len(request))
    buf[:] = request
    response = exports.initialize(buf)
"""

import logging

from broker.http_transport import HostHttpFunction, RequestsHostHttp
from plugin.handlers import Buffer, PluginHandlers
from plugin.state import BrokerState

logger = logging.getLogger(__name__)


class _FallbackHost:
    """Direct requests transport used until the host installs its own."""

    def __init__(self):
        self.transport = RequestsHostHttp()
        self.warned = False

    def __call__(self, payload: bytes) -> bytes:
        if not self.warned:
            logger.warning("No host HTTP capability configured; calling Alpaca directly over requests")
            self.warned = True
        return self.transport(payload)


_handlers = PluginHandlers(BrokerState(), _FallbackHost())


def configure_host(host_call: HostHttpFunction) -> None:
    """Install the host's HTTP capability. Takes effect for existing clients too."""
    _handlers.host_call = host_call
    logger.debug("Host HTTP capability installed")


def reset_state() -> None:
    """Drop the client and the order cache (plugin reload)."""
    _handlers.state = BrokerState()
    logger.info("Plugin state reset")


def alloc(length: int) -> bytearray:
    """Zeroed, writable buffer for the host to place request bytes in."""
    if length < 0:
        raise ValueError(f"Buffer length must be non-negative: {length}")
    return bytearray(length)


def initialize(payload: Buffer) -> bytes:
    return _handlers.initialize(payload)


def get_accounts(payload: Buffer) -> bytes:
    return _handlers.get_accounts(payload)


def get_positions(payload: Buffer) -> bytes:
    return _handlers.get_positions(payload)


def submit_order(payload: Buffer) -> bytes:
    return _handlers.submit_order(payload)


def cancel_order(payload: Buffer) -> bytes:
    return _handlers.cancel_order(payload)


def get_order(payload: Buffer) -> bytes:
    return _handlers.get_order(payload)
