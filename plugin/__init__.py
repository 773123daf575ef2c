"""
Alpaca broker plugin entry points.

Exposes the dispatcher and its state so embedders can own their context:

    state = BrokerState()
    handlers = PluginHandlers(state, host_http_function)
    handlers.initialize(b'{"api_key": "...", "api_secret": "...", "is_paper": true}')

``plugin.exports`` binds the same handlers to a process-wide state.
"""

from plugin.handlers import InvalidRequestError, PluginHandlers
from plugin.state import BrokerState

__all__ = [
    'BrokerState',
    'InvalidRequestError',
    'PluginHandlers',
]
