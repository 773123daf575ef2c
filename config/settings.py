"""
Configuration and constants for the Alpaca broker plugin.

All endpoint, timeout and identity constants live here so the client,
the dispatcher and the CLI agree on them.
"""

import logging

# ============================================================================
# ALPACA ENDPOINTS
# ============================================================================
LIVE_API_URL = "https://api.alpaca.markets"
PAPER_API_URL = "https://paper-api.alpaca.markets"

ACCOUNT_PATH = "/v2/account"
POSITIONS_PATH = "/v2/positions"
ORDERS_PATH = "/v2/orders"

# ============================================================================
# HTTP SETTINGS
# ============================================================================
REQUEST_TIMEOUT_MS = 30000       # Per exchange, no retries
ERROR_BODY_PREVIEW_CHARS = 200   # Raw body excerpt embedded in decode errors

# ============================================================================
# PLUGIN IDENTITY
# ============================================================================
BROKER_ID = "broker-alpaca"
DEFAULT_CURRENCY = "USD"
PAPER_ACCOUNT_NAME = "Alpaca Paper"
LIVE_ACCOUNT_NAME = "Alpaca Live"

# ============================================================================
# ORDER DEFAULTS
# ============================================================================
DEFAULT_TIME_IN_FORCE = "day"
CLIENT_ORDER_ID_PREFIX = "KL"    # Followed by 16 lowercase hex digits

# ============================================================================
# ENVIRONMENT VARIABLES (CLI only; the host passes credentials explicitly)
# ============================================================================
ENV_API_KEY = "APCA_API_KEY_ID"
ENV_API_SECRET = "APCA_API_SECRET_KEY"
ENV_PAPER = "APCA_PAPER"

# ============================================================================
LOG_LEVEL = logging.INFO
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
