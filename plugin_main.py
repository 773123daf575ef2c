#!/usr/bin/env python3
"""
Operator CLI for the Alpaca broker plugin.

Drives the plugin through the same byte-level entry points the host uses,
with a requests-backed HTTP capability and credentials from the environment
(or a .env file).

Usage:
  python plugin_main.py accounts
  python plugin_main.py positions
  python plugin_main.py order AAPL 10 buy --type limit --limit 101.5 --persona p1
  python plugin_main.py cancel <order_id>
  python plugin_main.py status <order_id>
  python plugin_main.py --live accounts       # live endpoint (real money)
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from broker.http_transport import RequestsHostHttp
from broker.models import OrderRequest, OrderSide, OrderType
from config.credentials import load_credentials_from_env
from config.settings import LOG_DATE_FORMAT, LOG_FORMAT, LOG_LEVEL
from plugin.handlers import PluginHandlers
from plugin.state import BrokerState

_SIDES = {"buy": OrderSide.BUY, "sell": OrderSide.SELL}
_TYPES = {
    "market": OrderType.MARKET,
    "limit": OrderType.LIMIT,
    "stop": OrderType.STOP,
    "stop_limit": OrderType.STOP_LIMIT,
}


def setup_logging(level: int = LOG_LEVEL) -> logging.Logger:
    """Configure console logging for the CLI."""
    root = logging.getLogger()
    root.setLevel(level)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))

    # Remove any existing handlers to avoid duplicates
    root.handlers.clear()
    root.addHandler(handler)

    return logging.getLogger("plugin_main")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Alpaca broker plugin CLI")
    parser.add_argument("--live", action="store_true", help="Use the live endpoint instead of paper")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("accounts", help="Show the account summary")
    sub.add_parser("positions", help="List open positions")

    order = sub.add_parser("order", help="Submit a day order")
    order.add_argument("symbol")
    order.add_argument("quantity", type=float)
    order.add_argument("side", choices=sorted(_SIDES))
    order.add_argument("--type", dest="order_type", choices=sorted(_TYPES), default="market")
    order.add_argument("--limit", type=float, default=None, help="Limit price")
    order.add_argument("--stop", type=float, default=None, help="Stop price")
    order.add_argument("--persona", default="cli", help="Persona id recorded on the order")

    cancel = sub.add_parser("cancel", help="Cancel an order")
    cancel.add_argument("order_id")

    status = sub.add_parser("status", help="Fetch an order")
    status.add_argument("order_id")

    return parser


def _order_payload(args: argparse.Namespace) -> bytes:
    request = OrderRequest(
        symbol_id=args.symbol.upper(),
        quantity=args.quantity,
        side=_SIDES[args.side],
        order_type=_TYPES[args.order_type],
        limit_price=args.limit,
        stop_price=args.stop,
        persona_id=args.persona,
    )
    return json.dumps({"order": request.model_dump(mode="json")}).encode("utf-8")


def run(args: argparse.Namespace, handlers: PluginHandlers) -> int:
    """Initialize the plugin and dispatch one command. Returns the exit code."""
    logger = logging.getLogger("plugin_main")

    credentials = load_credentials_from_env(is_paper=not args.live)
    init = json.loads(handlers.initialize(credentials.to_initialize_payload()))
    if not init["success"]:
        logger.error(init["error"])
        return 2
    logger.info(init["message"])

    if args.command == "accounts":
        response = handlers.get_accounts(b"")
    elif args.command == "positions":
        response = handlers.get_positions(b"")
    elif args.command == "order":
        response = handlers.submit_order(_order_payload(args))
    elif args.command == "cancel":
        response = handlers.cancel_order(json.dumps({"order_id": args.order_id}).encode("utf-8"))
    else:
        response = handlers.get_order(json.dumps({"order_id": args.order_id}).encode("utf-8"))

    print(json.dumps(json.loads(response), indent=2))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else LOG_LEVEL)

    host = RequestsHostHttp()
    try:
        return run(args, PluginHandlers(BrokerState(), host))
    finally:
        host.close()


if __name__ == "__main__":
    sys.exit(main())
