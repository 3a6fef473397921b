"""
Command-line desk for the Deribit testnet.

Usage:
    python -m deribit_desk test
    python -m deribit_desk order-book BTC-PERPETUAL --depth 10
    python -m deribit_desk buy BTC-PERPETUAL --type limit --label demo --amount 10 --price 50000
    python -m deribit_desk cancel <order_id>

Private commands authenticate first with DERIBIT_CLIENT_ID / DERIBIT_CLIENT_SECRET.
"""
from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Callable, Dict, List, Optional

from deribit_desk.calls import CallResult
from deribit_desk.config import settings
from deribit_desk.deribit_client import DeskClient
from deribit_desk.healthcheck import run_healthcheck
from deribit_desk.logging_utils import setup_logging
from deribit_desk.models import ORDER_BOOK_DEPTHS, ORDER_KINDS, OPEN_ORDER_TYPES, OrderRequest

PRIVATE_COMMANDS = {"position", "open-orders", "buy", "edit", "cancel"}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="deribit_desk",
        description="Deribit testnet trading desk",
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    parser.add_argument("--base-url", default=None, help="Override DERIBIT_BASE_URL")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("test", help="Test API connectivity")

    instruments = sub.add_parser("instruments", help="List instrument names")
    instruments.add_argument("--currency", default="any")

    book = sub.add_parser("order-book", help="Show an order book")
    book.add_argument("instrument")
    book.add_argument(
        "--depth",
        type=int,
        choices=ORDER_BOOK_DEPTHS,
        default=settings.default_order_book_depth,
    )

    position = sub.add_parser("position", help="Show the position in an instrument")
    position.add_argument("instrument")

    open_orders = sub.add_parser("open-orders", help="List open orders")
    open_orders.add_argument("--kind", choices=ORDER_KINDS, default="future")
    open_orders.add_argument("--type", dest="order_type", choices=OPEN_ORDER_TYPES, default="all")

    buy = sub.add_parser("buy", help="Place a buy order")
    buy.add_argument("instrument")
    buy.add_argument("--type", dest="order_type", default="limit")
    buy.add_argument("--label", required=True)
    buy.add_argument("--amount", type=float, default=None)
    buy.add_argument("--contracts", type=float, default=None)
    buy.add_argument("--price", type=float, default=None)

    edit = sub.add_parser("edit", help="Modify an open order")
    edit.add_argument("order_id")
    edit.add_argument("--amount", type=float, default=None)
    edit.add_argument("--contracts", type=float, default=None)

    cancel = sub.add_parser("cancel", help="Cancel an open order")
    cancel.add_argument("order_id")

    sub.add_parser("health", help="Run the desk healthcheck")

    return parser


def _commands(args: argparse.Namespace) -> Dict[str, Callable[[DeskClient], CallResult]]:
    return {
        "test": lambda c: c.test_connectivity(),
        "instruments": lambda c: c.list_instruments(args.currency),
        "order-book": lambda c: c.get_order_book(args.instrument, args.depth),
        "position": lambda c: c.get_position(args.instrument),
        "open-orders": lambda c: c.get_open_orders(args.kind, args.order_type),
        "buy": lambda c: c.place_order(OrderRequest(
            instrument_name=args.instrument,
            type=args.order_type,
            label=args.label,
            amount=args.amount,
            contracts=args.contracts,
            price=args.price,
        )),
        "edit": lambda c: c.modify_order(args.order_id, amount=args.amount, contracts=args.contracts),
        "cancel": lambda c: c.cancel_order(args.order_id),
    }


def _emit(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=str))


def main(argv: Optional[List[str]] = None, client: Optional[DeskClient] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    if args.command == "health":
        report = run_healthcheck(client=client)
        _emit(report)
        return 0 if report["overall_status"] != "FAIL" else 1

    owns_client = client is None
    if client is None:
        client = DeskClient(base_url=args.base_url)

    try:
        if args.command in PRIVATE_COMMANDS and not client.is_authenticated:
            auth = client.authenticate()
            if not auth.ok:
                _emit(auth.to_dict())
                return 1

        result = _commands(args)[args.command](client)
        _emit(result.to_dict())
        return 0 if result.ok else 1
    finally:
        if owns_client:
            client.close()


if __name__ == "__main__":
    sys.exit(main())
