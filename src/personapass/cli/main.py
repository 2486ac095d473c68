#!/usr/bin/env python3
"""
PersonaPass CLI - inspect and manage the local identity cache.

Commands:
  personapass list                     List cached wallet identities
  personapass lookup <wallet>          Show the identity cached for a wallet
  personapass store --did D --wallet W Cache a finished registration
  personapass stats                    Show cache statistics
  personapass clear --yes              Drop every cached identity
  personapass route [--wallet W]       Show the routing verdict for a wallet
  personapass serve                    Run the HTTP service
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path

from personapass.core.config import get_config
from personapass.core.exceptions import ConfigException
from personapass.core.logging import configure_logging
from personapass.identity.cache import IdentityCache
from personapass.identity.models import IdentityRecord, RouteKind
from personapass.identity.router import AuthRouter
from personapass.identity.storage import FileStorage, storage_from_config

from .output import output_error, output_result

logger = logging.getLogger(__name__)


def build_cache(args: argparse.Namespace) -> IdentityCache:
    """Identity cache selected by flags, falling back to settings."""
    config = get_config()
    if args.storage_dir:
        storage = FileStorage(Path(args.storage_dir).expanduser())
    else:
        storage = storage_from_config(config)
    return IdentityCache(storage, config.storage_key)


# ============================================================================
# Commands
# ============================================================================


def cmd_list(args: argparse.Namespace) -> int:
    records = build_cache(args).list_all()
    output_result([r.to_dict() for r in records], args.output)
    return 0


def cmd_lookup(args: argparse.Namespace) -> int:
    record = build_cache(args).lookup(args.wallet)
    if record is None:
        output_error(f"No identity cached for wallet {args.wallet}")
        return 1
    output_result(record.to_dict(), args.output)
    return 0


def cmd_store(args: argparse.Namespace) -> int:
    cache = build_cache(args)
    record = IdentityRecord(
        did=args.did,
        wallet_address=args.wallet,
        first_name=args.first_name,
        last_name=args.last_name,
        wallet_type=args.wallet_type,
        created_at=datetime.now(UTC).isoformat(),
        tx_hash=args.tx_hash,
        block_height=args.block_height,
    )
    cache.upsert(record)
    if cache.lookup(args.wallet) != record:
        output_error(f"Identity not stored (storage {cache.status()})")
        return 1
    output_result(record.to_dict(), args.output)
    return 0


def cmd_stats(args: argparse.Namespace) -> int:
    output_result(build_cache(args).stats(), args.output)
    return 0


def cmd_clear(args: argparse.Namespace) -> int:
    if not args.yes:
        output_error("Refusing to clear the identity cache without --yes")
        return 1
    build_cache(args).clear()
    output_result({"success": True}, args.output)
    return 0


def cmd_route(args: argparse.Namespace) -> int:
    router = AuthRouter.from_address(build_cache(args), args.wallet)
    result = asyncio.run(router.determine_user_route())
    output_result(result.to_dict(), args.output)
    return 1 if result.route == RouteKind.ERROR else 0


def cmd_serve(args: argparse.Namespace) -> int:
    from personapass.server.app import run

    run()
    return 0


# ============================================================================
# Parser
# ============================================================================


def app() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="personapass",
        description="Inspect and manage the PersonaPass wallet identity cache",
    )
    parser.add_argument("--storage-dir", help="Directory of the file-backed cache (overrides settings)")
    parser.add_argument("--output", "-o", choices=["json", "text"], default="json", help="Output format")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    list_p = subparsers.add_parser("list", help="List cached wallet identities")
    list_p.set_defaults(func=cmd_list)

    lookup_p = subparsers.add_parser("lookup", help="Show the identity cached for a wallet")
    lookup_p.add_argument("wallet", help="Wallet address")
    lookup_p.set_defaults(func=cmd_lookup)

    store_p = subparsers.add_parser("store", help="Cache a finished registration")
    store_p.add_argument("--did", required=True, help="DID minted for the wallet")
    store_p.add_argument("--wallet", required=True, help="Wallet address")
    store_p.add_argument("--first-name", default="")
    store_p.add_argument("--last-name", default="")
    store_p.add_argument("--wallet-type", default="", help="Connector, e.g. keplr")
    store_p.add_argument("--tx-hash", default="", help="Registration transaction hash")
    store_p.add_argument("--block-height", type=int, default=0, help="Registration block height")
    store_p.set_defaults(func=cmd_store)

    stats_p = subparsers.add_parser("stats", help="Show cache statistics")
    stats_p.set_defaults(func=cmd_stats)

    clear_p = subparsers.add_parser("clear", help="Drop every cached identity")
    clear_p.add_argument("--yes", action="store_true", help="Confirm")
    clear_p.set_defaults(func=cmd_clear)

    route_p = subparsers.add_parser("route", help="Show the routing verdict for a wallet")
    route_p.add_argument("--wallet", default=None, help="Connected wallet address (omit for disconnected)")
    route_p.set_defaults(func=cmd_route)

    serve_p = subparsers.add_parser("serve", help="Run the HTTP service")
    serve_p.set_defaults(func=cmd_serve)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = app()
    args = parser.parse_args(argv)

    configure_logging(level="DEBUG" if args.verbose else "WARNING", json_format=False)

    try:
        return args.func(args)
    except ConfigException as e:
        output_error(e.message)
        return 2


if __name__ == "__main__":
    sys.exit(main())
