#!/usr/bin/env python3
"""
Command line runner for the guide's walkthroughs.

Usage:
    mongo-session ping
    mongo-session crud
    mongo-session indexes
    mongo-session aggregate
    mongo-session --host localhost --username usuario --password micontraseña all
"""

import argparse
import asyncio
import json
import sys
from typing import Any, Dict, List, Optional

from pydantic import SecretStr

from mongo_session.database.connection import ConnectionDescriptor
from mongo_session.database.session import database_session
from mongo_session.guide import run_aggregation_demo, run_crud_demo, run_index_demo
from mongo_session.managers.logging_manager import get_logger

logger = get_logger(prefix="[CLI]")


def build_descriptor(args: argparse.Namespace) -> ConnectionDescriptor:
    """
    Start from settings and apply any connection flags given on the command line.

    Raises:
        `pydantic.ValidationError`: If a flag holds an invalid value (e.g. `--port 0`).
    """
    overrides: Dict[str, Any] = {}
    for field in ("url", "host", "port", "username", "auth_source", "database"):
        value = getattr(args, field)
        if value is not None:
            overrides[field] = value
    if args.password is not None:
        overrides["password"] = SecretStr(args.password)

    descriptor = ConnectionDescriptor.from_settings()
    if not overrides:
        return descriptor
    return ConnectionDescriptor.model_validate({**descriptor.model_dump(), **overrides})


async def run_command(command: str, descriptor: ConnectionDescriptor) -> Dict[str, Any]:
    async with database_session(descriptor) as session:
        if command == "ping":
            return {"ok": await session.health_check(), "database": descriptor.database}
        if command == "crud":
            return await run_crud_demo(session)
        if command == "indexes":
            return await run_index_demo(session)
        if command == "aggregate":
            return await run_aggregation_demo(session)
        if command == "all":
            return {
                "crud": await run_crud_demo(session),
                "indexes": await run_index_demo(session),
                "aggregate": await run_aggregation_demo(session),
            }
    raise ValueError(f"Unknown command: {command}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="MongoDB from Python: guide walkthroughs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--url", help="Full connection string (overrides host/port)")
    parser.add_argument("--host", help="MongoDB host (default: MONGODB_HOST)")
    parser.add_argument("--port", type=int, help="MongoDB port (default: MONGODB_PORT)")
    parser.add_argument("--username", help="Username (default: MONGODB_USERNAME)")
    parser.add_argument("--password", help="Password (default: MONGODB_PASSWORD)")
    parser.add_argument("--auth-source", help="Authentication database (default: MONGODB_AUTH_SOURCE)")
    parser.add_argument("--database", help="Database to use (default: MONGODB_DATABASE)")

    subparsers = parser.add_subparsers(dest="command", help="Walkthrough to run")
    subparsers.add_parser("ping", help="Check that the server answers")
    subparsers.add_parser("crud", help="Insert, query, update and delete sample books")
    subparsers.add_parser("indexes", help="Create and verify the sample indexes")
    subparsers.add_parser("aggregate", help="Run the sample aggregation pipelines")
    subparsers.add_parser("all", help="Run every walkthrough in order")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point. Returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        descriptor = build_descriptor(args)
        result = asyncio.run(run_command(args.command, descriptor))
    except Exception as e:
        logger.error("Command '%s' failed: %s", args.command, e)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2, ensure_ascii=False, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
