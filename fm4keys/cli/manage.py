"""Operator CLI for the program key catalog.

Usage::

    # Create the database and schema
    python -m fm4keys.cli.manage init-db

    # Run one collection pass outside the server
    python -m fm4keys.cli.manage scrape --cycle current
    python -m fm4keys.cli.manage scrape --cycle all

    # Inspect the catalog
    python -m fm4keys.cli.manage stats
    python -m fm4keys.cli.manage list

Reads the same configuration as the server (``.env`` + ``config/config.yaml``).
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import datetime, timezone

import httpx

from fm4keys.config.loader import RuntimeConfig, build_runtime_config, load_config
from fm4keys.models.collection import CycleName
from fm4keys.providers.store.sqlite_key_store import SQLiteKeyStore
from fm4keys.utils.errors import KeyServerError


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


async def _handle_init_db(runtime: RuntimeConfig, args: argparse.Namespace) -> int:
    """Ensure the schema exists."""
    store = SQLiteKeyStore(db_path=runtime.database_path)
    await store.initialize()
    await store.close()
    print("Database initialized successfully")
    print(f"Database location: {store.db_path}")
    return 0


async def _handle_scrape(runtime: RuntimeConfig, args: argparse.Namespace) -> int:
    """Run one pass of the selected cycle(s) and print the reports."""
    from fm4keys.providers.upstream.fm4_api_provider import FM4APIProvider
    from fm4keys.services.collector import ProgramKeyCollector

    cycles = list(CycleName) if args.cycle == "all" else [CycleName(args.cycle)]

    store = SQLiteKeyStore(db_path=runtime.database_path)
    await store.initialize()
    try:
        async with httpx.AsyncClient(timeout=runtime.request_timeout, follow_redirects=True) as client:
            upstream = FM4APIProvider(
                http_client=client,
                base_url=runtime.base_url,
                current_path=runtime.current_path,
                schedule_path=runtime.schedule_path,
                timeout=runtime.request_timeout,
                user_agent=runtime.user_agent,
            )
            collector = ProgramKeyCollector(upstream=upstream, store=store)

            failed = 0
            for cycle in cycles:
                report = await collector.run(cycle)
                if report.ok:
                    line = f"[{cycle.value}] found {report.found} key(s), merged {report.merged}"
                    if report.warning:
                        line += f" (warning: {report.warning})"
                    print(line)
                else:
                    failed += 1
                    print(f"[{cycle.value}] failed: {report.error}", file=sys.stderr)
    finally:
        await store.close()

    return 1 if failed else 0


async def _handle_stats(runtime: RuntimeConfig, args: argparse.Namespace) -> int:
    store = SQLiteKeyStore(db_path=runtime.database_path)
    await store.initialize()
    try:
        stats = await store.get_stats()
    finally:
        await store.close()

    print(f"Total keys:         {stats.total_keys}")
    print(f"Seen in last 24h:   {stats.recent_keys}")
    print(f"Last update:        {_format_ts(stats.last_update)}")
    return 0


async def _handle_list(runtime: RuntimeConfig, args: argparse.Namespace) -> int:
    store = SQLiteKeyStore(db_path=runtime.database_path)
    await store.initialize()
    try:
        records = await store.get_all()
    finally:
        await store.close()

    if not records:
        print("No program keys discovered yet.")
        return 0

    width = max(len(r.program_key) for r in records)
    for record in records:
        label = record.title or record.description or "-"
        print(f"{record.program_key:<{width}}  {label}  (last seen {_format_ts(record.last_seen)})")
    print(f"\n{len(records)} program key(s)")
    return 0


def _format_ts(value: int | None) -> str:
    if value is None:
        return "never"
    return datetime.fromtimestamp(value, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


_HANDLERS = {
    "init-db": _handle_init_db,
    "scrape": _handle_scrape,
    "stats": _handle_stats,
    "list": _handle_list,
}


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fm4keys",
        description="Manage the FM4 program key catalog.",
    )
    parser.add_argument(
        "--config",
        default="config/config.yaml",
        help="Path to the YAML config file (default: config/config.yaml)",
    )
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("init-db", help="Create the database and schema")

    scrape_parser = subparsers.add_parser("scrape", help="Run one collection pass")
    scrape_parser.add_argument(
        "--cycle",
        choices=[c.value for c in CycleName] + ["all"],
        default="all",
        help="Which upstream resource to collect (default: all)",
    )

    subparsers.add_parser("stats", help="Show catalog statistics")
    subparsers.add_parser("list", help="List every discovered program key")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def run(argv: list[str] | None = None) -> int:
    """Parse ``argv`` and execute the chosen subcommand.  Returns the exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    try:
        runtime = build_runtime_config(load_config(args.config))
        return asyncio.run(_HANDLERS[args.command](runtime, args))
    except KeyServerError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


def main() -> None:
    """CLI entry point."""
    sys.exit(run())


if __name__ == "__main__":
    main()
