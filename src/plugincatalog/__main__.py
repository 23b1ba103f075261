"""Admin entry point.

    python -m plugincatalog list
    python -m plugincatalog show <slug>
    python -m plugincatalog search <query>
    python -m plugincatalog updates
    python -m plugincatalog refresh

Results are printed to stdout as JSON; logs go to stderr. Configuration is
validated before any network or database access, so a bad value exits
non-zero immediately.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import TYPE_CHECKING, Any

from plugincatalog.config import Settings
from plugincatalog.logging_config import configure_logging
from plugincatalog.state import open_app_state

if TYPE_CHECKING:
    from plugincatalog.catalog import PluginCatalog


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="plugincatalog", description=__doc__.splitlines()[0])
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("list", help="List cached catalog records")
    show = sub.add_parser("show", help="Show one record by slug")
    show.add_argument("slug")
    find = sub.add_parser("search", help="Search records by tag")
    find.add_argument("query")
    sub.add_parser("updates", help="Print the two-bucket update feed")
    sub.add_parser("reconcile", help="Print the install status of every tracked package")
    sub.add_parser("refresh", help="Force a refresh of the catalog")
    return parser


async def _run(command: argparse.Namespace, catalog: PluginCatalog) -> Any:
    if command.command == "show":
        record = await catalog.get_record(command.slug)
        return None if record is None else record.model_dump(mode="json", by_alias=True)
    if command.command == "updates":
        feed = await catalog.get_update_feed()
        return feed.model_dump(mode="json")
    if command.command == "reconcile":
        return [result.model_dump(mode="json") for result in await catalog.reconcile_all()]

    if command.command == "list":
        records = await catalog.list_catalog()
    elif command.command == "search":
        records = await catalog.search(command.query)
    elif command.command == "refresh":
        records = await catalog.refresh()
    else:
        raise ValueError(f"Unknown command: {command.command}")
    return [record.model_dump(mode="json", by_alias=True) for record in records]


async def _main(command: argparse.Namespace, settings: Settings) -> int:
    async with open_app_state(settings) as state:
        result = await _run(command, state.catalog)
    json.dump(result, sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


def main(argv: list[str] | None = None) -> int:
    command = _build_parser().parse_args(argv)
    settings = Settings()
    configure_logging(settings.logging)
    return asyncio.run(_main(command, settings))


if __name__ == "__main__":
    sys.exit(main())
