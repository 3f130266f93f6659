"""Application entrypoint."""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Sequence

import httpx

from mapsearch.config import get_settings
from mapsearch.db.session import Database
from mapsearch.domain.models import QueryState
from mapsearch.logging import configure_from_settings, logger
from mapsearch.providers.mapbox import MapboxSearchProvider
from mapsearch.services.coordinator import QueryCoordinator
from mapsearch.storage.blob_store import DatabaseBlobStore


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mapsearch", description="Search for places.")
    parser.add_argument("query", nargs="*", help="text to search for")
    parser.add_argument(
        "--select",
        type=int,
        metavar="N",
        help="remember the N-th result (1-based) as a recent selection",
    )
    parser.add_argument("--recent", action="store_true", help="list recent selections")
    return parser


def render_state(state: QueryState) -> list[str]:
    if state.error_message:
        return [f"error: {state.error_message}"]
    lines = []
    for index, result in enumerate(state.results, start=1):
        line = f"{index}. {result.name}"
        if result.subtitle:
            line = f"{line} - {result.subtitle}"
        lines.append(line)
    return lines or ["no results"]


async def run_query(coordinator: QueryCoordinator, text: str) -> QueryState:
    coordinator.set_query_text(text)
    await coordinator.settle()
    return coordinator.state


async def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_from_settings(settings)

    database = Database(settings=settings)
    await database.create_all()
    try:
        async with httpx.AsyncClient() as client:
            provider = MapboxSearchProvider(client, settings.provider)
            coordinator = await QueryCoordinator.create(
                provider, DatabaseBlobStore(database), settings=settings
            )
            try:
                if args.recent or not args.query:
                    coordinator.show_recent_when_empty()
                    print("\n".join(render_state(coordinator.state)))
                    return 0

                logger.info("cli_search", query=" ".join(args.query))
                state = await run_query(coordinator, " ".join(args.query))
                print("\n".join(render_state(state)))
                if state.error_message:
                    return 1
                if args.select is not None:
                    if not 1 <= args.select <= len(state.results):
                        print(f"error: --select must be between 1 and {len(state.results)}")
                        return 2
                    coordinator.select_result(state.results[args.select - 1])
                return 0
            finally:
                await coordinator.aclose()
    finally:
        await database.dispose()


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
