#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import logging

from charpager import (
    CharacterClient,
    FetchCoordinator,
    QueryPagePersistence,
    SessionState,
    SortOrder,
    build_page_items,
)
from charpager.utils import PageLink


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Browse characters one UI page at a time")
    p.add_argument("--page", type=int, default=None, help="UI page (overrides --query)")
    p.add_argument("--query", default="", help="URL query string, e.g. '?page=3'")
    p.add_argument("--sort", default="newest", choices=["newest", "oldest"])
    p.add_argument("--base-url", default=None)
    p.add_argument("-v", "--verbose", action="store_true")
    return p.parse_args()


def render(state: SessionState) -> None:
    print("=" * 65)
    print(f"Page       : {state.ui_page} / {state.total_pages or '?'}")
    print(f"Sort       : {state.sort_order.name}")
    print(f"Total      : {state.total_count if state.total_count is not None else '?'}")
    print("=" * 65)
    if state.error is not None:
        print(f"Error [{state.error.value}]: {state.error_message}")
        return
    print(f"{'ID':>5} | {'Name':30} | {'Status':8} | {'Created':25}")
    print("-" * 65)
    for c in state.items:
        print(f"{c.id:>5} | {c.name[:30]:30} | {c.status:8} | {c.created.isoformat():25}")
    print("-" * 65)
    if state.total_pages:
        links = []
        for item in build_page_items(state.ui_page, state.total_pages):
            if isinstance(item, PageLink):
                links.append(f"[{item.value}]" if item.active else str(item.value))
            else:
                links.append("…")
        print(" ".join(links))


async def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    persistence = QueryPagePersistence(args.query)
    initial_page = args.page if args.page is not None else persistence.initial_page
    client_kwargs = {"base_url": args.base_url} if args.base_url else {}

    async with CharacterClient(**client_kwargs) as client:
        async with FetchCoordinator(
            client,
            initial_page=initial_page,
            sort_order=SortOrder.from_string(args.sort),
            persist_page=persistence,
        ) as coordinator:
            if not coordinator.start():
                print(f"Invalid page: {initial_page}")
                return
            await coordinator.wait_idle()
            render(coordinator.state)
            print(f"Query      : ?{persistence.query}")


if __name__ == "__main__":
    asyncio.run(main())
