"""Entrypoint: python -m kitab_sync"""
from __future__ import annotations

import argparse
import asyncio
import logging

from kitab_sync.app import create_app
from kitab_sync.config import Settings, settings

logger = logging.getLogger("kitab_sync")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="kitab_sync", description="Run a headless sync session.")
    parser.add_argument("--conversation-id", type=int, default=None, help="conversation to open first")
    parser.add_argument("--base-url", default=None, help="backend base URL (overrides API_BASE_URL)")
    parser.add_argument("--token", default=None, help="bearer token (overrides ACCESS_TOKEN)")
    parser.add_argument("--duration", type=float, default=None, help="stop after N seconds")
    return parser.parse_args(argv)


async def run(cfg: Settings, conversation_id: int | None, duration: float | None) -> None:
    app = create_app(cfg, deep_link=conversation_id)

    app.sync.conversation_cache.add_listener(
        lambda convs: logger.info("Conversations: %d", len(convs)),
    )
    app.sync.message_cache.add_listener(
        lambda msgs: logger.info("Conversation %s: %d message(s)", app.sync.active_id, len(msgs)),
    )
    app.wishlist.cache.add_listener(
        lambda ids: logger.info("Wishlist: %s", sorted(ids)),
    )

    async with app:
        if duration is None:
            await asyncio.Event().wait()
        else:
            await asyncio.sleep(duration)


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    overrides = {}
    if args.base_url:
        overrides["API_BASE_URL"] = args.base_url
    if args.token:
        overrides["ACCESS_TOKEN"] = args.token
    cfg = settings.model_copy(update=overrides) if overrides else settings

    logging.basicConfig(
        level=cfg.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        asyncio.run(run(cfg, args.conversation_id, args.duration))
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    main()
