"""
Order engine entry point.

Wires the catalog, the Redis session store and the configured notification
channel into an OrderEngine and chats with it from the terminal. The
offline demo with in-memory collaborators lives in console_demo.py.

Usage:
    Live chat:    python main.py chat [user_id]
    Console mode: python main.py console
"""

import asyncio
import logging
import sys

from order_engine.config import settings

logger = logging.getLogger(__name__)


def _build_engine():
    """Build an OrderEngine backed by Redis and the configured notification sink."""
    from order_engine.conversation.order_session import OrderEngine
    from order_engine.tools.catalog import load_catalog
    from order_engine.tools.notifications import create_notification_sink
    from order_engine.tools.session_store import RedisSessionStore

    store = RedisSessionStore.from_url(settings.session.redis_url)
    sink = create_notification_sink(settings.notifications, settings.business.name)
    engine = OrderEngine(
        catalog=load_catalog(),
        store=store,
        sink=sink,
        session_ttl_seconds=settings.session.ttl_seconds,
        business_name=settings.business.name,
    )
    return engine, store, sink


async def _run_chat_mode(user_id: str) -> None:
    """Chat against the live store and notification channel."""
    engine, store, sink = _build_engine()
    if not await store.ping():
        logger.warning("Redis at %s is not reachable; sessions will not persist",
                       settings.session.redis_url)
    logger.info("Chat started for user %s", user_id)
    try:
        while True:
            text = await asyncio.to_thread(input, "> ")
            if text.strip().lower() in ("quit", "exit", "q"):
                return
            print(await engine.handle_message(user_id, text))
    except (EOFError, KeyboardInterrupt):
        return
    finally:
        close = getattr(sink, "close", None)
        if close is not None:
            await close()
        await store.close()


def _run_console_mode() -> None:
    """Start the offline console demo (no Redis or Telegram required)."""
    from console_demo import ConsoleSession

    session = ConsoleSession()
    asyncio.run(session.run())


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "console":
        _run_console_mode()
    else:
        user = sys.argv[2] if len(sys.argv) > 2 else "console:local"
        asyncio.run(_run_chat_mode(user))
