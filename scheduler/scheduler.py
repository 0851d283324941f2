# scheduler/scheduler.py
import asyncio
import os
import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from dotenv import load_dotenv
from catalog.store import get_store

load_dotenv()
CATALOG_REFRESH_MINUTES = int(os.getenv("CATALOG_REFRESH_MINUTES", "10"))

logger = logging.getLogger("scheduler")
logger.setLevel(logging.INFO)
handler = logging.StreamHandler()
handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
logger.addHandler(handler)


async def scheduled_refresh(store=None):
    """
    Rebuild the catalog cache ahead of incoming requests.

    Joins any refresh already in flight. Failures are logged and the
    previous cache contents stay in place.

    Returns:
        int: Number of parts in the catalog after the refresh (0 on failure)
    """
    store = store or get_store()
    logger.info("Starting scheduled catalog refresh")
    try:
        items = await store.refresh()
    except Exception as e:
        logger.exception(f"Scheduled catalog refresh failed: {e}")
        return 0
    logger.info(f"Scheduled refresh finished, {len(items)} parts cached")
    return len(items)


def build_scheduler(minutes=CATALOG_REFRESH_MINUTES):
    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        scheduled_refresh,
        "interval",
        minutes=minutes,
        id="catalog_refresh",
    )
    return scheduler


async def async_main():
    """Warm the cache once, then refresh it every CATALOG_REFRESH_MINUTES."""
    await scheduled_refresh()
    scheduler = build_scheduler()
    scheduler.start()
    logger.info(f"Scheduler started (every {CATALOG_REFRESH_MINUTES} min)")
    # Keep program running forever
    await asyncio.Event().wait()


if __name__ == "__main__":
    asyncio.run(async_main())
