"""Background retention sweeper.

Runs the sweep on a fixed period for the lifetime of the process, so
files expire even when no requests arrive.
"""

import asyncio
import logging

from storage.sweeper import RetentionSweeper

logger = logging.getLogger(__name__)

_sweeper_task: asyncio.Task | None = None


async def _sweeper_loop(sweeper: RetentionSweeper, interval_seconds: float):
    """Background loop that runs the sweep periodically."""
    while True:
        logger.info("Initiating scheduled cleanup...")
        try:
            await sweeper.purge_expired()
        except Exception as e:
            logger.error(f"File cleanup error: {e}")
        await asyncio.sleep(interval_seconds)


def start_sweeper(sweeper: RetentionSweeper, interval_seconds: float) -> asyncio.Task:
    """Start the background sweeper as an async task."""
    global _sweeper_task
    if _sweeper_task is not None and not _sweeper_task.done():
        return _sweeper_task
    _sweeper_task = asyncio.get_running_loop().create_task(_sweeper_loop(sweeper, interval_seconds))
    logger.info(f"Background sweeper scheduled every {interval_seconds:g}s")
    return _sweeper_task


async def stop_sweeper() -> None:
    """Cancel the background sweeper, abandoning any sweep in progress."""
    global _sweeper_task
    task, _sweeper_task = _sweeper_task, None
    if task is None:
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
    logger.info("Background sweeper stopped")
