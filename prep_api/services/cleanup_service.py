"""Service for cleanup operations."""
import asyncio
import logging

from prep_api.config import SESSION_CLEANUP_INTERVAL_SECONDS, SESSION_RETENTION_MINUTES
from prep_api.services.session_registry import SessionRegistry

logger = logging.getLogger(__name__)


async def cleanup_stale_sessions(registry: SessionRegistry) -> int:
    """Close sessions idle for longer than the retention period."""
    if SESSION_RETENTION_MINUTES <= 0:
        return 0
    return await registry.purge_stale(SESSION_RETENTION_MINUTES * 60)


def schedule_sessions_cleanup(registry: SessionRegistry) -> asyncio.Task[None]:
    """Schedule periodic cleanup of abandoned sessions on the running loop."""

    async def _worker() -> None:
        while True:
            await asyncio.sleep(SESSION_CLEANUP_INTERVAL_SECONDS)
            try:
                await cleanup_stale_sessions(registry)
            except Exception:
                logger.exception("Session cleanup failed")

    return asyncio.create_task(_worker(), name="sessions_cleanup")
