"""
Periodic refresh of the checklist completion snapshot
"""
import asyncio
import logging
from datetime import date
from typing import Optional

from app.core.celery_app import celery_app
from app.core.config import settings

logger = logging.getLogger(__name__)

def run_async_task(coro):
    """Helper function to run async coroutines in Celery tasks"""
    loop = asyncio.new_event_loop()
    try:
        asyncio.set_event_loop(loop)
        return loop.run_until_complete(coro)
    except Exception as e:
        logger.error(f"Error in async task: {e}")
        raise
    finally:
        loop.close()

async def refresh_snapshot(report_date: Optional[date] = None) -> dict:
    # Import inside function to avoid circular imports
    from app.core.redis import RedisClient, SnapshotCache
    from app.services.checklist.checklist_service import ChecklistService
    from app.services.checklist.completion_engine import OutletDirectory
    from app.services.integrations.sheets_client import SheetsDataClient

    # A fresh client per run; each task gets its own event loop
    redis_client = RedisClient()
    try:
        service = ChecklistService(
            data_client=SheetsDataClient(),
            directory=OutletDirectory.from_settings(settings.OUTLETS),
            time_slots=settings.TIME_SLOTS,
            cache=SnapshotCache(redis_client),
            performer_count=settings.PERFORMER_COUNT,
        )
        result = await service.get_completion(report_date)
    finally:
        await redis_client.disconnect()

    return {
        "date": result.report_date.isoformat(),
        "success": result.success,
        "stale": result.stale,
        "error": result.error,
        "completed": result.summary.completed,
        "total_outlets": result.summary.total_outlets,
    }

@celery_app.task
def refresh_checklist_snapshot(report_date: str = None):
    """Recompute today's completion and store it as the last-known-good snapshot"""
    target = date.fromisoformat(report_date) if report_date else None
    summary = run_async_task(refresh_snapshot(target))
    if summary["success"] and not summary["error"]:
        logger.info(f"✅ Checklist snapshot refreshed for {summary['date']}: "
                    f"{summary['completed']}/{summary['total_outlets']} outlets complete")
    else:
        logger.warning(f"⚠️ Checklist snapshot refresh degraded for {summary['date']}: {summary['error']}")
    return summary
