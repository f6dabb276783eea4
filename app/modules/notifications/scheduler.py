import asyncio
import logging
from datetime import datetime, timedelta
from typing import Optional

from app.config.settings import settings
from app.database.supabase_client import get_service_supabase
from app.modules.notifications.processor import ReminderProcessor
from app.modules.notifications.scheduling import local_now

logger = logging.getLogger(__name__)


def seconds_until_next_run(now: Optional[datetime] = None, hour: Optional[int] = None) -> float:
    """Seconds from now until the next occurrence of `hour`:00 local time"""
    now = local_now(now)
    hour = settings.reminder_scheduler_hour if hour is None else hour
    target = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    if target <= now:
        target += timedelta(days=1)
    return (target - now).total_seconds()


async def run_daily_batch():
    """Run one processing batch in a worker thread"""
    try:
        processor = ReminderProcessor(get_service_supabase())
        summary = await asyncio.to_thread(processor.process_reminders_for_today)
        logger.info(f"Scheduled reminder processing: {summary.message}")
    except Exception as e:
        logger.error(f"Error in reminder scheduler: {str(e)}")


async def reminder_scheduler_loop():
    """Background task that processes reminders once a day at the configured local hour"""
    while True:
        delay = seconds_until_next_run()
        logger.info(f"Next reminder processing in {delay / 3600:.1f}h")
        await asyncio.sleep(delay)
        try:
            await run_daily_batch()
        except Exception as e:
            logger.error(f"Error in reminder scheduler loop: {str(e)}")
