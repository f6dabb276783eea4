import asyncio
import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from supabase import Client

from app.core.dependencies import verify_cron_secret
from app.database.supabase_client import get_service_supabase
from app.modules.notifications.processor import ReminderProcessor
from app.modules.notifications.schemas import ProcessingStatsResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cron", tags=["cron"])


@router.post("/process-reminders", response_model=ProcessingStatsResponse)
async def process_reminders(
    _: None = Depends(verify_cron_secret),
    supabase: Client = Depends(get_service_supabase)
):
    """Run the daily notification batch (external scheduler trigger)"""
    started = time.monotonic()
    logger.info("Reminder processing triggered by cron")
    summary = await asyncio.to_thread(ReminderProcessor(supabase).process_reminders_for_today)
    elapsed = time.monotonic() - started
    logger.info(f"Reminder processing finished in {elapsed:.2f}s")
    return {
        **summary.to_dict(),
        "executionTime": f"{elapsed * 1000:.0f}ms",
        "timestamp": datetime.now(timezone.utc),
    }


@router.get("/process-reminders")
async def process_reminders_health():
    return {
        "status": "healthy",
        "service": "process-reminders",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.post("/heartbeat")
async def heartbeat(_: None = Depends(verify_cron_secret)):
    """Lets the external scheduler prove it is alive"""
    now = datetime.now(timezone.utc)
    logger.info(f"Cron heartbeat at {now.isoformat()}")
    return {"status": "ok", "timestamp": now.isoformat()}
