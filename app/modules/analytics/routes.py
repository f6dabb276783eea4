from fastapi import APIRouter, Depends
from app.database.supabase_client import get_service_supabase
from app.modules.analytics.schemas import AnalyticsOverview
from app.modules.analytics.service import AnalyticsService
from app.core.dependencies import require_role
from supabase import Client
from datetime import datetime
from typing import Dict, Optional

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("", response_model=AnalyticsOverview)
async def get_overview(
    since: Optional[datetime] = None,
    user_data: Dict = Depends(require_role()),
    supabase: Client = Depends(get_service_supabase)
):
    """Reminder, delivery and station totals (admin)"""
    return AnalyticsService(supabase).overview(since=since)
