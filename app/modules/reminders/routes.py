from fastapi import APIRouter, Depends, Request
from app.database.supabase_client import get_service_supabase
from app.modules.reminders.schemas import (
    ReminderCreate, ReminderUpdate, ReminderResponse, ReminderListResponse
)
from app.modules.reminders.service import ReminderService
from app.core.dependencies import get_current_user
from app.core.rate_limit import limiter
from app.config.settings import settings
from supabase import Client
from typing import Dict, Literal, Optional

router = APIRouter(prefix="/reminders", tags=["reminders"])


def get_reminder_service(supabase: Client = Depends(get_service_supabase)) -> ReminderService:
    return ReminderService(supabase)


@router.get("", response_model=ReminderListResponse)
async def list_reminders(
    scope: Literal["own", "station", "all"] = "own",
    reminder_type: Optional[str] = None,
    status: Optional[str] = None,
    source: Optional[str] = None,
    station_id: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
    current_user: Dict = Depends(get_current_user),
    service: ReminderService = Depends(get_reminder_service)
):
    """List reminders: own by default, a station's for its manager, all for admins"""
    limit = min(max(limit, 1), 100)
    filters = {
        "reminder_type": reminder_type,
        "status": status,
        "source": source,
        "station_id": station_id,
    }
    return service.list_reminders(current_user, scope=scope, filters=filters, limit=limit, offset=max(offset, 0))


@router.post("", response_model=ReminderResponse, status_code=201)
@limiter.limit(settings.reminder_mutation_rate_limit)
async def create_reminder(
    request: Request,
    reminder_data: ReminderCreate,
    current_user: Dict = Depends(get_current_user),
    service: ReminderService = Depends(get_reminder_service)
):
    """Create a reminder for one of the caller's vehicles"""
    return service.create_reminder(current_user, reminder_data)


@router.get("/{reminder_id}", response_model=ReminderResponse)
async def get_reminder(
    reminder_id: str,
    current_user: Dict = Depends(get_current_user),
    service: ReminderService = Depends(get_reminder_service)
):
    """Get a reminder with days until expiry and urgency"""
    return service.get_reminder(reminder_id, current_user)


@router.patch("/{reminder_id}", response_model=ReminderResponse)
@limiter.limit(settings.reminder_mutation_rate_limit)
async def update_reminder(
    request: Request,
    reminder_id: str,
    reminder_data: ReminderUpdate,
    current_user: Dict = Depends(get_current_user),
    service: ReminderService = Depends(get_reminder_service)
):
    return service.update_reminder(reminder_id, current_user, reminder_data)


@router.delete("/{reminder_id}", status_code=204)
@limiter.limit(settings.reminder_mutation_rate_limit)
async def delete_reminder(
    request: Request,
    reminder_id: str,
    current_user: Dict = Depends(get_current_user),
    service: ReminderService = Depends(get_reminder_service)
):
    """Soft delete a reminder"""
    service.delete_reminder(reminder_id, current_user)
    return None
