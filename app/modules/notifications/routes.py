import asyncio
from fastapi import APIRouter, Depends
from app.database.supabase_client import get_service_supabase
from app.modules.notifications.schemas import (
    NotificationLogListResponse, PreviewRequest, PreviewResponse,
    TestSmsRequest, ResendRequest, SendResultResponse
)
from app.modules.notifications.service import NotificationService
from app.modules.users.schemas import NotificationSettings, NotificationSettingsUpdate
from app.modules.users.service import UserService
from app.core.dependencies import get_current_user, require_role
from supabase import Client
from typing import Dict, Optional

router = APIRouter(prefix="/notifications", tags=["notifications"])


def get_notification_service(supabase: Client = Depends(get_service_supabase)) -> NotificationService:
    return NotificationService(supabase)


@router.get("", response_model=NotificationLogListResponse)
async def list_notifications(
    reminder_id: Optional[str] = None,
    status: Optional[str] = None,
    channel: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
    current_user: Dict = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    """Delivery log (admins: all; users: their reminders)"""
    return service.list_logs(
        current_user,
        reminder_id=reminder_id,
        status=status,
        channel=channel,
        limit=min(max(limit, 1), 200),
        offset=max(offset, 0),
    )


@router.post("/preview", response_model=PreviewResponse)
async def preview_notification(
    body: PreviewRequest,
    current_user: Dict = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    """Render a reminder's SMS text"""
    return service.preview(body.reminder_id, current_user, days_until=body.days_until)


@router.post("/test-sms", response_model=SendResultResponse)
async def send_test_sms(
    body: TestSmsRequest,
    user_data: Dict = Depends(require_role()),
    service: NotificationService = Depends(get_notification_service)
):
    """Send an arbitrary SMS through NotifyHub (admin)"""
    return await asyncio.to_thread(service.send_test_sms, body.phone, body.message)


@router.post("/resend", response_model=SendResultResponse)
async def resend_notification(
    body: ResendRequest,
    user_data: Dict = Depends(require_role()),
    service: NotificationService = Depends(get_notification_service)
):
    """Retry a failed delivery (admin)"""
    return await asyncio.to_thread(service.resend, body.log_id)


@router.get("/settings", response_model=NotificationSettings)
async def get_settings(
    current_user: Dict = Depends(get_current_user),
    supabase: Client = Depends(get_service_supabase)
):
    return UserService(supabase).get_notification_settings(current_user["id"])


@router.patch("/settings", response_model=NotificationSettings)
async def update_settings(
    body: NotificationSettingsUpdate,
    current_user: Dict = Depends(get_current_user),
    supabase: Client = Depends(get_service_supabase)
):
    return UserService(supabase).update_notification_settings(current_user["id"], body)
