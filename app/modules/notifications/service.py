from supabase import Client
from app.modules.notifications.schemas import (
    NotificationLogResponse, NotificationLogListResponse, PreviewResponse, SendResultResponse
)
from app.modules.notifications.processor import ReminderProcessor
from app.modules.notifications.scheduling import days_until_expiry, local_today
from app.modules.notifications.sms_templates import (
    build_reminder_sms, calculate_sms_parts, template_id_for
)
from app.modules.reminders.service import ReminderService
from app.integrations.notifyhub import NotifyHubClient, get_notifyhub
from app.core.dependencies import check_reminder_access, is_admin
from app.core.validation import mask_phone
from typing import Any, Dict, Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, supabase: Client, notifyhub: Optional[NotifyHubClient] = None):
        self.supabase = supabase
        self.notifyhub = notifyhub or get_notifyhub()

    def list_logs(
        self,
        user_data: dict,
        reminder_id: Optional[str] = None,
        status: Optional[str] = None,
        channel: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> NotificationLogListResponse:
        """Admins see every log row; other users only rows of their own reminders"""
        query = self.supabase.table("notification_log").select("*", count="exact")

        if not is_admin(user_data):
            owned = self.supabase.table("reminders")\
                .select("id")\
                .eq("user_id", user_data["id"])\
                .execute()
            reminder_ids = [row["id"] for row in owned.data or []]
            if not reminder_ids:
                return NotificationLogListResponse(logs=[], total=0, limit=limit, offset=offset)
            query = query.in_("reminder_id", reminder_ids)

        if reminder_id:
            query = query.eq("reminder_id", reminder_id)
        if status:
            query = query.eq("status", status)
        if channel:
            query = query.eq("channel", channel)

        result = query\
            .order("sent_at", desc=True)\
            .range(offset, offset + limit - 1)\
            .execute()
        rows = result.data or []
        return NotificationLogListResponse(
            logs=[NotificationLogResponse(**row) for row in rows],
            total=result.count if result.count is not None else len(rows),
            limit=limit,
            offset=offset,
        )

    def _get_station(self, station_id: Optional[str]) -> Optional[Dict[str, Any]]:
        if not station_id:
            return None
        result = self.supabase.table("kiosk_stations")\
            .select("*")\
            .eq("id", station_id)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def preview(self, reminder_id: str, user_data: dict, days_until: Optional[int] = None) -> PreviewResponse:
        """Render the SMS a reminder would send, without sending it"""
        reminder = ReminderService(self.supabase)._get_row(reminder_id)
        check_reminder_access(reminder, user_data)

        if days_until is None:
            days_until = days_until_expiry(reminder["expiry_date"], local_today())
        reminder_type = reminder.get("reminder_type") or "itp"
        message = build_reminder_sms(
            reminder.get("guest_name") or user_data.get("full_name"),
            reminder["plate_number"],
            reminder["expiry_date"],
            days_until,
            reminder_type=reminder_type,
            station=self._get_station(reminder.get("station_id")),
        )
        return PreviewResponse(
            message=message,
            length=len(message),
            parts=calculate_sms_parts(message),
            template_id=template_id_for(reminder_type, days_until),
        )

    def send_test_sms(self, phone: str, message: str) -> SendResultResponse:
        result = self.notifyhub.send_sms(to=phone, message=message)
        logger.info(f"Test SMS to {mask_phone(phone)}: success={result.success}")
        return SendResultResponse(
            success=result.success,
            channel="sms",
            message_id=result.message_id,
            error=result.error,
        )

    def resend(self, log_id: str, processor: Optional[ReminderProcessor] = None) -> SendResultResponse:
        """Send a failed notification again on the same channel"""
        result = self.supabase.table("notification_log")\
            .select("*")\
            .eq("id", log_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Notificarea nu a fost găsită")
        log = result.data[0]
        if log.get("status") != "failed":
            raise HTTPException(status_code=400, detail="Doar notificările eșuate pot fi retrimise")

        reminder = ReminderService(self.supabase)._get_row(log["reminder_id"])
        processor = processor or ReminderProcessor(self.supabase, notifyhub=self.notifyhub)
        sent = processor.resend_notification(reminder, log["channel"])
        if sent is None:
            raise HTTPException(status_code=400, detail="Nu există date de contact pentru acest canal")

        logger.info(f"Resent {log['channel']} for reminder {reminder['id']}: success={sent.success}")
        return SendResultResponse(
            success=sent.success,
            channel=log["channel"],
            message_id=sent.message_id,
            error=sent.error,
        )
