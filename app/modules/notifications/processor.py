"""
Daily reminder notification pipeline.

For every reminder whose next_notification_date is due, decide whether today
is a notification day, apply opt-outs and quiet hours, pick the channels,
send through Resend (email) and NotifyHub (SMS), write notification_log rows,
and store the next notification date.
"""

import logging
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, Union

from supabase import Client

from app.core.validation import mask_phone
from app.integrations.notifyhub import NotifyHubClient, SmsResult, get_notifyhub
from app.integrations.resend_client import EmailResult, ResendClient, get_resend
from app.modules.notifications.quiet_hours import (
    QUIET_HOURS_COLUMNS,
    QuietHoursSettings,
    is_in_quiet_hours,
    next_available_time,
)
from app.modules.notifications.scheduling import (
    days_until_expiry,
    initial_notification_date,
    is_notification_day,
    local_today,
    next_notification_date,
    normalize_intervals,
    parse_date,
)
from app.modules.opt_out.service import generate_opt_out_link, is_phone_opted_out

logger = logging.getLogger(__name__)

PROFILE_COLUMNS = f"email, phone, full_name, email_notifications, sms_notifications, {QUIET_HOURS_COLUMNS}"
DEFAULT_CHANNELS = {"email": True, "sms": False}


@dataclass
class ProcessReminderResult:
    reminder_id: str
    plate: str
    type: str
    success: bool
    channel: Optional[str] = None  # email | sms | email+sms
    skipped: bool = False
    error: Optional[str] = None


@dataclass
class ProcessingSummary:
    success: bool
    message: str
    stats: Dict[str, int]
    results: List[ProcessReminderResult] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "stats": self.stats,
            "results": [asdict(r) for r in self.results],
        }


class ReminderProcessor:
    def __init__(
        self,
        supabase: Client,
        notifyhub: Optional[NotifyHubClient] = None,
        resend: Optional[ResendClient] = None,
    ):
        self.supabase = supabase
        self.notifyhub = notifyhub or get_notifyhub()
        self.resend = resend or get_resend()

    def get_due_reminders(self, today: date) -> List[Dict[str, Any]]:
        result = self.supabase.table("reminders")\
            .select("*")\
            .lte("next_notification_date", today.isoformat())\
            .not_.is_("next_notification_date", "null")\
            .is_("deleted_at", "null")\
            .execute()
        return result.data or []

    def process_reminders_for_today(self, now: Optional[datetime] = None) -> ProcessingSummary:
        """Process all reminders due today (Romanian calendar date)."""
        now = now or datetime.now(timezone.utc)
        today = local_today(now)
        logger.info(f"Starting reminder processing for {today.isoformat()}")

        reminders = self.get_due_reminders(today)
        logger.info(f"Found {len(reminders)} reminder(s) to process")

        if not reminders:
            return ProcessingSummary(
                success=True,
                message="No reminders to process",
                stats=_stats([], 0),
            )

        results = []
        for reminder in reminders:
            try:
                results.append(self.process_reminder(reminder, today=today, now=now))
            except Exception as e:
                logger.exception(f"Error processing reminder {reminder.get('id')}: {e}")
                results.append(ProcessReminderResult(
                    reminder_id=reminder.get("id"),
                    plate=reminder.get("plate_number", ""),
                    type=reminder.get("reminder_type", ""),
                    success=False,
                    error=str(e),
                ))

        stats = _stats(results, len(reminders))
        logger.info(f"Processing complete: {stats}")
        return ProcessingSummary(
            success=True,
            message=f"Processed {stats['processed']} reminders ({stats['sent']} sent, {stats['failed']} failed)",
            stats=stats,
            results=results,
        )

    def process_reminder(
        self,
        reminder: Dict[str, Any],
        today: Optional[date] = None,
        now: Optional[datetime] = None,
    ) -> ProcessReminderResult:
        """Send the notifications due today for one reminder and schedule the next one."""
        now = now or datetime.now(timezone.utc)
        today = today or local_today(now)
        reminder_id = reminder["id"]
        plate = reminder.get("plate_number", "")
        reminder_type = reminder.get("reminder_type") or "itp"
        intervals = normalize_intervals(reminder.get("notification_intervals"))
        days_until = days_until_expiry(reminder["expiry_date"], today)
        scheduled = reminder.get("next_notification_date")

        def result(success: bool, **kwargs) -> ProcessReminderResult:
            return ProcessReminderResult(
                reminder_id=reminder_id, plate=plate, type=reminder_type, success=success, **kwargs
            )

        logger.info(
            f"Processing reminder {reminder_id} for {plate} "
            f"({days_until} days until expiry, intervals {intervals})"
        )

        # A stored date that has arrived is due even off an interval slot: missed runs and quiet-hours deferrals
        due = scheduled is not None and parse_date(scheduled) <= today and days_until >= 0
        if not is_notification_day(intervals, days_until) and not due:
            self._reschedule(reminder_id, initial_notification_date(reminder["expiry_date"], intervals, today))
            return result(False, skipped=True, error="Not a scheduled notification day")

        user_id = reminder.get("user_id")
        is_registered = bool(user_id)
        profile = self._get_profile(user_id) if is_registered else None

        phone, name = _contact(reminder, profile)

        opted_out = bool(reminder.get("opt_out")) or is_phone_opted_out(phone, self.supabase)
        if opted_out and not is_registered:
            logger.info(f"Guest opted out: {mask_phone(phone)}")
            self._reschedule(reminder_id, None)
            return result(False, skipped=True, error="User opted out")

        if is_registered:
            quiet_hours = QuietHoursSettings.from_profile(profile)
            if quiet_hours and is_in_quiet_hours(quiet_hours, now):
                available = next_available_time(quiet_hours, now)
                self._reschedule(reminder_id, available.date())
                logger.info(f"User {user_id} is in quiet hours, rescheduled to {available.isoformat()}")
                return result(
                    False, skipped=True,
                    error=f"Quiet hours active - rescheduled to {available.isoformat()}",
                )

        channels = reminder.get("notification_channels") or DEFAULT_CHANNELS
        if is_registered:
            send_email = bool(channels.get("email")) and (profile or {}).get("email_notifications") is not False
            send_sms = bool(channels.get("sms")) and (profile or {}).get("sms_notifications") is not False \
                and not opted_out
        else:
            # Guests only have a phone number
            send_email = False
            send_sms = True

        logger.info(f"Notification plan for {reminder_id}: email={send_email}, sms={send_sms}, registered={is_registered}")

        email_result: Optional[EmailResult] = None
        sms_result: Optional[SmsResult] = None

        if send_email:
            email_result = self.send_email(reminder, profile, days_until)

        if send_sms:
            sms_result = self.send_sms(reminder, phone, name, days_until)

        next_date = next_notification_date(reminder["expiry_date"], intervals, days_until)
        if next_date:
            logger.info(f"Next notification for {reminder_id} scheduled for {next_date.isoformat()}")
        else:
            logger.info(f"No more notifications scheduled for {reminder_id}")
        self._reschedule(reminder_id, next_date)

        email_ok = bool(email_result and email_result.success)
        sms_ok = bool(sms_result and sms_result.success)
        if email_ok and sms_ok:
            channel = "email+sms"
        elif sms_ok:
            channel = "sms"
        elif email_ok:
            channel = "email"
        else:
            channel = None

        success = email_ok or sms_ok
        return result(success, channel=channel, error=None if success else "Failed to send notification")

    def send_email(
        self, reminder: Dict[str, Any], profile: Optional[Dict[str, Any]], days_until: int
    ) -> Optional[EmailResult]:
        email = (profile or {}).get("email")
        if not email:
            logger.info(f"No email found for user {reminder.get('user_id')}")
            return None
        email_result = self.resend.send_reminder_email(
            to=email,
            plate=reminder.get("plate_number", ""),
            expiry_date=reminder["expiry_date"],
            days_until=days_until,
            reminder_type=reminder.get("reminder_type") or "itp",
            reminder_id=reminder["id"],
        )
        self._log_email(reminder["id"], email_result, days_until)
        return email_result

    def send_sms(
        self, reminder: Dict[str, Any], phone: Optional[str], name: Optional[str], days_until: int
    ) -> Optional[SmsResult]:
        if not phone:
            logger.info(f"No phone number found for reminder {reminder['id']}")
            return None
        is_registered = bool(reminder.get("user_id"))
        station = self._get_station(reminder["station_id"]) if reminder.get("station_id") else None
        sms_result = self.notifyhub.send_reminder(
            phone=phone,
            name=name,
            plate=reminder.get("plate_number", ""),
            expiry_date=str(reminder["expiry_date"])[:10],
            days_until=days_until,
            reminder_type=reminder.get("reminder_type") or "itp",
            station=station,
            opt_out_link=None if is_registered else generate_opt_out_link(phone),
        )
        self._log_sms(reminder["id"], sms_result, days_until)
        return sms_result

    def resend_notification(
        self, reminder: Dict[str, Any], channel: str, today: Optional[date] = None
    ) -> Optional[Union[EmailResult, SmsResult]]:
        """Send one channel again for a reminder without touching its schedule"""
        today = today or local_today()
        days_until = days_until_expiry(reminder["expiry_date"], today)
        profile = self._get_profile(reminder["user_id"]) if reminder.get("user_id") else None
        if channel == "email":
            return self.send_email(reminder, profile, days_until)
        phone, name = _contact(reminder, profile)
        if reminder.get("opt_out") or is_phone_opted_out(phone, self.supabase):
            return SmsResult(success=False, error="User opted out", code="OPTED_OUT")
        return self.send_sms(reminder, phone, name, days_until)

    def _get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("user_profiles")\
            .select(PROFILE_COLUMNS)\
            .eq("id", user_id)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def _get_station(self, station_id: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("kiosk_stations")\
            .select("id, name, station_phone, sms_template_5d, sms_template_3d, sms_template_1d")\
            .eq("id", station_id)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def _reschedule(self, reminder_id: str, next_date: Optional[date]) -> None:
        update: Dict[str, Any] = {
            "next_notification_date": next_date.isoformat() if next_date else None,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        if next_date is None:
            update["status"] = "completed"
        self.supabase.table("reminders")\
            .update(update)\
            .eq("id", reminder_id)\
            .execute()

    def _log_email(self, reminder_id: str, email_result: EmailResult, days_until: int) -> None:
        metadata: Dict[str, Any] = {"days_until_expiry": days_until}
        if not email_result.success:
            metadata["error"] = email_result.error
            logger.error(f"Email failed for {reminder_id}: {email_result.error}")
        self._insert_log({
            "reminder_id": reminder_id,
            "channel": "email",
            "status": "sent" if email_result.success else "failed",
            "provider": "resend",
            "provider_message_id": email_result.message_id,
            "error_message": email_result.error,
            "sent_at": datetime.now(timezone.utc).isoformat(),
            "metadata": metadata,
        })

    def _log_sms(self, reminder_id: str, sms_result: SmsResult, days_until: int) -> None:
        metadata: Dict[str, Any] = {"days_until_expiry": days_until}
        if not sms_result.success:
            metadata["error"] = sms_result.error
            logger.error(f"SMS failed for {reminder_id}: {sms_result.error}")
        self._insert_log({
            "reminder_id": reminder_id,
            "channel": "sms",
            "status": "sent" if sms_result.success else "failed",
            "provider": sms_result.provider or "notifyhub",
            "provider_message_id": sms_result.message_id,
            "estimated_cost": sms_result.cost,
            "error_message": sms_result.error,
            "sent_at": datetime.now(timezone.utc).isoformat(),
            "metadata": metadata,
        })

    def _insert_log(self, row: Dict[str, Any]) -> None:
        try:
            self.supabase.table("notification_log").insert(row).execute()
        except Exception as e:
            logger.error(f"Error writing notification_log for {row['reminder_id']}: {e}")


def _contact(reminder: Dict[str, Any], profile: Optional[Dict[str, Any]]) -> Tuple[Optional[str], Optional[str]]:
    """Phone and display name: the profile for registered users, the guest fields otherwise"""
    if reminder.get("user_id"):
        return (profile or {}).get("phone"), (profile or {}).get("full_name") or reminder.get("guest_name")
    return reminder.get("guest_phone"), reminder.get("guest_name")

def _stats(results: List[ProcessReminderResult], total: int) -> Dict[str, int]:
    sent = [r for r in results if r.success]
    return {
        "total": total,
        "processed": len(results),
        "sent": len(sent),
        "failed": len([r for r in results if not r.success and not r.skipped]),
        "skipped": len([r for r in results if r.skipped]),
        "email_only": len([r for r in sent if r.channel == "email"]),
        "sms_only": len([r for r in sent if r.channel == "sms"]),
        "email_and_sms": len([r for r in sent if r.channel == "email+sms"]),
    }
