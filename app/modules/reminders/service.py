from supabase import Client
from app.modules.reminders.schemas import (
    ReminderCreate, ReminderUpdate, ReminderResponse, ReminderListResponse
)
from app.modules.notifications.scheduling import (
    days_until_expiry, initial_notification_date, local_today, parse_date, urgency_status
)
from app.core.dependencies import check_reminder_access, is_admin, is_station_manager
from app.core.validation import validate_expiry_date, mask_phone
from app.config.settings import settings
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
from datetime import date, datetime, timezone
import logging

logger = logging.getLogger(__name__)

FILTERABLE_FIELDS = ("reminder_type", "status", "source", "station_id")


class ReminderService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def to_response(self, row: Dict[str, Any], today: Optional[date] = None) -> ReminderResponse:
        today = today or local_today()
        days = days_until_expiry(row["expiry_date"], today)
        return ReminderResponse(**{**row, "days_until_expiry": days, "urgency": urgency_status(days)})

    def _get_row(self, reminder_id: str) -> Dict[str, Any]:
        result = self.supabase.table("reminders")\
            .select("*")\
            .eq("id", reminder_id)\
            .is_("deleted_at", "null")\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Reminder-ul nu a fost găsit")
        return result.data[0]

    def _check_expiry(self, expiry: date) -> None:
        error = validate_expiry_date(expiry, local_today())
        if error:
            raise HTTPException(status_code=400, detail=error)

    def list_reminders(
        self,
        user_data: dict,
        scope: str = "own",
        filters: Optional[Dict[str, str]] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> ReminderListResponse:
        """List reminders visible to the caller: own, their station's (managers) or all (admins)."""
        query = self.supabase.table("reminders")\
            .select("*", count="exact")\
            .is_("deleted_at", "null")

        if scope == "all":
            if not is_admin(user_data):
                raise HTTPException(status_code=403, detail="Doar administratorii pot vedea toate reminder-ele")
        elif scope == "station":
            if is_station_manager(user_data):
                query = query.eq("station_id", user_data["station_id"])
            elif not is_admin(user_data):
                raise HTTPException(status_code=403, detail="Nu ești administratorul unei stații")
        else:
            query = query.eq("user_id", user_data["id"])

        for field, value in (filters or {}).items():
            if field in FILTERABLE_FIELDS and value:
                query = query.eq(field, value)

        result = query\
            .order("expiry_date")\
            .range(offset, offset + limit - 1)\
            .execute()

        today = local_today()
        return ReminderListResponse(
            reminders=[self.to_response(row, today) for row in result.data or []],
            total=result.count if result.count is not None else len(result.data or []),
            limit=limit,
            offset=offset,
        )

    def get_reminder(self, reminder_id: str, user_data: dict) -> ReminderResponse:
        row = self._get_row(reminder_id)
        check_reminder_access(row, user_data)
        return self.to_response(row)

    def create_reminder(self, user_data: dict, data: ReminderCreate) -> ReminderResponse:
        """Create a reminder owned by the caller"""
        self._check_expiry(data.expiry_date)

        duplicate = self.supabase.table("reminders")\
            .select("id")\
            .eq("user_id", user_data["id"])\
            .eq("plate_number", data.plate_number)\
            .eq("reminder_type", data.reminder_type)\
            .is_("deleted_at", "null")\
            .limit(1)\
            .execute()
        if duplicate.data:
            raise HTTPException(status_code=409, detail="Există deja un reminder pentru acest vehicul și tip")

        next_date = initial_notification_date(data.expiry_date, data.notification_intervals, local_today())
        now = datetime.now(timezone.utc).isoformat()
        result = self.supabase.table("reminders").insert({
            "user_id": user_data["id"],
            "plate_number": data.plate_number,
            "reminder_type": data.reminder_type,
            "expiry_date": data.expiry_date.isoformat(),
            "notification_intervals": data.notification_intervals,
            "notification_channels": data.notification_channels.model_dump(),
            "next_notification_date": next_date.isoformat() if next_date else None,
            "status": "active" if next_date else "completed",
            "source": "web",
            "consent_given": True,
            "consent_timestamp": now,
            "created_at": now,
        }).execute()

        if not result.data:
            raise HTTPException(status_code=500, detail="Nu am putut crea reminder-ul")

        logger.info(f"Reminder {result.data[0]['id']} created for user {user_data['id']}")
        return self.to_response(result.data[0])

    def update_reminder(self, reminder_id: str, user_data: dict, data: ReminderUpdate) -> ReminderResponse:
        """Update a reminder; a new expiry date or interval list reschedules it"""
        existing = self._get_row(reminder_id)
        check_reminder_access(existing, user_data)

        update_data = data.model_dump(exclude_none=True)
        if data.expiry_date is not None:
            self._check_expiry(data.expiry_date)
            update_data["expiry_date"] = data.expiry_date.isoformat()

        if data.expiry_date is not None or data.notification_intervals is not None:
            expiry = data.expiry_date or parse_date(existing["expiry_date"])
            intervals = data.notification_intervals or existing.get("notification_intervals") or []
            next_date = initial_notification_date(expiry, intervals, local_today())
            update_data["next_notification_date"] = next_date.isoformat() if next_date else None
            update_data["status"] = "active" if next_date else "completed"

        update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
        result = self.supabase.table("reminders")\
            .update(update_data)\
            .eq("id", reminder_id)\
            .execute()

        if not result.data:
            raise HTTPException(status_code=404, detail="Reminder-ul nu a fost găsit")
        return self.to_response(result.data[0])

    def delete_reminder(self, reminder_id: str, user_data: dict) -> bool:
        """Soft delete"""
        existing = self._get_row(reminder_id)
        check_reminder_access(existing, user_data)
        now = datetime.now(timezone.utc).isoformat()
        result = self.supabase.table("reminders")\
            .update({"deleted_at": now, "next_notification_date": None, "updated_at": now})\
            .eq("id", reminder_id)\
            .execute()
        return bool(result.data)

    def create_guest_reminder(
        self,
        station: Dict[str, Any],
        guest_name: str,
        guest_phone: str,
        plate_number: str,
        expiry_date: date,
        consent_ip: Optional[str] = None,
        reminder_type: str = "itp",
        intervals: Optional[List[int]] = None,
    ) -> Dict[str, Any]:
        """Create an SMS-only reminder for a walk-in customer at a station.

        A live reminder for the same phone, plate and station is soft deleted
        first: a returning customer starts a new inspection cycle.
        """
        existing = self.supabase.table("reminders")\
            .select("id")\
            .eq("guest_phone", guest_phone)\
            .eq("plate_number", plate_number)\
            .eq("station_id", station["id"])\
            .is_("deleted_at", "null")\
            .execute()

        now = datetime.now(timezone.utc).isoformat()
        for row in existing.data or []:
            self.supabase.table("reminders")\
                .update({"deleted_at": now, "next_notification_date": None, "updated_at": now})\
                .eq("id", row["id"])\
                .execute()
            logger.info(f"Soft deleted reminder {row['id']} for {plate_number} (recurring client)")

        intervals = intervals or settings.get_default_intervals()
        next_date = initial_notification_date(expiry_date, intervals, local_today())
        result = self.supabase.table("reminders").insert({
            "guest_name": guest_name,
            "guest_phone": guest_phone,
            "plate_number": plate_number,
            "reminder_type": reminder_type,
            "expiry_date": expiry_date.isoformat(),
            "notification_intervals": intervals,
            "notification_channels": {"sms": True, "email": False},
            "next_notification_date": next_date.isoformat() if next_date else None,
            "status": "active" if next_date else "completed",
            "source": "kiosk",
            "station_id": station["id"],
            "consent_given": True,
            "consent_timestamp": now,
            "consent_ip": consent_ip,
            "created_at": now,
        }).execute()

        if not result.data:
            raise HTTPException(status_code=500, detail="Nu am putut crea reminder-ul")

        logger.info(f"Guest reminder {result.data[0]['id']} created at station {station['id']} for {mask_phone(guest_phone)}")
        return result.data[0]
