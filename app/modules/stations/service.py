from supabase import Client
from app.modules.stations.schemas import (
    StationCreate, StationUpdate, StationResponse, StationBranding,
    GuestReminderCreate, GuestReminderResponse
)
from app.modules.reminders.service import ReminderService
from app.modules.notifications.scheduling import local_today
from app.core.validation import validate_expiry_date
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


class StationService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _get_row(self, **match: Any) -> Optional[Dict[str, Any]]:
        query = self.supabase.table("kiosk_stations").select("*")
        for column, value in match.items():
            query = query.eq(column, value)
        result = query.limit(1).execute()
        return result.data[0] if result.data else None

    def list_stations(self, active_only: bool = False, limit: int = 50, offset: int = 0) -> List[StationResponse]:
        try:
            query = self.supabase.table("kiosk_stations").select("*")
            if active_only:
                query = query.eq("is_active", True)
            result = query\
                .order("name")\
                .range(offset, offset + limit - 1)\
                .execute()
            return [StationResponse(**row) for row in result.data]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_station(self, station_id: str) -> StationResponse:
        row = self._get_row(id=station_id)
        if not row:
            raise HTTPException(status_code=404, detail="Stația nu a fost găsită")
        return StationResponse(**row)

    def get_active_station_by_slug(self, slug: str) -> Dict[str, Any]:
        """Station row for a kiosk; 404 when unknown, 403 when deactivated"""
        row = self._get_row(slug=slug)
        if not row:
            raise HTTPException(status_code=404, detail="Stația nu a fost găsită")
        if not row.get("is_active"):
            raise HTTPException(status_code=403, detail="Stația nu este activă")
        return row

    def get_branding(self, slug: str) -> StationBranding:
        row = self._get_row(slug=slug)
        if not row or not row.get("is_active"):
            raise HTTPException(status_code=404, detail="Station not found or kiosk disabled")
        return StationBranding(**{k: v for k, v in row.items() if v is not None and k in StationBranding.model_fields})

    def create_station(self, station_data: StationCreate) -> StationResponse:
        if self._get_row(slug=station_data.slug):
            raise HTTPException(status_code=409, detail="Slug-ul este deja folosit")
        result = self.supabase.table("kiosk_stations").insert({
            **station_data.model_dump(exclude_none=True),
            "is_active": True,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }).execute()
        if not result.data:
            raise HTTPException(status_code=500, detail="Failed to create station")
        logger.info(f"Station created: {station_data.slug}")
        return StationResponse(**result.data[0])

    def update_station(self, station_id: str, station_data: StationUpdate) -> StationResponse:
        self.get_station(station_id)
        update_data = station_data.model_dump(exclude_none=True)
        update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
        result = self.supabase.table("kiosk_stations")\
            .update(update_data)\
            .eq("id", station_id)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Stația nu a fost găsită")
        return StationResponse(**result.data[0])

    def deactivate_station(self, station_id: str) -> StationResponse:
        """Stations are never hard deleted; their reminders keep referencing them"""
        return self.update_station(station_id, StationUpdate(is_active=False))

    def refresh_reminder_count(self, station_id: str) -> int:
        """Store the number of reminders ever registered at the station, soft-deleted ones included"""
        result = self.supabase.table("reminders")\
            .select("id", count="exact")\
            .eq("station_id", station_id)\
            .execute()
        total = result.count or 0
        self.supabase.table("kiosk_stations")\
            .update({"total_reminders": total})\
            .eq("id", station_id)\
            .execute()
        return total

    def add_guest_reminder(
        self,
        station: Dict[str, Any],
        data: GuestReminderCreate,
        client_ip: Optional[str] = None,
    ) -> GuestReminderResponse:
        error = validate_expiry_date(data.expiry_date, local_today())
        if error:
            raise HTTPException(status_code=400, detail=error)

        reminder = ReminderService(self.supabase).create_guest_reminder(
            station=station,
            guest_name=data.guest_name,
            guest_phone=data.guest_phone,
            plate_number=data.plate_number,
            expiry_date=data.expiry_date,
            consent_ip=client_ip,
            reminder_type=data.reminder_type,
        )

        try:
            self.refresh_reminder_count(station["id"])
        except Exception as e:
            logger.warning(f"Could not refresh reminder counter for station {station['id']}: {e}")

        return GuestReminderResponse(
            id=reminder["id"],
            message="Reminder creat cu succes",
            station_name=station["name"],
            next_notification_date=reminder.get("next_notification_date"),
        )
