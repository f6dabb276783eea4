from supabase import Client
from app.modules.kiosk.schemas import KioskSubmission
from app.modules.stations.schemas import StationBranding, GuestReminderCreate, GuestReminderResponse
from app.modules.stations.service import StationService
from app.modules.verification.service import VerificationService
from app.core.validation import mask_phone
from app.config.settings import settings
from typing import Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class KioskService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.stations = StationService(supabase)

    def get_branding(self, slug: str) -> StationBranding:
        return self.stations.get_branding(slug)

    def submit(self, submission: KioskSubmission, client_ip: Optional[str] = None) -> GuestReminderResponse:
        station = self.stations.get_active_station_by_slug(submission.station_slug)

        if settings.kiosk_require_verified_phone:
            verifier = VerificationService(self.supabase)
            if not verifier.is_recently_verified(submission.guest_phone):
                raise HTTPException(status_code=400, detail="Numărul de telefon nu a fost verificat")

        logger.info(
            f"Kiosk submission at {station['slug']} for {submission.plate_number} "
            f"({mask_phone(submission.guest_phone)})"
        )
        data = GuestReminderCreate(**submission.model_dump(exclude={"station_slug"}))
        return self.stations.add_guest_reminder(station, data, client_ip=client_ip)
