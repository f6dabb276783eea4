from fastapi import APIRouter, Depends, Request
from app.database.supabase_client import get_service_supabase
from app.modules.kiosk.schemas import KioskSubmission
from app.modules.kiosk.service import KioskService
from app.modules.stations.schemas import StationBranding, GuestReminderResponse
from app.core.rate_limit import get_client_ip, limiter
from app.config.settings import settings
from supabase import Client

router = APIRouter(prefix="/kiosk", tags=["kiosk"])


def get_kiosk_service(supabase: Client = Depends(get_service_supabase)) -> KioskService:
    return KioskService(supabase)


@router.get("/stations/{slug}", response_model=StationBranding)
async def get_station_branding(
    slug: str,
    service: KioskService = Depends(get_kiosk_service)
):
    """Public branding for the kiosk tablet"""
    return service.get_branding(slug)


@router.post("/submit", response_model=GuestReminderResponse, status_code=201)
@limiter.limit(settings.kiosk_rate_limit)
async def submit(
    request: Request,
    submission: KioskSubmission,
    service: KioskService = Depends(get_kiosk_service)
):
    """Register a guest ITP reminder from a station kiosk (no login)"""
    return service.submit(submission, client_ip=get_client_ip(request))
