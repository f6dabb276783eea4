from fastapi import APIRouter, Depends, HTTPException, Request
from app.database.supabase_client import get_service_supabase
from app.modules.stations.schemas import (
    StationCreate, StationUpdate, StationResponse, GuestReminderCreate, GuestReminderResponse
)
from app.modules.stations.service import StationService
from app.core.dependencies import require_role, is_admin, ROLE_STATION_MANAGER
from app.core.rate_limit import get_client_ip, limiter
from app.config.settings import settings
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/stations", tags=["stations"])


def get_station_service(supabase: Client = Depends(get_service_supabase)) -> StationService:
    return StationService(supabase)


@router.get("", response_model=List[StationResponse])
async def list_stations(
    active_only: bool = False,
    limit: int = 50,
    offset: int = 0,
    user_data: Dict = Depends(require_role()),
    service: StationService = Depends(get_station_service)
):
    """List stations (admin)"""
    return service.list_stations(active_only=active_only, limit=limit, offset=offset)


@router.post("", response_model=StationResponse, status_code=201)
async def create_station(
    station_data: StationCreate,
    user_data: Dict = Depends(require_role()),
    service: StationService = Depends(get_station_service)
):
    """Create a station (admin)"""
    return service.create_station(station_data)


@router.get("/{station_id}", response_model=StationResponse)
async def get_station(
    station_id: str,
    user_data: Dict = Depends(require_role(ROLE_STATION_MANAGER)),
    service: StationService = Depends(get_station_service)
):
    """Get a station (admin, or the station's manager)"""
    if not is_admin(user_data) and user_data.get("station_id") != station_id:
        raise HTTPException(status_code=403, detail="Nu ai acces la această stație")
    return service.get_station(station_id)


@router.put("/{station_id}", response_model=StationResponse)
async def update_station(
    station_id: str,
    station_data: StationUpdate,
    user_data: Dict = Depends(require_role(ROLE_STATION_MANAGER)),
    service: StationService = Depends(get_station_service)
):
    """Update branding and SMS templates (admin, or the station's manager)"""
    if not is_admin(user_data):
        if user_data.get("station_id") != station_id:
            raise HTTPException(status_code=403, detail="Nu ai acces la această stație")
        if station_data.is_active is not None:
            raise HTTPException(status_code=403, detail="Doar administratorii pot activa sau dezactiva stații")
    return service.update_station(station_id, station_data)


@router.delete("/{station_id}", response_model=StationResponse)
async def deactivate_station(
    station_id: str,
    user_data: Dict = Depends(require_role()),
    service: StationService = Depends(get_station_service)
):
    """Deactivate a station (admin)"""
    return service.deactivate_station(station_id)


@router.post("/{station_id}/reminders", response_model=GuestReminderResponse, status_code=201)
@limiter.limit(settings.reminder_mutation_rate_limit)
async def add_station_reminder(
    request: Request,
    station_id: str,
    reminder_data: GuestReminderCreate,
    user_data: Dict = Depends(require_role(ROLE_STATION_MANAGER)),
    service: StationService = Depends(get_station_service)
):
    """Register a walk-in customer's reminder at the manager's station"""
    if not is_admin(user_data) and user_data.get("station_id") != station_id:
        raise HTTPException(status_code=403, detail="Nu ai acces la această stație")
    station = service.get_station(station_id).model_dump()
    if not station.get("is_active"):
        raise HTTPException(status_code=403, detail="Stația nu este activă")
    return service.add_guest_reminder(station, reminder_data, client_ip=get_client_ip(request))
