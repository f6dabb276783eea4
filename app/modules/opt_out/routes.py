from fastapi import APIRouter, Depends, HTTPException
from app.database.supabase_client import get_service_supabase
from app.modules.opt_out.schemas import OptOutRequest, OptOutResponse, OptOutStatusResponse
from app.modules.opt_out.service import OptOutService
from supabase import Client
from typing import Optional

router = APIRouter(prefix="/opt-out", tags=["opt-out"])


def get_opt_out_service(supabase: Client = Depends(get_service_supabase)) -> OptOutService:
    return OptOutService(supabase)


@router.post("", response_model=OptOutResponse)
async def opt_out(
    body: OptOutRequest,
    service: OptOutService = Depends(get_opt_out_service)
):
    """Unsubscribe a phone number from all SMS notifications"""
    return service.opt_out(body.token)


@router.get("", response_model=OptOutStatusResponse)
async def opt_out_status(
    token: Optional[str] = None,
    service: OptOutService = Depends(get_opt_out_service)
):
    """Check whether the phone in the token is opted out"""
    if not token:
        raise HTTPException(status_code=400, detail="Token lipsește")
    return service.get_status(token)
