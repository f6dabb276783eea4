import asyncio
from fastapi import APIRouter, Depends, Request
from app.database.supabase_client import get_service_supabase
from app.modules.verification.schemas import (
    SendCodeRequest, VerifyCodeRequest, SendCodeResponse, VerifyCodeResponse
)
from app.modules.verification.service import VerificationService
from app.core.dependencies import get_optional_user_id
from app.core.rate_limit import limiter
from app.config.settings import settings
from supabase import Client
from typing import Dict, Optional

router = APIRouter(prefix="/verification", tags=["verification"])


def get_verification_service(supabase: Client = Depends(get_service_supabase)) -> VerificationService:
    return VerificationService(supabase)


@router.post("/send", response_model=SendCodeResponse)
@limiter.limit(settings.kiosk_rate_limit)
async def send_code(
    request: Request,
    body: SendCodeRequest,
    service: VerificationService = Depends(get_verification_service)
):
    """Text a 6-digit verification code to the phone"""
    return await asyncio.to_thread(
        service.send_code, body.phone, station_slug=body.station_slug, source=body.source
    )


@router.post("/verify", response_model=VerifyCodeResponse)
async def verify_code(
    body: VerifyCodeRequest,
    user_data: Optional[Dict] = Depends(get_optional_user_id),
    service: VerificationService = Depends(get_verification_service)
):
    """Check a code; logged-in callers also get the phone saved on their profile"""
    return service.verify_code(body.phone, body.code, user_id=user_data["id"] if user_data else None)


@router.post("/resend", response_model=SendCodeResponse)
@limiter.limit(settings.kiosk_rate_limit)
async def resend_code(
    request: Request,
    body: SendCodeRequest,
    service: VerificationService = Depends(get_verification_service)
):
    return await asyncio.to_thread(
        service.resend_code, body.phone, station_slug=body.station_slug, source=body.source
    )
