from supabase import Client
from app.modules.verification.schemas import SendCodeResponse, VerifyCodeResponse
from app.integrations.notifyhub import NotifyHubClient, get_notifyhub
from app.core.validation import mask_phone
from app.config.settings import settings
from typing import Any, Dict, Optional
from fastapi import HTTPException
from datetime import datetime, timedelta, timezone
import secrets
import logging

logger = logging.getLogger(__name__)


def generate_code() -> str:
    """Random 6-digit code, never starting with 0"""
    return str(100000 + secrets.randbelow(900000))


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class VerificationService:
    def __init__(self, supabase: Client, notifyhub: Optional[NotifyHubClient] = None):
        self.supabase = supabase
        self.notifyhub = notifyhub or get_notifyhub()

    def _station_name(self, station_slug: Optional[str]) -> Optional[str]:
        if not station_slug:
            return None
        result = self.supabase.table("kiosk_stations")\
            .select("name")\
            .eq("slug", station_slug)\
            .limit(1)\
            .execute()
        return result.data[0]["name"] if result.data else None

    def codes_sent_last_hour(self, phone: str, now: datetime) -> int:
        since = (now - timedelta(hours=1)).isoformat()
        result = self.supabase.table("phone_verifications")\
            .select("id", count="exact")\
            .eq("phone_number", phone)\
            .gte("created_at", since)\
            .execute()
        return result.count if result.count is not None else len(result.data or [])

    def send_code(
        self,
        phone: str,
        station_slug: Optional[str] = None,
        source: str = "kiosk",
        now: Optional[datetime] = None,
    ) -> SendCodeResponse:
        """Store a fresh code for the phone and text it through NotifyHub.

        Failures are reported with a generic message so the endpoint cannot be
        used to probe which numbers exist.
        """
        now = now or datetime.now(timezone.utc)

        if self.codes_sent_last_hour(phone, now) >= settings.verification_max_codes_per_hour:
            logger.warning(f"Verification rate limit reached for {mask_phone(phone)}")
            raise HTTPException(
                status_code=429,
                detail="Prea multe coduri solicitate. Încearcă din nou peste o oră."
            )

        code = generate_code()
        ttl = timedelta(minutes=settings.verification_code_ttl_minutes)
        inserted = self.supabase.table("phone_verifications").insert({
            "phone_number": phone,
            "verification_code": code,
            "station_slug": station_slug,
            "source": source,
            "expires_at": (now + ttl).isoformat(),
            "attempts": 0,
            "verified": False,
            "created_at": now.isoformat(),
        }).execute()
        if not inserted.data:
            raise HTTPException(status_code=500, detail="Nu am putut trimite codul de verificare")
        row_id = inserted.data[0]["id"]

        sms = self.notifyhub.send_verification_code(phone, code, self._station_name(station_slug))
        if not sms.success:
            logger.error(f"Verification SMS to {mask_phone(phone)} failed: {sms.error}")
            self.supabase.table("phone_verifications").delete().eq("id", row_id).execute()
            raise HTTPException(status_code=500, detail="Nu am putut trimite codul de verificare")

        logger.info(f"Verification code sent to {mask_phone(phone)} (source {source})")
        return SendCodeResponse(
            message="Codul de verificare a fost trimis",
            expires_in=int(ttl.total_seconds()),
        )

    def resend_code(self, phone: str, station_slug: Optional[str] = None, source: str = "kiosk") -> SendCodeResponse:
        return self.send_code(phone, station_slug=station_slug, source=source)

    def _latest_pending(self, phone: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("phone_verifications")\
            .select("*")\
            .eq("phone_number", phone)\
            .eq("verified", False)\
            .order("created_at", desc=True)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def verify_code(
        self,
        phone: str,
        code: str,
        user_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> VerifyCodeResponse:
        now = now or datetime.now(timezone.utc)
        row = self._latest_pending(phone)
        if not row:
            raise HTTPException(status_code=400, detail="Nu există un cod activ pentru acest număr")

        if _parse_timestamp(row["expires_at"]) < now:
            raise HTTPException(status_code=400, detail="Codul a expirat. Solicită un cod nou.")

        attempts = row.get("attempts") or 0
        if attempts >= settings.verification_max_attempts:
            raise HTTPException(status_code=429, detail="Prea multe încercări. Solicită un cod nou.")

        if not secrets.compare_digest(str(row["verification_code"]), code):
            attempts += 1
            self.supabase.table("phone_verifications")\
                .update({"attempts": attempts})\
                .eq("id", row["id"])\
                .execute()
            remaining = max(settings.verification_max_attempts - attempts, 0)
            raise HTTPException(
                status_code=400,
                detail=f"Cod incorect. Mai ai {remaining} încercări."
            )

        self.supabase.table("phone_verifications")\
            .update({"verified": True, "verified_at": now.isoformat()})\
            .eq("id", row["id"])\
            .execute()

        if user_id:
            self.supabase.table("user_profiles")\
                .update({"phone": phone, "phone_verified": True, "updated_at": now.isoformat()})\
                .eq("id", user_id)\
                .execute()

        logger.info(f"Phone {mask_phone(phone)} verified")
        return VerifyCodeResponse(verified=True, phone=phone, message="Număr de telefon verificat")

    def is_recently_verified(self, phone: str, within_minutes: int = 60, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        result = self.supabase.table("phone_verifications")\
            .select("id")\
            .eq("phone_number", phone)\
            .eq("verified", True)\
            .gte("verified_at", (now - timedelta(minutes=within_minutes)).isoformat())\
            .limit(1)\
            .execute()
        return bool(result.data)
