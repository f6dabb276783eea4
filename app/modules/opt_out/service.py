import base64
import binascii
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import HTTPException
from supabase import Client

from app.config.settings import settings
from app.core.validation import format_phone_number, mask_phone
from app.modules.opt_out.schemas import OptOutResponse, OptOutStatusResponse

logger = logging.getLogger(__name__)

OPT_OUT_MESSAGE = "Ai fost dezabonat cu succes de la notificări"


def encode_opt_out_token(phone: str) -> str:
    """base64url of the phone number; keeps it out of plain sight in SMS links, not a secret."""
    return base64.urlsafe_b64encode(phone.encode("utf-8")).decode("ascii").rstrip("=")


def decode_opt_out_token(token: str) -> Optional[str]:
    try:
        padded = token + "=" * (-len(token) % 4)
        return base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")
    except (binascii.Error, UnicodeError, ValueError) as e:
        logger.warning(f"Failed to decode opt-out token: {e}")
        return None


def generate_opt_out_link(phone: str) -> str:
    return f"{settings.app_url}/opt-out?t={encode_opt_out_token(phone)}"


def is_phone_opted_out(phone: Optional[str], supabase: Client) -> bool:
    """True when the phone has an active (not soft-deleted) global opt-out."""
    if not phone:
        return False
    result = supabase.table("global_opt_outs")\
        .select("phone")\
        .eq("phone", phone)\
        .is_("deleted_at", "null")\
        .limit(1)\
        .execute()
    return bool(result.data)


class OptOutService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _phone_from_token(self, token: str) -> str:
        phone = decode_opt_out_token(token)
        if not phone:
            raise HTTPException(status_code=400, detail="Token invalid")
        formatted = format_phone_number(phone)
        if not formatted:
            raise HTTPException(status_code=400, detail="Număr de telefon invalid")
        return formatted

    def opt_out(self, token: str) -> OptOutResponse:
        """Register a global opt-out for the phone in the token (GDPR unsubscribe)."""
        phone = self._phone_from_token(token)
        now = datetime.now(timezone.utc).isoformat()

        existing = self.supabase.table("global_opt_outs")\
            .select("phone, opted_out_at, deleted_at")\
            .eq("phone", phone)\
            .limit(1)\
            .execute()

        if existing.data:
            if existing.data[0].get("deleted_at"):
                self.supabase.table("global_opt_outs")\
                    .update({"opted_out_at": now, "deleted_at": None})\
                    .eq("phone", phone)\
                    .execute()
                logger.info(f"Restored opt-out for {mask_phone(phone)}")
            else:
                logger.info(f"Phone already opted out: {mask_phone(phone)}")
                return OptOutResponse(message=OPT_OUT_MESSAGE)
        else:
            try:
                self.supabase.table("global_opt_outs").insert({
                    "phone": phone,
                    "opted_out_at": now,
                }).execute()
            except Exception as e:
                logger.error(f"Error inserting opt-out: {e}")
                raise HTTPException(status_code=500, detail="Eroare la procesarea cererii")
            logger.info(f"Opted out: {mask_phone(phone)}")

        try:
            self.supabase.table("reminders")\
                .update({"opt_out": True, "opt_out_timestamp": now})\
                .eq("guest_phone", phone)\
                .execute()
        except Exception as e:
            # global_opt_outs is checked again at send time
            logger.error(f"Error flagging reminders as opted out: {e}")

        return OptOutResponse(message=OPT_OUT_MESSAGE)

    def get_status(self, token: str) -> OptOutStatusResponse:
        phone = self._phone_from_token(token)
        result = self.supabase.table("global_opt_outs")\
            .select("phone, opted_out_at")\
            .eq("phone", phone)\
            .is_("deleted_at", "null")\
            .limit(1)\
            .execute()
        row = result.data[0] if result.data else None
        return OptOutStatusResponse(
            opted_out=row is not None,
            phone=phone,
            opted_out_at=row.get("opted_out_at") if row else None,
        )
