import hashlib
import logging
import time
from supabase import Client
from app.config.settings import settings
from app.core.validation import mask_phone
from app.modules.auth.schemas import LoginRequest, RegisterRequest, TokenResponse, RegisterResponse
from fastapi import HTTPException
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

# Token -> user lookups, shared by every request in the process
_AUTH_USER_CACHE: Dict[str, tuple] = {}
_AUTH_CACHE_TTL_SEC = 60
_AUTH_CACHE_MAX_SIZE = 500

ALREADY_REGISTERED = ("already registered", "already exists")
BAD_CREDENTIALS = ("invalid", "credentials")


def _token_key(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def _cached_user(token: str) -> Optional[Dict[str, Any]]:
    entry = _AUTH_USER_CACHE.get(_token_key(token))
    if not entry:
        return None
    user_data, expiry = entry
    if time.monotonic() >= expiry:
        _AUTH_USER_CACHE.pop(_token_key(token), None)
        return None
    return user_data


def _cache_user(token: str, user_data: Dict[str, Any]) -> None:
    now = time.monotonic()
    if len(_AUTH_USER_CACHE) >= _AUTH_CACHE_MAX_SIZE:
        for key in [k for k, (_, expiry) in _AUTH_USER_CACHE.items() if expiry <= now]:
            del _AUTH_USER_CACHE[key]
    if len(_AUTH_USER_CACHE) < _AUTH_CACHE_MAX_SIZE:
        _AUTH_USER_CACHE[_token_key(token)] = (user_data, now + _AUTH_CACHE_TTL_SEC)


def signup_metadata(register_data: RegisterRequest) -> Dict[str, Any]:
    """user_metadata copied into user_profiles by the on-signup database trigger"""
    metadata: Dict[str, Any] = {"sms_notifications": register_data.sms_notifications}
    for field in ("full_name", "phone", "city", "country"):
        value = getattr(register_data, field)
        if value:
            metadata[field] = value
    return metadata


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        """Create a Supabase Auth account; the profile row is created from its metadata"""
        try:
            auth_response = self.supabase.auth.sign_up({
                "email": register_data.email,
                "password": register_data.password,
                "options": {
                    "data": signup_metadata(register_data),
                    "email_redirect_to": f"{settings.app_url}/auth/callback",
                }
            })
        except Exception as e:
            if any(marker in str(e).lower() for marker in ALREADY_REGISTERED):
                raise HTTPException(status_code=400, detail="Acest email este deja înregistrat")
            logger.error(f"Registration failed for {register_data.email}: {e}")
            raise HTTPException(status_code=500, detail="A apărut o eroare la înregistrare")

        if not auth_response.user:
            raise HTTPException(status_code=400, detail="A apărut o eroare la înregistrare")

        confirmation_required = auth_response.session is None
        logger.info(
            f"User registered: {auth_response.user.id} "
            f"(phone {mask_phone(register_data.phone) if register_data.phone else '-'}, "
            f"confirmation required: {confirmation_required})"
        )
        return RegisterResponse(
            user_id=auth_response.user.id,
            email=auth_response.user.email or register_data.email,
            email_confirmation_required=confirmation_required,
            message="Cont creat. Verifică emailul pentru confirmare."
            if confirmation_required else "Cont creat.",
        )

    def login(self, login_data: LoginRequest) -> TokenResponse:
        try:
            auth_response = self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })
        except Exception as e:
            if any(marker in str(e).lower() for marker in BAD_CREDENTIALS):
                raise HTTPException(status_code=401, detail="Email sau parolă incorectă")
            logger.error(f"Login failed for {login_data.email}: {e}")
            raise HTTPException(status_code=500, detail="A apărut o eroare. Vă rugăm să încercați din nou.")

        if not auth_response.user or not auth_response.session:
            raise HTTPException(status_code=401, detail="Email sau parolă incorectă")

        return TokenResponse(
            access_token=auth_response.session.access_token,
            token_type="bearer",
            user_id=auth_response.user.id,
            email=auth_response.user.email or login_data.email
        )

    def request_password_reset(self, email: str) -> None:
        """Send the reset email; the outcome is never revealed to the caller"""
        try:
            self.supabase.auth.reset_password_for_email(
                email, {"redirect_to": f"{settings.app_url}/auth/reset-password"}
            )
        except Exception as e:
            logger.error(f"Password reset email failed: {e}")

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Resolve a bearer token to the Supabase Auth user (cached for a minute)"""
        cached = _cached_user(token)
        if cached:
            return cached
        try:
            user_response = self.supabase.auth.get_user(jwt=token)
        except Exception as e:
            logger.debug(f"Token rejected: {e}")
            raise HTTPException(status_code=401, detail="Invalid or expired token")
        if not user_response or not user_response.user:
            raise HTTPException(status_code=401, detail="Invalid or expired token")

        user = user_response.user
        user_data = {
            "id": user.id,
            "email": user.email,
            "user_metadata": user.user_metadata or {},
            "app_metadata": user.app_metadata or {},
            "created_at": user.created_at,
            "updated_at": user.updated_at
        }
        _cache_user(token, user_data)
        return user_data

    def logout(self, token: str) -> bool:
        """Forget the cached lookup and end the Supabase session"""
        _AUTH_USER_CACHE.pop(_token_key(token), None)
        try:
            self.supabase.auth.sign_out()
            return True
        except Exception as e:
            logger.warning(f"Supabase sign out failed: {e}")
            return False
