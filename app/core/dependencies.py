"""
Core dependencies for route protection and role checking
"""

from fastapi import Depends, Header, HTTPException, Request, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.config.settings import settings
from app.database.supabase_client import get_supabase, get_service_supabase
from app.modules.auth.service import AuthService
from supabase import Client
from typing import Optional, Dict, Any
import hmac
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)

ROLE_USER = "user"
ROLE_STATION_MANAGER = "station_manager"
ROLE_ADMIN = "admin"
ROLES = (ROLE_USER, ROLE_STATION_MANAGER, ROLE_ADMIN)


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    token = credentials.credentials
    user_data = auth_service.get_current_user(token)
    return user_data


def get_optional_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(optional_security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[dict]:
    """Same as get_current_user_id, but anonymous callers get None instead of 401/403"""
    if credentials is None:
        return None
    return auth_service.get_current_user(credentials.credentials)


def get_user_profile(user_id: str, supabase: Client) -> Optional[Dict[str, Any]]:
    """Return role and station of a user from user_profiles, None when the profile is missing."""
    try:
        result = supabase.table("user_profiles")\
            .select("id, role, station_id")\
            .eq("id", user_id)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None
    except Exception as e:
        logger.error(f"Error getting user profile: {e}")
        return None


def get_current_user(
    request: Request,
    user_data: dict = Depends(get_current_user_id),
    supabase: Client = Depends(get_service_supabase)
) -> dict:
    """Authenticated user with role and station_id. Cached on the request."""
    if hasattr(request.state, "current_user"):
        return request.state.current_user
    profile = get_user_profile(user_data["id"], supabase) or {}
    current_user = {
        **user_data,
        "role": profile.get("role") or ROLE_USER,
        "station_id": profile.get("station_id"),
    }
    request.state.current_user = current_user
    return current_user


def is_admin(user_data: dict) -> bool:
    return user_data.get("role") == ROLE_ADMIN


def is_station_manager(user_data: dict) -> bool:
    return user_data.get("role") == ROLE_STATION_MANAGER and bool(user_data.get("station_id"))


def require_role(*allowed_roles: str):
    """Factory function to create a role check dependency. Admins always pass."""
    def check_role(user_data: dict = Depends(get_current_user)) -> dict:
        if is_admin(user_data) or user_data.get("role") in allowed_roles:
            return user_data
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Nu ai permisiunea necesară pentru această acțiune"
        )
    return check_role


def can_access_reminder(reminder: Dict[str, Any], user_data: dict) -> bool:
    """Owner, manager of the reminder's station, or admin"""
    if is_admin(user_data):
        return True
    if reminder.get("user_id") and reminder.get("user_id") == user_data["id"]:
        return True
    if is_station_manager(user_data) and reminder.get("station_id") == user_data.get("station_id"):
        return True
    return False


def check_reminder_access(reminder: Dict[str, Any], user_data: dict) -> dict:
    if not can_access_reminder(reminder, user_data):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Nu ai permisiunea să accesezi acest reminder"
        )
    return user_data


def verify_cron_secret(authorization: Optional[str] = Header(default=None)) -> None:
    """Cron triggers authenticate with Authorization: Bearer <CRON_SECRET>"""
    if not settings.cron_secret:
        logger.error("CRON_SECRET not configured")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server misconfiguration: CRON_SECRET not set"
        )
    expected = f"Bearer {settings.cron_secret}"
    if not authorization or not hmac.compare_digest(authorization, expected):
        logger.warning("Unauthorized cron trigger attempt")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing CRON_SECRET"
        )
