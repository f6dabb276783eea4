from fastapi import APIRouter, Depends
from app.database.supabase_client import get_service_supabase
from app.modules.users.schemas import (
    UserUpdate, UserResponse, UserRoleUpdate, NotificationSettings,
    NotificationSettingsUpdate, AccountExport
)
from app.modules.users.service import UserService
from app.core.dependencies import get_current_user, require_role
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/users", tags=["users"])


def get_user_service(supabase: Client = Depends(get_service_supabase)) -> UserService:
    return UserService(supabase)


@router.get("/me", response_model=UserResponse)
async def get_my_profile(
    current_user: Dict = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    """Get the caller's profile"""
    return service.get_user_by_id(current_user["id"])


@router.put("/me", response_model=UserResponse)
async def update_my_profile(
    user_data_body: UserUpdate,
    current_user: Dict = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    """Update the caller's profile"""
    return service.update_user(current_user["id"], user_data_body)


@router.get("/me/notification-settings", response_model=NotificationSettings)
async def get_notification_settings(
    current_user: Dict = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    """Email/SMS preferences and quiet hours"""
    return service.get_notification_settings(current_user["id"])


@router.patch("/me/notification-settings", response_model=NotificationSettings)
async def update_notification_settings(
    body: NotificationSettingsUpdate,
    current_user: Dict = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    return service.update_notification_settings(current_user["id"], body)


@router.get("/me/export", response_model=AccountExport)
async def export_my_account(
    current_user: Dict = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    """Download all personal data (GDPR)"""
    return service.export_account(current_user["id"])


@router.delete("/me", status_code=204)
async def delete_my_account(
    current_user: Dict = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    """Delete the caller's account and stop all their reminders"""
    service.delete_account(current_user["id"])
    return None


@router.get("", response_model=List[UserResponse])
async def list_users(
    limit: int = 20,
    offset: int = 0,
    role: Optional[str] = None,
    user_data: Dict = Depends(require_role()),
    service: UserService = Depends(get_user_service)
):
    """List users (admin)"""
    return service.list_users(limit=limit, offset=offset, role=role)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    user_data: Dict = Depends(require_role()),
    service: UserService = Depends(get_user_service)
):
    """Get user by ID (admin)"""
    return service.get_user_by_id(user_id)


@router.put("/{user_id}/role", response_model=UserResponse)
async def update_user_role(
    user_id: str,
    role_data: UserRoleUpdate,
    user_data: Dict = Depends(require_role()),
    service: UserService = Depends(get_user_service)
):
    """Change a user's role (admin)"""
    return service.update_role(user_id, role_data)
