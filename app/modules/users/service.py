from supabase import Client
from app.modules.users.schemas import (
    UserUpdate, UserResponse, UserRoleUpdate, NotificationSettings,
    NotificationSettingsUpdate, AccountExport
)
from app.modules.notifications.quiet_hours import QUIET_HOURS_COLUMNS
from typing import List
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)

SETTINGS_COLUMNS = f"email_notifications, sms_notifications, {QUIET_HOURS_COLUMNS}"


class UserService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_user_by_id(self, user_id: str) -> UserResponse:
        """Get user profile by ID"""
        try:
            result = self.supabase.table("user_profiles")\
                .select("*")\
                .eq("id", user_id)\
                .limit(1)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Utilizatorul nu a fost găsit")

            return UserResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_user(self, user_id: str, user_data: UserUpdate) -> UserResponse:
        """Update user profile. Changing the phone number clears its verification."""
        try:
            update_data = user_data.model_dump(exclude_none=True)
            update_data["updated_at"] = datetime.now(timezone.utc).isoformat()

            if "phone" in update_data:
                current = self.get_user_by_id(user_id)
                if current.phone != update_data["phone"]:
                    update_data["phone_verified"] = False

            result = self.supabase.table("user_profiles")\
                .update(update_data)\
                .eq("id", user_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Utilizatorul nu a fost găsit")

            return UserResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_users(self, limit: int = 20, offset: int = 0, role: str = None) -> List[UserResponse]:
        """List all user profiles (admin)"""
        try:
            query = self.supabase.table("user_profiles").select("*")
            if role:
                query = query.eq("role", role)
            result = query\
                .order("created_at", desc=True)\
                .range(offset, offset + limit - 1)\
                .execute()
            return [UserResponse(**user) for user in result.data]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_role(self, user_id: str, role_data: UserRoleUpdate) -> UserResponse:
        """Change a user's role (admin). Only station managers keep a station_id."""
        try:
            if role_data.station_id:
                station = self.supabase.table("kiosk_stations")\
                    .select("id")\
                    .eq("id", role_data.station_id)\
                    .limit(1)\
                    .execute()
                if not station.data:
                    raise HTTPException(status_code=404, detail="Stația nu a fost găsită")

            result = self.supabase.table("user_profiles")\
                .update({
                    "role": role_data.role,
                    "station_id": role_data.station_id if role_data.role == "station_manager" else None,
                    "updated_at": datetime.now(timezone.utc).isoformat(),
                })\
                .eq("id", user_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Utilizatorul nu a fost găsit")

            logger.info(f"User {user_id} role set to {role_data.role}")
            return UserResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_notification_settings(self, user_id: str) -> NotificationSettings:
        result = self.supabase.table("user_profiles")\
            .select(SETTINGS_COLUMNS)\
            .eq("id", user_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Utilizatorul nu a fost găsit")
        # Columns left NULL fall back to the model defaults
        row = {k: v for k, v in result.data[0].items() if v is not None}
        return NotificationSettings(**row)

    def update_notification_settings(self, user_id: str, update: NotificationSettingsUpdate) -> NotificationSettings:
        update_data = update.model_dump(exclude_none=True)
        enabling = update_data.get("quiet_hours_enabled")
        if enabling:
            current = self.get_notification_settings(user_id)
            start = update_data.get("quiet_hours_start", current.quiet_hours_start)
            end = update_data.get("quiet_hours_end", current.quiet_hours_end)
            if not start or not end:
                raise HTTPException(status_code=400, detail="Intervalul de liniște necesită ora de început și de sfârșit")
            if start == end:
                raise HTTPException(status_code=400, detail="Ora de început și de sfârșit nu pot fi egale")

        update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
        result = self.supabase.table("user_profiles")\
            .update(update_data)\
            .eq("id", user_id)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Utilizatorul nu a fost găsit")
        return self.get_notification_settings(user_id)

    def export_account(self, user_id: str) -> AccountExport:
        """Everything stored about the user (GDPR data portability)"""
        profile = self.supabase.table("user_profiles")\
            .select("*")\
            .eq("id", user_id)\
            .limit(1)\
            .execute()
        if not profile.data:
            raise HTTPException(status_code=404, detail="Utilizatorul nu a fost găsit")

        reminders = self.supabase.table("reminders")\
            .select("*")\
            .eq("user_id", user_id)\
            .execute()
        reminder_ids = [r["id"] for r in reminders.data or []]

        notifications = []
        if reminder_ids:
            notifications = self.supabase.table("notification_log")\
                .select("*")\
                .in_("reminder_id", reminder_ids)\
                .order("sent_at", desc=True)\
                .execute().data or []

        return AccountExport(
            exported_at=datetime.now(timezone.utc),
            profile=profile.data[0],
            reminders=reminders.data or [],
            notifications=notifications,
        )

    def delete_account(self, user_id: str) -> bool:
        """Soft delete reminders, delete notification history and the profile, then the auth user."""
        now = datetime.now(timezone.utc).isoformat()
        try:
            reminders = self.supabase.table("reminders")\
                .select("id")\
                .eq("user_id", user_id)\
                .execute()
            reminder_ids = [r["id"] for r in reminders.data or []]

            if reminder_ids:
                self.supabase.table("notification_log")\
                    .delete()\
                    .in_("reminder_id", reminder_ids)\
                    .execute()
                self.supabase.table("reminders")\
                    .update({"deleted_at": now, "next_notification_date": None, "updated_at": now})\
                    .eq("user_id", user_id)\
                    .execute()

            result = self.supabase.table("user_profiles")\
                .delete()\
                .eq("id", user_id)\
                .execute()

            try:
                self.supabase.auth.admin.delete_user(user_id)
            except Exception as e:
                logger.error(f"Profile {user_id} deleted but auth user removal failed: {e}")

            logger.info(f"Account {user_id} deleted ({len(reminder_ids)} reminders)")
            return len(result.data) > 0
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
