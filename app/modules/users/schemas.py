from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List, Literal
from datetime import datetime
from app.core.validation import format_phone_number

_HHMM = r"^([01]\d|2[0-3]):[0-5]\d$"


class UserUpdate(BaseModel):
    full_name: Optional[str] = Field(default=None, min_length=3)
    phone: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    prefers_sms: Optional[bool] = None

    @field_validator("phone")
    @classmethod
    def normalize_phone(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        formatted = format_phone_number(value)
        if not formatted:
            raise ValueError("Numărul de telefon trebuie să fie în format +40XXXXXXXXX")
        return formatted


class UserResponse(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    phone_verified: bool = False
    role: str = "user"
    station_id: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    prefers_sms: bool = False
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserRoleUpdate(BaseModel):
    role: Literal["user", "station_manager", "admin"]
    station_id: Optional[str] = None

    @model_validator(mode="after")
    def station_required_for_manager(self):
        if self.role == "station_manager" and not self.station_id:
            raise ValueError("station_id is required for station managers")
        return self


class NotificationSettings(BaseModel):
    email_notifications: bool = True
    sms_notifications: bool = False
    quiet_hours_enabled: bool = False
    quiet_hours_start: Optional[str] = None
    quiet_hours_end: Optional[str] = None
    quiet_hours_weekdays_only: bool = False


class NotificationSettingsUpdate(BaseModel):
    email_notifications: Optional[bool] = None
    sms_notifications: Optional[bool] = None
    quiet_hours_enabled: Optional[bool] = None
    quiet_hours_start: Optional[str] = Field(default=None, pattern=_HHMM)
    quiet_hours_end: Optional[str] = Field(default=None, pattern=_HHMM)
    quiet_hours_weekdays_only: Optional[bool] = None


class AccountExport(BaseModel):
    exported_at: datetime
    profile: dict
    reminders: List[dict]
    notifications: List[dict]
