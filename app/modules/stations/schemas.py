from pydantic import BaseModel, Field, field_validator
from typing import Optional, Literal
from datetime import date, datetime
from app.core.validation import (
    format_phone_number, is_valid_plate_number, normalize_plate_number, validate_name
)

_SLUG = r"^[a-z0-9-]+$"
_COLOR = r"^#[0-9A-Fa-f]{6}$"


def _phone(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    formatted = format_phone_number(value)
    if not formatted:
        raise ValueError("Numărul de telefon trebuie să fie în format +40XXXXXXXXX")
    return formatted


class StationCreate(BaseModel):
    slug: str = Field(min_length=3, pattern=_SLUG)
    name: str = Field(min_length=3)
    logo_url: Optional[str] = None
    primary_color: str = Field(default="#3B82F6", pattern=_COLOR)
    station_phone: Optional[str] = None
    station_address: Optional[str] = None
    sms_template_5d: Optional[str] = Field(default=None, min_length=10)
    sms_template_3d: Optional[str] = Field(default=None, min_length=10)
    sms_template_1d: Optional[str] = Field(default=None, min_length=10)

    @field_validator("station_phone")
    @classmethod
    def normalize_phone(cls, value: Optional[str]) -> Optional[str]:
        return _phone(value)


class StationUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=3)
    logo_url: Optional[str] = None
    primary_color: Optional[str] = Field(default=None, pattern=_COLOR)
    station_phone: Optional[str] = None
    station_address: Optional[str] = None
    is_active: Optional[bool] = None
    sms_template_5d: Optional[str] = Field(default=None, min_length=10)
    sms_template_3d: Optional[str] = Field(default=None, min_length=10)
    sms_template_1d: Optional[str] = Field(default=None, min_length=10)

    @field_validator("station_phone")
    @classmethod
    def normalize_phone(cls, value: Optional[str]) -> Optional[str]:
        return _phone(value)


class StationResponse(BaseModel):
    id: str
    slug: str
    name: str
    is_active: bool = True
    logo_url: Optional[str] = None
    primary_color: Optional[str] = None
    station_phone: Optional[str] = None
    station_address: Optional[str] = None
    sms_template_5d: Optional[str] = None
    sms_template_3d: Optional[str] = None
    sms_template_1d: Optional[str] = None
    total_reminders: Optional[int] = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StationBranding(BaseModel):
    """Public subset shown on the kiosk tablet"""
    id: str
    slug: str
    name: str
    logo_url: Optional[str] = None
    primary_color: str = "#3B82F6"
    station_phone: Optional[str] = None
    station_address: Optional[str] = None


class GuestReminderCreate(BaseModel):
    guest_name: str
    guest_phone: str
    plate_number: str = Field(min_length=4, max_length=15)
    expiry_date: date
    reminder_type: Literal["itp", "rca", "rovinieta"] = "itp"
    consent_given: bool

    @field_validator("guest_name")
    @classmethod
    def check_name(cls, value: str) -> str:
        error = validate_name(value)
        if error:
            raise ValueError(error)
        return value.strip()

    @field_validator("guest_phone")
    @classmethod
    def normalize_phone(cls, value: str) -> str:
        return _phone(value)

    @field_validator("plate_number")
    @classmethod
    def normalize_plate(cls, value: str) -> str:
        if not is_valid_plate_number(value):
            raise ValueError("Număr de înmatriculare invalid (ex: B123ABC, B-123-ABC)")
        return normalize_plate_number(value)

    @field_validator("consent_given")
    @classmethod
    def require_consent(cls, value: bool) -> bool:
        if value is not True:
            raise ValueError("Trebuie să accepți prelucrarea datelor pentru a continua")
        return value


class GuestReminderResponse(BaseModel):
    id: str
    message: str
    station_name: str
    next_notification_date: Optional[date] = None
