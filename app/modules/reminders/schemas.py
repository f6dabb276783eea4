from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Literal
from datetime import date, datetime
from app.core.validation import is_valid_plate_number, normalize_plate_number

ReminderType = Literal["itp", "rca", "rovinieta"]

MAX_INTERVAL_DAYS = 365


def _normalize_plate(value: str) -> str:
    if not is_valid_plate_number(value):
        raise ValueError("Număr de înmatriculare invalid (ex: B123ABC, B-123-ABC)")
    return normalize_plate_number(value)


def _normalize_intervals(value: List[int]) -> List[int]:
    if not value:
        raise ValueError("Cel puțin un interval de notificare este necesar")
    if any(i < 0 or i > MAX_INTERVAL_DAYS for i in value):
        raise ValueError(f"Intervalele trebuie să fie între 0 și {MAX_INTERVAL_DAYS} zile")
    return sorted(set(value), reverse=True)


class NotificationChannels(BaseModel):
    email: bool = False
    sms: bool = True


class ReminderCreate(BaseModel):
    plate_number: str = Field(min_length=4, max_length=15)
    reminder_type: ReminderType = "itp"
    expiry_date: date
    notification_intervals: List[int] = Field(default_factory=lambda: [7, 3, 1])
    notification_channels: NotificationChannels = Field(default_factory=NotificationChannels)

    @field_validator("plate_number")
    @classmethod
    def normalize_plate(cls, value: str) -> str:
        return _normalize_plate(value)

    @field_validator("notification_intervals")
    @classmethod
    def normalize_intervals(cls, value: List[int]) -> List[int]:
        return _normalize_intervals(value)


class ReminderUpdate(BaseModel):
    plate_number: Optional[str] = Field(default=None, min_length=4, max_length=15)
    reminder_type: Optional[ReminderType] = None
    expiry_date: Optional[date] = None
    notification_intervals: Optional[List[int]] = None
    notification_channels: Optional[NotificationChannels] = None

    @field_validator("plate_number")
    @classmethod
    def normalize_plate(cls, value: Optional[str]) -> Optional[str]:
        return _normalize_plate(value) if value is not None else None

    @field_validator("notification_intervals")
    @classmethod
    def normalize_intervals(cls, value: Optional[List[int]]) -> Optional[List[int]]:
        return _normalize_intervals(value) if value is not None else None


class ReminderResponse(BaseModel):
    id: str
    user_id: Optional[str] = None
    guest_name: Optional[str] = None
    guest_phone: Optional[str] = None
    plate_number: str
    reminder_type: str
    expiry_date: date
    notification_intervals: List[int] = []
    notification_channels: Optional[NotificationChannels] = None
    next_notification_date: Optional[date] = None
    status: Optional[str] = None
    source: Optional[str] = None
    station_id: Optional[str] = None
    opt_out: Optional[bool] = False
    days_until_expiry: int
    urgency: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReminderListResponse(BaseModel):
    reminders: List[ReminderResponse]
    total: int
    limit: int
    offset: int
