from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, List, Optional
from datetime import datetime
from app.core.validation import format_phone_number
from app.modules.notifications.sms_templates import is_valid_sms_length


class NotificationLogResponse(BaseModel):
    id: str
    reminder_id: str
    channel: str
    status: str
    provider: Optional[str] = None
    provider_message_id: Optional[str] = None
    estimated_cost: Optional[float] = None
    error_message: Optional[str] = None
    sent_at: Optional[datetime] = None
    metadata: Optional[Dict[str, Any]] = None

    class Config:
        from_attributes = True


class NotificationLogListResponse(BaseModel):
    logs: List[NotificationLogResponse]
    total: int
    limit: int
    offset: int


class PreviewRequest(BaseModel):
    reminder_id: str
    days_until: Optional[int] = None  # defaults to the real days until expiry


class PreviewResponse(BaseModel):
    message: str
    length: int
    parts: int
    template_id: str


class TestSmsRequest(BaseModel):
    phone: str
    message: str = Field(min_length=1)

    @field_validator("phone")
    @classmethod
    def normalize_phone(cls, value: str) -> str:
        formatted = format_phone_number(value)
        if not formatted:
            raise ValueError("Numărul de telefon trebuie să fie în format +40XXXXXXXXX")
        return formatted

    @field_validator("message")
    @classmethod
    def fits_ten_parts(cls, value: str) -> str:
        if not is_valid_sms_length(value):
            raise ValueError("Mesajul depășește 10 segmente SMS")
        return value


class ResendRequest(BaseModel):
    log_id: str


class SendResultResponse(BaseModel):
    success: bool
    channel: str
    message_id: Optional[str] = None
    error: Optional[str] = None


class ProcessingStatsResponse(BaseModel):
    success: bool
    message: str
    stats: Dict[str, int]
    results: List[Dict[str, Any]] = []
    executionTime: str
    timestamp: datetime
