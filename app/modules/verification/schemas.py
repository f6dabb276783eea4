from pydantic import BaseModel, Field, field_validator
from typing import Optional, Literal
from app.core.validation import format_phone_number


def _phone(value: str) -> str:
    formatted = format_phone_number(value)
    if not formatted:
        raise ValueError("Numărul de telefon trebuie să fie în format +40XXXXXXXXX")
    return formatted


class SendCodeRequest(BaseModel):
    phone: str
    station_slug: Optional[str] = None
    source: Literal["kiosk", "registration", "profile_update"] = "kiosk"

    @field_validator("phone")
    @classmethod
    def normalize_phone(cls, value: str) -> str:
        return _phone(value)


class VerifyCodeRequest(BaseModel):
    phone: str
    code: str = Field(pattern=r"^\d{6}$")

    @field_validator("phone")
    @classmethod
    def normalize_phone(cls, value: str) -> str:
        return _phone(value)


class SendCodeResponse(BaseModel):
    success: bool = True
    message: str
    expires_in: int  # seconds


class VerifyCodeResponse(BaseModel):
    success: bool = True
    verified: bool
    phone: str
    message: str
