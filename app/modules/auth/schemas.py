from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from app.core.validation import format_phone_number


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    email: str


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    full_name: Optional[str] = Field(default=None, min_length=3)
    phone: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = "RO"
    sms_notifications: bool = False

    @field_validator("phone")
    @classmethod
    def normalize_phone(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        formatted = format_phone_number(value)
        if not formatted:
            raise ValueError("Numărul de telefon trebuie să fie în format +40XXXXXXXXX")
        return formatted


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    email_confirmation_required: bool = True
    message: str


class ForgotPasswordRequest(BaseModel):
    email: EmailStr
