from fastapi import APIRouter, Depends, Request, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse, ForgotPasswordRequest
)
from app.modules.auth.service import AuthService
from app.core.dependencies import get_auth_service, get_current_user
from app.core.rate_limit import limiter
from app.config.settings import settings
from typing import Dict

router = APIRouter(prefix="/auth", tags=["auth"])

security = HTTPBearer()


def get_current_token(
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> str:
    return credentials.credentials


@router.post("/register", response_model=RegisterResponse, status_code=201)
@limiter.limit(settings.auth_rate_limit)
async def register(
    request: Request,
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Create an account (email confirmation may be required before login)"""
    return service.register(register_data)


@router.post("/login", response_model=TokenResponse)
@limiter.limit(settings.auth_rate_limit)
async def login(
    request: Request,
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    return service.login(login_data)


@router.post("/forgot-password")
@limiter.limit(settings.auth_rate_limit)
async def forgot_password(
    request: Request,
    body: ForgotPasswordRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Same answer whether or not the email has an account"""
    service.request_password_reset(body.email)
    return {"message": "Dacă adresa există, vei primi un email pentru resetarea parolei."}


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service)
):
    service.logout(token)
    return {"message": "Logged out successfully"}


@router.get("/me")
async def get_me(
    current_user: Dict = Depends(get_current_user),
):
    """Current user with role and station (for frontend UI)."""
    return current_user
