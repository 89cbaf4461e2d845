from fastapi import APIRouter, Depends, Response, status
from fastapi.concurrency import run_in_threadpool
from typing import Any, Dict
import logging

from ..config import Settings
from ..schemas import (
    BaseResponse,
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    ResetPasswordRequest,
    SessionResponse,
    SignupRequest,
    UserResponse,
    VerifyOTPRequest,
)
from .dependencies import SESSION_COOKIE, get_auth_service, get_settings, require_user
from .service import AuthService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "/signup",
    response_model=BaseResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def signup(
    request: SignupRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new user"""

    await run_in_threadpool(
        service.signup, request.full_name, request.email, request.role, request.password
    )

    return BaseResponse(success=True, message="User registered successfully")


@router.post("/login", response_model=LoginResponse)
async def login(
    request: LoginRequest,
    response: Response,
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings)
):
    """Check credentials and start a session (token in body and HTTP-only cookie)"""

    result = await run_in_threadpool(service.login, request.email, request.password)

    response.set_cookie(
        key=SESSION_COOKIE,
        value=result.token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
        max_age=service.tokens.default_ttl_seconds,
    )

    return LoginResponse(
        token=result.token,
        user=UserResponse.model_validate(result.user),
    )


@router.post("/forgot-password", response_model=BaseResponse, response_model_exclude_none=True)
async def forgot_password(
    request: ForgotPasswordRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Issue a password reset OTP and email it"""

    await run_in_threadpool(service.forgot_password, request.email)

    return BaseResponse(success=True, message="OTP sent to your email")


@router.post("/verify-otp", response_model=BaseResponse, response_model_exclude_none=True)
async def verify_otp(
    request: VerifyOTPRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Check a password reset OTP without consuming it"""

    await run_in_threadpool(service.verify_otp, request.email, request.otp)

    return BaseResponse(success=True, message="OTP verified successfully")


@router.post("/reset-password", response_model=BaseResponse, response_model_exclude_none=True)
async def reset_password(
    request: ResetPasswordRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Set a new password and clear any pending OTP"""

    await run_in_threadpool(
        service.reset_password,
        request.email,
        request.new_password,
        request.confirm_new_password,
        request.otp,
    )

    return BaseResponse(success=True, message="Password reset successfully")


@router.post("/logout", response_model=BaseResponse, response_model_exclude_none=True)
async def logout(response: Response):
    """Drop the session cookie. The token itself stays valid until it expires."""

    response.delete_cookie(SESSION_COOKIE)
    return BaseResponse(success=True, message="Logged out successfully")


@router.get("/me", response_model=SessionResponse)
async def get_current_session(claims: Dict[str, Any] = Depends(require_user)):
    """Claims of the current session token"""

    return SessionResponse(user=claims)
