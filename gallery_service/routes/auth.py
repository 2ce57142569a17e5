"""
Authentication Routes
User registration, login, token refresh, password reset, and email verification
"""

from fastapi import APIRouter, Query, status
import logging

from gallery_service.schemas.user import (
    ForgotPasswordSchema,
    LoginSchema,
    LogoutSchema,
    PasswordChangeSchema,
    PasswordResetSchema,
    RefreshTokenSchema,
    RegisterSchema,
)
from gallery_service.utils.dependencies import CurrentUser, Services

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register", response_model=dict, status_code=status.HTTP_201_CREATED)
async def register(user_data: RegisterSchema, services: Services):
    """
    Register new user

    Creates the account and emails a verification link
    """
    return await services.auth.register(
        username=user_data.username,
        email=user_data.email,
        password=user_data.password,
        first_name=user_data.first_name,
        last_name=user_data.last_name
    )


@router.post("/login", response_model=dict)
async def login(credentials: LoginSchema, services: Services):
    """Authenticate by email or username and issue a token pair"""
    return await services.auth.login(credentials.login, credentials.password)


@router.post("/refresh", response_model=dict)
async def refresh(payload: RefreshTokenSchema, services: Services):
    """Exchange a refresh token for a new pair; the presented token is retired"""
    return await services.auth.refresh_token(payload.refresh_token)


@router.post("/logout", response_model=dict)
async def logout(payload: LogoutSchema, current_user: CurrentUser, services: Services):
    return await services.auth.logout(current_user["id"], payload.refresh_token)


@router.post("/change-password", response_model=dict)
async def change_password(
    password_data: PasswordChangeSchema,
    current_user: CurrentUser,
    services: Services
):
    return await services.auth.change_password(
        current_user["id"],
        password_data.current_password,
        password_data.new_password
    )


@router.post("/forgot-password", response_model=dict)
async def forgot_password(request_data: ForgotPasswordSchema, services: Services):
    """
    Request a password reset email

    Always returns the same message, whether or not the email is registered
    """
    return await services.auth.forgot_password(request_data.email)


@router.post("/reset-password", response_model=dict)
async def reset_password(reset_data: PasswordResetSchema, services: Services):
    return await services.auth.reset_password(reset_data.token, reset_data.password)


@router.get("/verify-email", response_model=dict)
async def verify_email(services: Services, token: str = Query(..., min_length=1)):
    return await services.auth.verify_email(token)


@router.get("/me", response_model=dict)
async def get_me(current_user: CurrentUser):
    """Current authenticated user"""
    return current_user
