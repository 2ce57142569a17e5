"""
User data schemas

Pydantic models for account and profile request validation.
"""

from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator


class RegisterSchema(BaseModel):
    """Schema for registering a new user"""
    username: str = Field(..., min_length=3, max_length=30)
    email: EmailStr
    password: str = Field(..., min_length=6)
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)

    @field_validator('username', 'first_name', 'last_name')
    @classmethod
    def strip_whitespace(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Field cannot be blank')
        return v

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        return v.lower()


class LoginSchema(BaseModel):
    """Schema for login by email or username"""
    login: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class RefreshTokenSchema(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class LogoutSchema(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class PasswordChangeSchema(BaseModel):
    """Schema for password change"""
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)


class ForgotPasswordSchema(BaseModel):
    email: EmailStr

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        return v.lower()


class PasswordResetSchema(BaseModel):
    """Schema for completing a password reset"""
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=6)


class ProfileUpdateSchema(BaseModel):
    """Partial profile update; omitted fields are left unchanged"""
    first_name: Optional[str] = Field(None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(None, min_length=1, max_length=50)
    avatar: Optional[str] = None
    avatar_public_id: Optional[str] = Field(None, min_length=1, max_length=255)
