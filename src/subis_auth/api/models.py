"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
"""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from subis_auth.domain.ports import Role


class RegisterRequest(BaseModel):
    """Request model for account registration."""

    name: str = Field(..., min_length=1, max_length=100, description="Display name")
    email: EmailStr
    password: str = Field(
        ..., min_length=6, max_length=72, description="Password (6 to 72 characters)"
    )
    role: Role = Role.STUDENT


class RegisterResponse(BaseModel):
    """Response model for successful registration."""

    message: str
    email: str
    expires_in_seconds: int


class VerifyOtpRequest(BaseModel):
    """Request model for email verification."""

    email: EmailStr
    otp: str = Field(
        ...,
        min_length=6,
        max_length=6,
        pattern=r"^\d{6}$",
        description="6-digit verification code",
    )


class VerifyOtpResponse(BaseModel):
    """Response model for successful verification."""

    message: str
    email: str


class LoginRequest(BaseModel):
    """Request model for sign-in."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=72)


class TokenResponse(BaseModel):
    """Response model carrying the session token."""

    access_token: str
    token_type: str = "bearer"


class SessionResponse(BaseModel):
    """Claims of the presented session token."""

    sub: str
    role: Role
    expires_at: datetime


class ErrorResponse(BaseModel):
    """Standard error response model."""

    message: str
