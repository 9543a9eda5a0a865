"""
Auth routes.

Defines REST endpoints for registration, OTP verification and sign-in.
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from subis_auth.api.dependencies import get_account_lifecycle, get_current_session
from subis_auth.api.models import (
    ErrorResponse,
    LoginRequest,
    RegisterRequest,
    RegisterResponse,
    SessionResponse,
    TokenResponse,
    VerifyOtpRequest,
    VerifyOtpResponse,
)
from subis_auth.domain.lifecycle import AccountLifecycle
from subis_auth.domain.ports import Outcome
from subis_auth.domain.sessions import SessionClaims

router = APIRouter(tags=["auth"])

# Unknown email and wrong code share a message so the endpoint does not
# confirm which addresses are registered.
_REJECTIONS: dict[Outcome, tuple[int, str]] = {
    Outcome.DUPLICATE_ACCOUNT: (status.HTTP_400_BAD_REQUEST, "User already exists"),
    Outcome.UNKNOWN_ACCOUNT: (status.HTTP_401_UNAUTHORIZED, "Invalid email or OTP"),
    Outcome.INVALID_OTP: (status.HTTP_401_UNAUTHORIZED, "Invalid email or OTP"),
    Outcome.OTP_EXPIRED: (status.HTTP_401_UNAUTHORIZED, "OTP expired"),
    Outcome.INVALID_CREDENTIALS: (status.HTTP_401_UNAUTHORIZED, "Invalid credentials"),
    Outcome.NOT_VERIFIED: (status.HTTP_401_UNAUTHORIZED, "Email not verified"),
}


def _reject(outcome: Outcome) -> JSONResponse:
    status_code, message = _REJECTIONS[outcome]
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(message=message).model_dump(),
    )


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Email already registered"},
        422: {"description": "Validation error"},
    },
    summary="Register a new account",
    description="Submit name, email, password and role to create an unverified account. "
    "A 6-digit verification code will be sent to the provided email.",
)
async def register(
    request_data: RegisterRequest,
    lifecycle: AccountLifecycle = Depends(get_account_lifecycle),
) -> RegisterResponse | JSONResponse:
    """
    Register a new account and send verification code.

    - **name**: Display name
    - **email**: Valid email address to register
    - **password**: Password (minimum 6 characters)
    - **role**: STUDENT or ADMIN
    """
    result = lifecycle.register(
        request_data.name, request_data.email, request_data.password, request_data.role
    )
    if not result.ok:
        return _reject(result.outcome)

    registration = result.value
    message = (
        "User registered. Verify OTP."
        if registration.code_sent
        else "User registered, but the OTP email could not be sent."
    )
    return RegisterResponse(
        message=message,
        email=registration.email,
        expires_in_seconds=registration.expires_in_seconds,
    )


@router.post(
    "/verify-otp",
    response_model=VerifyOtpResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Unknown email, wrong or expired code"},
        422: {"description": "Validation error"},
    },
    summary="Verify email with the OTP",
    description="Submit the 6-digit code received via email to verify the account.",
)
async def verify_otp(
    request_data: VerifyOtpRequest,
    lifecycle: AccountLifecycle = Depends(get_account_lifecycle),
) -> VerifyOtpResponse | JSONResponse:
    result = lifecycle.verify_otp(request_data.email, request_data.otp)
    if not result.ok:
        return _reject(result.outcome)
    return VerifyOtpResponse(message="Email verified", email=result.value)


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid credentials or unverified email"},
        422: {"description": "Validation error"},
    },
    summary="Sign in",
    description="Exchange email and password of a verified account for a bearer token.",
)
async def login(
    request_data: LoginRequest,
    lifecycle: AccountLifecycle = Depends(get_account_lifecycle),
) -> TokenResponse | JSONResponse:
    result = lifecycle.login(request_data.email, request_data.password)
    if not result.ok:
        return _reject(result.outcome)
    return TokenResponse(access_token=result.value)


@router.get(
    "/me",
    response_model=SessionResponse,
    responses={401: {"description": "Missing, invalid or expired token"}},
    summary="Inspect the current session",
)
async def me(claims: SessionClaims = Depends(get_current_session)) -> SessionResponse:
    """Return the subject and role carried by the bearer token."""
    return SessionResponse(sub=claims.sub, role=claims.role, expires_at=claims.expires_at)
