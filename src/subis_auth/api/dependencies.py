"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
"""

from collections.abc import Callable
from datetime import datetime
from functools import lru_cache

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from subis_auth.adapters.smtp import ConsoleOtpNotifier, SmtpConfig, SmtpOtpNotifier
from subis_auth.config.settings import get_settings
from subis_auth.domain.credentials import CredentialHasher, OtpGenerator
from subis_auth.domain.exceptions import InvalidToken
from subis_auth.domain.lifecycle import AccountLifecycle, utc_now
from subis_auth.domain.ports import AccountRepository, OtpNotifier
from subis_auth.domain.sessions import SessionClaims, SessionIssuer


def get_repository(request: Request) -> AccountRepository:
    """
    Get account repository from app state.

    The repository is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.repository


@lru_cache
def get_notifier() -> OtpNotifier:
    """Build the configured notifier once per process."""
    settings = get_settings()
    if settings.email_backend == "smtp":
        config = SmtpConfig(
            host=settings.smtp_host,
            port=settings.smtp_port,
            sender=settings.email_from,
            username=settings.smtp_username,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
            timeout=settings.smtp_timeout_seconds,
            subject=settings.email_subject,
        )
        return SmtpOtpNotifier(config, valid_minutes=max(1, settings.otp_ttl_seconds // 60))
    return ConsoleOtpNotifier()


@lru_cache
def get_session_issuer() -> SessionIssuer:
    """Session issuer holding the signing secret (singleton)."""
    settings = get_settings()
    return SessionIssuer(
        secret=settings.jwt_secret.get_secret_value(),
        algorithm=settings.jwt_algorithm,
        expires_seconds=settings.jwt_expires_seconds,
        issuer=settings.jwt_issuer,
    )


@lru_cache
def get_hasher() -> CredentialHasher:
    """Password hasher (singleton; precomputes its dummy digest once)."""
    return CredentialHasher(rounds=get_settings().bcrypt_cost)


def get_clock() -> Callable[[], datetime]:
    """Source of the current instant for OTP issuance and expiry checks."""
    return utc_now


def get_account_lifecycle(
    repository: AccountRepository = Depends(get_repository),
    notifier: OtpNotifier = Depends(get_notifier),
    sessions: SessionIssuer = Depends(get_session_issuer),
    hasher: CredentialHasher = Depends(get_hasher),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> AccountLifecycle:
    """
    Create the lifecycle service with injected dependencies.

    Wires together the repository, notifier and session issuer for the domain service.
    """
    return AccountLifecycle(
        repository=repository,
        notifier=notifier,
        sessions=sessions,
        hasher=hasher,
        otp_generator=OtpGenerator(ttl_seconds=get_settings().otp_ttl_seconds),
        clock=clock,
    )


# Bearer token security scheme for OpenAPI documentation
http_bearer = HTTPBearer()


def get_current_session(
    credentials: HTTPAuthorizationCredentials = Depends(http_bearer),
    sessions: SessionIssuer = Depends(get_session_issuer),
) -> SessionClaims:
    """
    Decode the bearer token from the Authorization header.

    HTTPBearer rejects a missing or non-bearer header before this runs.

    Raises:
        HTTPException: 401 if the token does not verify
    """
    try:
        return sessions.decode(credentials.credentials)
    except InvalidToken:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None
