"""
Domain layer - Pure business logic with zero web or database imports.

This package contains the account lifecycle for the OTP-gated
registration system. It defines its own port interfaces for
infrastructure abstraction, ensuring hexagonal architecture decoupling.
"""

from .credentials import CredentialHasher, OtpGenerator
from .exceptions import AuthError, DeliveryFailed, InvalidToken, StoreUnavailable
from .lifecycle import AccountLifecycle, Registration, normalize_email
from .ports import (
    Account,
    AccountRepository,
    Outcome,
    OtpNotifier,
    PendingOtp,
    Result,
    Role,
)
from .sessions import SessionClaims, SessionIssuer

__all__ = [
    "Account",
    "AccountLifecycle",
    "AccountRepository",
    "AuthError",
    "CredentialHasher",
    "DeliveryFailed",
    "InvalidToken",
    "OtpGenerator",
    "OtpNotifier",
    "Outcome",
    "PendingOtp",
    "Registration",
    "Result",
    "Role",
    "SessionClaims",
    "SessionIssuer",
    "StoreUnavailable",
    "normalize_email",
]
