"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the records the domain works with and the interfaces
(ports) it requires from infrastructure. Adapters implement these protocols.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Generic, Protocol, TypeVar

T = TypeVar("T")


class Role(str, Enum):
    """Role claimed at registration and carried into session tokens."""

    STUDENT = "STUDENT"
    ADMIN = "ADMIN"


class Outcome(Enum):
    """
    Result tag of a lifecycle operation.

    OK is the only success. Every other member is a client-input rejection
    which the HTTP layer maps to a status code; none of them is retried.
    """

    OK = "ok"
    DUPLICATE_ACCOUNT = "duplicate_account"
    UNKNOWN_ACCOUNT = "unknown_account"
    INVALID_OTP = "invalid_otp"
    OTP_EXPIRED = "otp_expired"
    INVALID_CREDENTIALS = "invalid_credentials"
    NOT_VERIFIED = "not_verified"


@dataclass(frozen=True)
class Result(Generic[T]):
    """Tagged result: an Outcome plus the success value, if any."""

    outcome: Outcome
    value: T | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.OK


@dataclass(frozen=True)
class PendingOtp:
    """Outstanding verification code and the instant it stops being valid."""

    code: str
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now


@dataclass(frozen=True)
class Account:
    """
    Stored account record.

    pending_otp is a single optional value so the code and its expiry
    are always present or absent together.
    """

    id: str
    name: str
    email: str
    role: Role
    password_hash: str
    is_verified: bool = False
    pending_otp: PendingOtp | None = None


class AccountRepository(Protocol):
    """Port interface for account persistence."""

    def create_account(
        self, name: str, email: str, role: Role, password_hash: str, otp: PendingOtp
    ) -> bool:
        """
        Atomically insert a new unverified account.

        The duplicate check and the insert are a single operation, so two
        concurrent registrations for one email cannot both succeed.

        Args:
            name: Display name
            email: Normalized email address
            role: Role claimed at registration
            password_hash: bcrypt hashed password
            otp: Pending verification code and expiry

        Returns:
            True if the account was created, False if the email is taken
        """
        ...

    def get_by_email(self, email: str) -> Account | None:
        """
        Look up an account by normalized email.

        Returns:
            The account, or None if no account has this email
        """
        ...

    def consume_otp(self, email: str, code: str, now: datetime) -> Outcome:
        """
        Check a submitted code and, on match, verify the account.

        The comparison and the clear-and-verify write happen under one
        row lock, so a code can be consumed at most once.

        Return values by scenario:
        - UNKNOWN_ACCOUNT: No account with this email
        - INVALID_OTP: No pending code, or the code differs
        - OTP_EXPIRED: Code matches but expires_at <= now (not verified)
        - OK: Account verified, pending code cleared

        Args:
            email: Normalized email address
            code: Submitted code, compared as a string
            now: Current instant used for the expiry check

        Returns:
            Outcome of the attempt
        """
        ...

    def ping(self) -> None:
        """Raise StoreUnavailable if the store cannot be reached."""
        ...


class OtpNotifier(Protocol):
    """Port interface for code delivery."""

    def send_otp(self, email: str, code: str) -> None:
        """
        Deliver a verification code to an email address.

        Args:
            email: Recipient email address
            code: 6-digit verification code

        Raises:
            DeliveryFailed: If the transport rejected the message
        """
        ...
