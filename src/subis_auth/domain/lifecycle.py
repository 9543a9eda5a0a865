"""
Account lifecycle domain service - OTP-gated state machine.

This module contains the core business logic for registration, email
verification and sign-in.

Account State Machine (forward-only)
====================================

States:
- UNVERIFIED: Created by registration, holds a pending 6-digit code
- VERIFIED: Terminal for this flow, pending code cleared

Valid Transitions:
    (none)     -> UNVERIFIED   (register, email not yet taken)
    UNVERIFIED -> VERIFIED     (verify_otp with matching, unexpired code)

Sign-in is only possible from VERIFIED. There is no way back to
UNVERIFIED and no resend path: an expired code leaves the account
unverified for good.

Atomicity of the duplicate check and of the code consumption lives in
the repository (unique constraint, row lock). The notifier runs after
the account is committed and its failure never unwinds registration.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from .credentials import CredentialHasher, OtpGenerator
from .exceptions import DeliveryFailed
from .ports import AccountRepository, OtpNotifier, Outcome, Result, Role
from .sessions import SessionIssuer

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(UTC)


def normalize_email(email: str) -> str:
    """Strip whitespace and lowercase; applied before every store access."""
    return email.strip().lower()


@dataclass(frozen=True)
class Registration:
    """What a caller learns from a successful registration."""

    email: str
    expires_in_seconds: int
    code_sent: bool


@dataclass
class AccountLifecycle:
    """
    Domain service for the register -> verify -> login flow.

    Every operation returns a Result tagged with an Outcome; only store
    faults (StoreUnavailable) escape as exceptions.
    """

    repository: AccountRepository
    notifier: OtpNotifier
    sessions: SessionIssuer
    hasher: CredentialHasher = field(default_factory=CredentialHasher)
    otp_generator: OtpGenerator = field(default_factory=OtpGenerator)
    clock: Callable[[], datetime] = utc_now

    def register(
        self, name: str, email: str, password: str, role: Role = Role.STUDENT
    ) -> Result[Registration]:
        """
        Create an unverified account and send it a verification code.

        Args:
            name: Display name
            email: Email address (will be normalized)
            password: Plaintext password (will be hashed)
            role: Role carried into session tokens

        Returns:
            OK with a Registration receipt, or DUPLICATE_ACCOUNT
        """
        normalized_email = normalize_email(email)
        password_hash = self.hasher.hash(password)
        otp = self.otp_generator.generate(self.clock())

        created = self.repository.create_account(
            name, normalized_email, role, password_hash, otp
        )
        if not created:
            return Result(Outcome.DUPLICATE_ACCOUNT)

        logger.info("Account registered: %s (%s)", normalized_email, role.value)

        code_sent = True
        try:
            self.notifier.send_otp(normalized_email, otp.code)
        except DeliveryFailed as e:
            code_sent = False
            logger.warning("OTP delivery failed for %s: %s", normalized_email, e)

        return Result(
            Outcome.OK,
            Registration(
                email=normalized_email,
                expires_in_seconds=self.otp_generator.ttl_seconds,
                code_sent=code_sent,
            ),
        )

    def verify_otp(self, email: str, code: str) -> Result[str]:
        """
        Consume a pending code and mark the account verified.

        Delegates the compare-and-clear to the repository so that it is
        a single atomic step.

        Returns:
            OK with the normalized email, or UNKNOWN_ACCOUNT, INVALID_OTP,
            OTP_EXPIRED
        """
        normalized_email = normalize_email(email)
        outcome = self.repository.consume_otp(normalized_email, code, self.clock())
        if outcome is not Outcome.OK:
            return Result(outcome)

        logger.info("Account verified: %s", normalized_email)
        return Result(Outcome.OK, normalized_email)

    def login(self, email: str, password: str) -> Result[str]:
        """
        Authenticate and issue a session token.

        Unknown email and wrong password both yield INVALID_CREDENTIALS
        after the same bcrypt work, so neither the response nor its timing
        reveals whether the account exists.

        Returns:
            OK with the token, or INVALID_CREDENTIALS, NOT_VERIFIED
        """
        account = self.repository.get_by_email(normalize_email(email))

        if account is None:
            self.hasher.burn(password)
            return Result(Outcome.INVALID_CREDENTIALS)

        if not self.hasher.verify(password, account.password_hash):
            return Result(Outcome.INVALID_CREDENTIALS)

        if not account.is_verified:
            return Result(Outcome.NOT_VERIFIED)

        token = self.sessions.issue(account.id, account.role, now=self.clock())
        return Result(Outcome.OK, token)
