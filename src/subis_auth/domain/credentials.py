"""
Credential primitives - password hashing and OTP generation.

Both classes are pure apart from reading randomness; they hold no
account state.
"""

import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta

import bcrypt

from .ports import PendingOtp

OTP_LENGTH = 6
OTP_DIGITS = "0123456789"

# bcrypt only reads this many bytes of input
BCRYPT_MAX_BYTES = 72


def _password_bytes(plaintext: str) -> bytes:
    """UTF-8 encode and cut to the bcrypt input limit."""
    return plaintext.encode()[:BCRYPT_MAX_BYTES]


@dataclass
class CredentialHasher:
    """
    bcrypt password hashing with a fixed cost factor.

    Input past 72 bytes is ignored, as classic bcrypt does, so long
    passwords hash and verify instead of raising.

    The dummy digest is computed once per hasher so that an unknown-email
    login still pays for a full bcrypt comparison.
    """

    rounds: int = 10
    _dummy_hash: bytes = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.rounds < 10:
            raise ValueError("bcrypt cost factor must be at least 10")
        self._dummy_hash = bcrypt.hashpw(
            b"dummy_password_for_timing_safety", bcrypt.gensalt(self.rounds)
        )

    def hash(self, plaintext: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(_password_bytes(plaintext), salt).decode()

    def verify(self, plaintext: str, digest: str) -> bool:
        """Constant-time check; False on mismatch or malformed digest."""
        try:
            return bcrypt.checkpw(_password_bytes(plaintext), digest.encode())
        except ValueError:
            return False

    def burn(self, plaintext: str) -> None:
        """Spend one bcrypt comparison against the dummy digest."""
        bcrypt.checkpw(_password_bytes(plaintext), self._dummy_hash)


@dataclass
class OtpGenerator:
    """Issues 6-digit codes from the secrets module with a fixed validity window."""

    ttl_seconds: int = 300

    def generate(self, now: datetime) -> PendingOtp:
        # String keeps leading zeros
        code = "".join(secrets.choice(OTP_DIGITS) for _ in range(OTP_LENGTH))
        return PendingOtp(code=code, expires_at=now + timedelta(seconds=self.ttl_seconds))
