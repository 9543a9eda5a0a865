"""
Session issuance - signed bearer tokens.

Tokens are stateless HS256 JWTs carrying the account id as `sub` and the
registered role. There is no revocation list: logging out means the
client discards its token, which stays valid until `exp`.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from .exceptions import InvalidToken
from .ports import Role


@dataclass(frozen=True)
class SessionClaims:
    """Decoded contents of a session token."""

    sub: str
    role: Role
    issued_at: datetime
    expires_at: datetime


class SessionIssuer:
    """Mints and verifies session tokens with a process-wide signing secret."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expires_seconds: int = 86400,
        issuer: str = "subis-auth",
    ) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._lifetime = timedelta(seconds=expires_seconds)
        self._issuer = issuer

    def __repr__(self) -> str:
        return f"SessionIssuer(algorithm={self._algorithm!r}, issuer={self._issuer!r})"

    def issue(self, subject: str, role: Role, now: datetime | None = None) -> str:
        """
        Mint a token asserting `sub=subject` and `role=role`.

        Args:
            subject: Account id
            role: Account role
            now: Issuance instant, defaults to the current UTC time

        Returns:
            Encoded JWT string
        """
        issued_at = now or datetime.now(UTC)
        payload: dict[str, Any] = {
            "sub": subject,
            "role": role.value,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self._lifetime).timestamp()),
            "iss": self._issuer,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def decode(self, token: str) -> SessionClaims:
        """
        Verify a token and return its claims.

        Raises:
            InvalidToken: Bad signature, wrong algorithm or issuer, expired,
                or missing claims
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                issuer=self._issuer,
                options={"require": ["sub", "role", "iat", "exp", "iss"]},
            )
        except jwt.ExpiredSignatureError:
            raise InvalidToken("Token has expired") from None
        except jwt.InvalidTokenError as e:
            raise InvalidToken(f"Invalid token: {e}") from None

        try:
            role = Role(payload["role"])
        except ValueError:
            raise InvalidToken("Unknown role claim") from None

        return SessionClaims(
            sub=payload["sub"],
            role=role,
            issued_at=datetime.fromtimestamp(payload["iat"], UTC),
            expires_at=datetime.fromtimestamp(payload["exp"], UTC),
        )
