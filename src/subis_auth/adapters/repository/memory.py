"""
In-memory repository adapter - Implements AccountRepository protocol.

Process-local storage for development and tests. A single lock makes
each method one atomic read-modify-write, mirroring the guarantees the
PostgreSQL adapter gets from its UNIQUE constraint and row locks.
"""

import secrets
import threading
import uuid
from dataclasses import replace
from datetime import datetime

from subis_auth.domain.ports import Account, Outcome, PendingOtp, Role

_PLACEHOLDER_CODE = "------"


class InMemoryAccountRepository:
    """Implements AccountRepository protocol with a dict keyed by email."""

    def __init__(self) -> None:
        self._accounts: dict[str, Account] = {}
        self._lock = threading.Lock()

    def create_account(
        self, name: str, email: str, role: Role, password_hash: str, otp: PendingOtp
    ) -> bool:
        with self._lock:
            if email in self._accounts:
                return False
            self._accounts[email] = Account(
                id=str(uuid.uuid4()),
                name=name,
                email=email,
                role=role,
                password_hash=password_hash,
                is_verified=False,
                pending_otp=otp,
            )
            return True

    def get_by_email(self, email: str) -> Account | None:
        with self._lock:
            return self._accounts.get(email)

    def consume_otp(self, email: str, code: str, now: datetime) -> Outcome:
        with self._lock:
            account = self._accounts.get(email)
            pending = account.pending_otp if account is not None else None
            code_valid = secrets.compare_digest(
                (pending.code if pending else _PLACEHOLDER_CODE).encode(), code.encode()
            )

            if account is None:
                return Outcome.UNKNOWN_ACCOUNT
            if pending is None or not code_valid:
                return Outcome.INVALID_OTP
            if pending.is_expired(now):
                return Outcome.OTP_EXPIRED

            self._accounts[email] = replace(account, is_verified=True, pending_otp=None)
            return Outcome.OK

    def ping(self) -> None:
        return None

    def __len__(self) -> int:
        with self._lock:
            return len(self._accounts)
