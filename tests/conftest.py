"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- A controllable clock for OTP expiry
- A recording notifier
- The in-memory account store and a wired AccountLifecycle
"""

import os
from datetime import UTC, datetime, timedelta

import pytest

from subis_auth.adapters.repository.memory import InMemoryAccountRepository
from subis_auth.domain.credentials import CredentialHasher, OtpGenerator
from subis_auth.domain.lifecycle import AccountLifecycle
from subis_auth.domain.sessions import SessionIssuer

TEST_SECRET = "test-signing-secret-0123456789abcdef"

# Settings has no default signing secret
os.environ.setdefault("JWT_SECRET", TEST_SECRET)


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 15, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class RecordingNotifier:
    """Notifier that keeps every (email, code) it was asked to deliver."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    def send_otp(self, email: str, code: str) -> None:
        self.sent.append((email, code))

    def last_code_for(self, email: str) -> str:
        return [code for to, code in self.sent if to == email][-1]


@pytest.fixture(scope="session")
def hasher() -> CredentialHasher:
    return CredentialHasher(rounds=10)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def repository() -> InMemoryAccountRepository:
    return InMemoryAccountRepository()


@pytest.fixture
def signing_secret() -> str:
    return TEST_SECRET


@pytest.fixture
def sessions(signing_secret: str) -> SessionIssuer:
    return SessionIssuer(secret=signing_secret, expires_seconds=86400)


@pytest.fixture
def lifecycle(
    repository: InMemoryAccountRepository,
    notifier: RecordingNotifier,
    sessions: SessionIssuer,
    hasher: CredentialHasher,
    clock: FrozenClock,
) -> AccountLifecycle:
    return AccountLifecycle(
        repository=repository,
        notifier=notifier,
        sessions=sessions,
        hasher=hasher,
        otp_generator=OtpGenerator(ttl_seconds=300),
        clock=clock,
    )
