"""
PostgreSQL repository adapter - Implements AccountRepository protocol.

This module provides the PostgreSQL implementation of the domain's
repository port using psycopg3 with raw SQL.

Atomicity:
----------
1. **create_account**: `INSERT ... ON CONFLICT (email) DO NOTHING` lets the
   UNIQUE constraint decide which of two concurrent registrations wins.
   The loser sees rowcount 0 and the existing row is never touched.

2. **consume_otp**: `SELECT ... FOR UPDATE` locks the row, the code is
   compared, and the verify-and-clear UPDATE commits in the same
   transaction. A second attempt blocks on the lock and then finds no
   pending code.

3. **secrets.compare_digest()**: the code comparison always runs, against
   a placeholder when the row or its pending code is missing, so the
   response time does not depend on which check failed.

All psycopg errors are re-raised as StoreUnavailable; each method is a
single transaction, so a failure leaves no partial record.
"""

import logging
import secrets
from datetime import datetime
from importlib import resources

import psycopg
from psycopg_pool import ConnectionPool

from subis_auth.domain.exceptions import StoreUnavailable
from subis_auth.domain.ports import Account, Outcome, PendingOtp, Role

logger = logging.getLogger(__name__)

_PLACEHOLDER_CODE = "------"


class PostgresAccountRepository:
    """
    Implements AccountRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize repository with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def create_account(
        self, name: str, email: str, role: Role, password_hash: str, otp: PendingOtp
    ) -> bool:
        """
        Atomically insert a new unverified account.

        Returns:
            True if inserted, False if the email already exists
        """
        sql = """
            INSERT INTO accounts (name, email, role, password_hash, otp_code, otp_expires_at)
            VALUES (%s, %s, %s, %s, %s, %s)
            ON CONFLICT (email) DO NOTHING
        """

        try:
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(
                    sql, (name, email, role.value, password_hash, otp.code, otp.expires_at)
                )
                conn.commit()
                return cursor.rowcount == 1
        except psycopg.Error as e:
            logger.error("create_account failed: %s", e)
            raise StoreUnavailable("Account store unavailable") from e

    def get_by_email(self, email: str) -> Account | None:
        sql = """
            SELECT id, name, email, role, password_hash, is_verified, otp_code, otp_expires_at
            FROM accounts
            WHERE email = %s
        """

        try:
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(sql, (email,))
                row = cursor.fetchone()
        except psycopg.Error as e:
            logger.error("get_by_email failed: %s", e)
            raise StoreUnavailable("Account store unavailable") from e

        if row is None:
            return None

        account_id, name, stored_email, role, password_hash, is_verified, code, expires_at = row
        pending = PendingOtp(code=code, expires_at=expires_at) if code is not None else None
        return Account(
            id=str(account_id),
            name=name,
            email=stored_email,
            role=Role(role),
            password_hash=password_hash,
            is_verified=is_verified,
            pending_otp=pending,
        )

    def consume_otp(self, email: str, code: str, now: datetime) -> Outcome:
        """
        Check a code and verify the account under a row lock.

        Args:
            email: Normalized email address
            code: Submitted code
            now: Current instant for the expiry check

        Returns:
            UNKNOWN_ACCOUNT, INVALID_OTP, OTP_EXPIRED or OK
        """
        select_sql = """
            SELECT otp_code, otp_expires_at
            FROM accounts
            WHERE email = %s
            FOR UPDATE
        """

        verify_sql = """
            UPDATE accounts
            SET is_verified = TRUE,
                otp_code = NULL,
                otp_expires_at = NULL,
                verified_at = NOW()
            WHERE email = %s AND otp_code = %s
        """

        try:
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(select_sql, (email,))
                row = cursor.fetchone()

                stored_code = row[0] if row is not None and row[0] is not None else None
                code_valid = secrets.compare_digest(
                    (stored_code or _PLACEHOLDER_CODE).encode(), code.encode()
                )

                if row is None:
                    conn.commit()
                    return Outcome.UNKNOWN_ACCOUNT

                if stored_code is None or not code_valid:
                    conn.commit()
                    return Outcome.INVALID_OTP

                if row[1] <= now:
                    conn.commit()
                    return Outcome.OTP_EXPIRED

                cursor.execute(verify_sql, (email, stored_code))
                conn.commit()
                return Outcome.OK
        except psycopg.Error as e:
            logger.error("consume_otp failed: %s", e)
            raise StoreUnavailable("Account store unavailable") from e

    def ping(self) -> None:
        try:
            with self._pool.connection() as conn:
                conn.execute("SELECT 1")
        except psycopg.Error as e:
            raise StoreUnavailable("Account store unavailable") from e


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files shipped in the subis_auth.migrations package.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance

    Raises:
        RuntimeError: If a migration fails to execute
    """
    migrations_dir = resources.files("subis_auth") / "migrations"

    if not migrations_dir.is_dir():
        logger.warning("Migrations directory not found: %s", migrations_dir)
        return

    sql_files = sorted(
        (f for f in migrations_dir.iterdir() if f.name.endswith(".sql")),
        key=lambda f: f.name,
    )

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info("Running %d migration(s)", len(sql_files))

    for sql_file in sql_files:
        logger.info("Executing migration: %s", sql_file.name)
        try:
            sql_content = sql_file.read_text(encoding="utf-8")

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info("Migration complete: %s", sql_file.name)
        except Exception as e:
            logger.error("Migration failed: %s - %s", sql_file.name, e)
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
