"""
Console notifier adapter - Implements OtpNotifier protocol.

This module provides a console-based implementation of the domain's
notifier port, logging verification codes for local development.
"""

import logging

logger = logging.getLogger(__name__)


class ConsoleOtpNotifier:
    """
    Implements OtpNotifier protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For development purposes - prints verification codes to the log.
    """

    def send_otp(self, email: str, code: str) -> None:
        """
        Log verification code (simulates email delivery).

        Args:
            email: Recipient email address (normalized by domain layer)
            code: 6-digit verification code
        """
        logger.info("[OTP] Email: %s Code: %s", email, code)
