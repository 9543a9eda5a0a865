"""Notifier adapters - Verification code delivery."""

from .console import ConsoleOtpNotifier
from .mailer import SmtpConfig, SmtpOtpNotifier

__all__ = ["ConsoleOtpNotifier", "SmtpConfig", "SmtpOtpNotifier"]
