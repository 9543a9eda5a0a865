"""
SMTP notifier adapter - Implements OtpNotifier protocol.

Sends the verification code as a multipart (plain text + HTML) message
through an SMTP relay. Transport settings and credentials are injected
once at construction.
"""

import logging
import smtplib
from dataclasses import dataclass, field
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from pydantic import SecretStr

from subis_auth.domain.exceptions import DeliveryFailed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SmtpConfig:
    """Connection parameters for the SMTP relay."""

    host: str
    port: int
    sender: str
    username: str = ""
    password: SecretStr = field(default_factory=lambda: SecretStr(""))
    use_tls: bool = True
    timeout: float = 10.0
    subject: str = "Verify your account - SUBIS"


class SmtpOtpNotifier:
    """Implements OtpNotifier protocol via smtplib."""

    def __init__(self, config: SmtpConfig, valid_minutes: int = 5) -> None:
        self._config = config
        self._valid_minutes = valid_minutes

    def build_message(self, email: str, code: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = self._config.subject
        msg["From"] = self._config.sender
        msg["To"] = email

        validity = f"Valid for {self._valid_minutes} minutes"
        msg.attach(MIMEText(f"Your OTP is: {code}\n{validity}\n", "plain"))
        msg.attach(MIMEText(f"<h3>Your OTP is: {code}</h3><p>{validity}</p>", "html"))
        return msg

    def send_otp(self, email: str, code: str) -> None:
        """
        Send the code to `email`.

        Raises:
            DeliveryFailed: On SMTP protocol errors, connection failures, or
                an address the transport cannot encode
        """
        msg = self.build_message(email, code)
        cfg = self._config

        try:
            with smtplib.SMTP(cfg.host, cfg.port, timeout=cfg.timeout) as smtp:
                if cfg.use_tls:
                    smtp.starttls()
                if cfg.username:
                    smtp.login(cfg.username, cfg.password.get_secret_value())
                smtp.sendmail(cfg.sender, [email], msg.as_string())
        except (smtplib.SMTPException, OSError, UnicodeError) as e:
            # UnicodeError: non-ASCII address on a transport without SMTPUTF8
            raise DeliveryFailed(f"SMTP delivery to {cfg.host}:{cfg.port} failed: {e}") from e

        logger.info("OTP email sent to %s", email)
