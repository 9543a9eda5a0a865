"""
Domain exceptions - Infrastructure-classified error types.

Client-input failures (duplicate email, bad code, bad credentials) are
not exceptions: lifecycle operations report them as Outcome values.
The types here cover faults the caller cannot fix by changing its input.
"""


class AuthError(Exception):
    """Base class for auth domain errors."""

    pass


class StoreUnavailable(AuthError):
    """The account store failed; the operation was rolled back."""

    pass


class DeliveryFailed(AuthError):
    """The notifier could not hand the code to the mail transport."""

    pass


class InvalidToken(AuthError):
    """Session token is malformed, tampered with, or expired."""

    pass
