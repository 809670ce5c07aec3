from __future__ import annotations


class RelayError(Exception):
    """Base class for every error the relay raises at a call site."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(RelayError):
    """A required field is missing or empty. Nothing was stored or sent."""


class DeliveryError(RelayError):
    """The mail gateway refused or could not be reached. Safe to retry."""

    status_code = 503


class VerificationError(RelayError):
    # Same message for "no pending code", "expired" and "wrong code" so callers
    # cannot probe which addresses have a pending OTP.
    def __init__(self, message: str = "Invalid or expired OTP"):
        super().__init__(message)
