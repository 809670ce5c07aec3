from __future__ import annotations

import logging
import os
import secrets
from typing import Callable, Optional

from utils.brevo_email import send_email
from utils.errors import ValidationError, VerificationError
from utils.otp_store import OTPStore, build_otp_store


logger = logging.getLogger(__name__)

OTP_TTL_SECONDS = int(os.getenv("OTP_TTL_SECONDS", "600"))
OTP_SUBJECT = os.getenv("OTP_SUBJECT", "Your OTP for Verification")
CONFIRMATION_SUBJECT = os.getenv("CONFIRMATION_SUBJECT", "Confirmation of Your Inquiry")

INQUIRY_TYPES = ("General Inquiry", "Site Visit Request", "Burial Service Query")

# (to_email, subject, text) -> None, raising DeliveryError on failure.
Sender = Callable[[str, str, str], None]


def _brevo_sender(to_email: str, subject: str, text: str) -> None:
    send_email(to_email=to_email, subject=subject, text=text)


def _gen_otp() -> str:
    return f"{secrets.randbelow(900000) + 100000}"


def _missing(value: Optional[str]) -> bool:
    # Presence only: any non-empty string, whitespace included, is accepted.
    return not value


def secrets_equal(a: str, b: str) -> bool:
    # Constant-time compare
    a_b, b_b = a.encode("utf-8"), b.encode("utf-8")
    if len(a_b) != len(b_b):
        return False
    result = 0
    for x, y in zip(a_b, b_b):
        result |= x ^ y
    return result == 0


def otp_message(code: str, ttl_seconds: int) -> str:
    # With expiry disabled the mail still promises 10 minutes, as the site always has.
    minutes = max(1, ttl_seconds // 60) if ttl_seconds else 10
    return f"Your OTP is {code}. It will expire in {minutes} minutes."


def confirmation_message(full_name: str, inquiry_type: str, message: str) -> str:
    return (
        f"Hello {full_name},\n\n"
        "Thank you for reaching out to us with your inquiry. Here are the details:\n\n"
        f"Inquiry Type: {inquiry_type}\n"
        f"Message: {message}\n\n"
        "We will get back to you as soon as possible.\n\n"
        "Best regards,\n"
        "The Support Team"
    )


class OTPService:
    """
    Issues and verifies contact-form OTPs and relays inquiry confirmations.

    The store and the mail sender are injected; by default the store comes
    from OTP_STORE_BACKEND and mail goes through Brevo.
    """

    def __init__(
        self,
        store: Optional[OTPStore] = None,
        sender: Optional[Sender] = None,
        *,
        ttl_seconds: int = OTP_TTL_SECONDS,
        code_factory: Callable[[], str] = _gen_otp,
    ):
        self.store = store if store is not None else build_otp_store()
        self.sender = sender or _brevo_sender
        self.ttl_seconds = max(0, ttl_seconds)
        self._code_factory = code_factory

    def request_otp(self, email: Optional[str]) -> str:
        """
        Stores a fresh code for `email` (replacing any pending one) and mails it.
        The code stays pending even if the mail fails; DeliveryError propagates.
        """
        if _missing(email):
            raise ValidationError("Email is required")

        code = self._code_factory()
        self.store.set(email, code, self.ttl_seconds or None)
        logger.info("OTP issued for %s (ttl=%ss)", email, self.ttl_seconds or "none")

        self.sender(email, OTP_SUBJECT, otp_message(code, self.ttl_seconds))
        return code

    def verify_otp(self, email: Optional[str], code: Optional[str]) -> None:
        if _missing(email) or _missing(code):
            raise ValidationError("Email and OTP are required")

        stored = self.store.get(email)
        if stored is None or not secrets_equal(stored, code):
            raise VerificationError()

        self.store.delete(email)
        logger.info("OTP verified for %s", email)

    def send_confirmation(
        self,
        email: Optional[str],
        full_name: Optional[str],
        inquiry_type: Optional[str],
        message: Optional[str],
    ) -> None:
        if any(_missing(v) for v in (email, full_name, inquiry_type, message)):
            raise ValidationError("All fields are required to send confirmation email")

        self.sender(email, CONFIRMATION_SUBJECT, confirmation_message(full_name, inquiry_type, message))
        logger.info("Confirmation sent to %s (%s)", email, inquiry_type)


_service: Optional[OTPService] = None


def get_otp_service() -> OTPService:
    global _service
    if _service is None:
        _service = OTPService()
    return _service
