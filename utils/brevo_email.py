from __future__ import annotations

import logging
import os
from typing import Optional

import requests

from utils.errors import DeliveryError


logger = logging.getLogger(__name__)

BREVO_URL = os.getenv("BREVO_URL", "https://api.brevo.com/v3/smtp/email")
BREVO_SENDER_NAME = os.getenv("BREVO_SENDER_NAME", "Bay Woods")
BREVO_TIMEOUT_SECONDS = float(os.getenv("BREVO_TIMEOUT_SECONDS", "15"))


def email_dev_mode() -> bool:
    return os.getenv("EMAIL_DEV_MODE", "").strip().lower() in {"1", "true", "yes"}


def _from_email() -> Optional[str]:
    return os.getenv("BREVO_FROM") or os.getenv("EMAIL_FROM") or os.getenv("SMTP_FROM")


def send_email(*, to_email: str, subject: str, text: str) -> None:
    """
    Sends a plain-text email using Brevo Transactional Email API.
    Requires:
      - BREVO_API_KEY
      - BREVO_FROM (email) OR EMAIL_FROM/SMTP_FROM
    With EMAIL_DEV_MODE set the message is logged instead of sent.
    Raises DeliveryError on any failure.
    """
    if email_dev_mode():
        logger.info("EMAIL_DEV_MODE: to=%s subject=%r\n%s", to_email, subject, text)
        return

    api_key = os.getenv("BREVO_API_KEY")
    if not api_key:
        raise DeliveryError("BREVO_API_KEY is not set")

    from_email = _from_email()
    if not from_email:
        raise DeliveryError("BREVO_FROM (or EMAIL_FROM/SMTP_FROM) is not set")

    payload = {
        "sender": {"email": from_email, "name": BREVO_SENDER_NAME},
        "to": [{"email": to_email}],
        "subject": subject,
        "textContent": text,
    }
    try:
        resp = requests.post(
            BREVO_URL,
            headers={
                "accept": "application/json",
                "api-key": api_key,
                "content-type": "application/json",
            },
            json=payload,
            timeout=BREVO_TIMEOUT_SECONDS,
        )
    except requests.RequestException as e:
        logger.warning("Brevo send exception: %s", e)
        raise DeliveryError(f"Brevo unreachable: {e}") from e

    if resp.status_code >= 300:
        logger.warning("Brevo send failed: status=%s body=%s", resp.status_code, resp.text[:200])
        raise DeliveryError(f"Brevo send failed ({resp.status_code})")
