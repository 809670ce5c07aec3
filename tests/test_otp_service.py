"""
OTP issue / verify / confirmation rules, with an in-memory store and a
recording mail sender.
"""
import re

import pytest

from conftest import RecordingSender
from utils.errors import DeliveryError, ValidationError, VerificationError
from utils.otp_service import OTPService, confirmation_message, otp_message, secrets_equal
from utils.otp_store import MemoryOTPStore


def test_request_then_verify_succeeds_exactly_once(service):
    """A fresh code verifies once and is gone afterwards."""
    code = service.request_otp("a@example.com")
    service.verify_otp("a@example.com", code)

    with pytest.raises(VerificationError):
        service.verify_otp("a@example.com", code)


def test_generated_code_is_six_digits(service, store):
    """Codes are 6-digit strings in [100000, 999999]."""
    for _ in range(50):
        code = service.request_otp("a@example.com")
        assert re.fullmatch(r"\d{6}", code)
        assert 100000 <= int(code) <= 999999
        assert store.get("a@example.com") == code


def test_second_request_overwrites_pending_code(store, sender):
    """Re-requesting replaces the pending code; the old one stops working."""
    codes = iter(["111111", "222222"])
    service = OTPService(store=store, sender=sender, code_factory=lambda: next(codes))

    old = service.request_otp("a@example.com")
    new = service.request_otp("a@example.com")
    assert store.get("a@example.com") == new

    with pytest.raises(VerificationError):
        service.verify_otp("a@example.com", old)
    service.verify_otp("a@example.com", new)


def test_unknown_and_wrong_code_fail_identically(service):
    """No pending code and a wrong code produce the same error text."""
    with pytest.raises(VerificationError) as missing:
        service.verify_otp("nobody@example.com", "123456")

    code = service.request_otp("a@example.com")
    wrong = "000000" if code != "000000" else "999999"
    with pytest.raises(VerificationError) as mismatch:
        service.verify_otp("a@example.com", wrong)

    assert missing.value.message == mismatch.value.message == "Invalid or expired OTP"


def test_failed_verification_keeps_the_record(service, store):
    """A wrong guess does not delete the pending code."""
    code = service.request_otp("a@example.com")
    with pytest.raises(VerificationError):
        service.verify_otp("a@example.com", "not-it")
    assert store.get("a@example.com") == code


def test_email_key_is_case_sensitive(service):
    """Addresses are matched exactly, without normalisation."""
    code = service.request_otp("A@Example.com")
    with pytest.raises(VerificationError):
        service.verify_otp("a@example.com", code)
    service.verify_otp("A@Example.com", code)


def test_code_is_not_normalised(service):
    """Whitespace around the code is not stripped."""
    code = service.request_otp("a@example.com")
    with pytest.raises(VerificationError):
        service.verify_otp("a@example.com", f" {code}")


def test_different_emails_do_not_interfere(service):
    a = service.request_otp("a@example.com")
    b = service.request_otp("b@example.com")
    service.verify_otp("b@example.com", b)
    service.verify_otp("a@example.com", a)


@pytest.mark.parametrize("email", [None, ""])
def test_request_requires_email(service, store, sender, email):
    """Empty email is a validation error and touches neither store nor mail."""
    with pytest.raises(ValidationError, match="Email is required"):
        service.request_otp(email)
    assert len(store) == 0
    assert sender.sent == []


@pytest.mark.parametrize("email,code", [("", "123456"), ("a@example.com", ""), (None, None)])
def test_verify_requires_both_fields(service, email, code):
    with pytest.raises(ValidationError):
        service.verify_otp(email, code)


def test_request_mails_the_code(service, sender):
    code = service.request_otp("a@example.com")
    to_email, subject, text = sender.sent[-1]
    assert to_email == "a@example.com"
    assert subject == "Your OTP for Verification"
    assert text == f"Your OTP is {code}. It will expire in 10 minutes."


def test_delivery_failure_keeps_code_pending(store):
    """The record is written before the send and not rolled back."""
    service = OTPService(store=store, sender=RecordingSender(fail=True), code_factory=lambda: "424242")
    with pytest.raises(DeliveryError):
        service.request_otp("a@example.com")
    assert store.get("a@example.com") == "424242"


def test_expired_code_fails_like_a_wrong_one(service, clock):
    code = service.request_otp("a@example.com")
    clock.advance(601)
    with pytest.raises(VerificationError, match="Invalid or expired OTP"):
        service.verify_otp("a@example.com", code)


def test_ttl_zero_never_expires(clock, sender):
    store = MemoryOTPStore(clock=clock)
    service = OTPService(store=store, sender=sender, ttl_seconds=0)
    code = service.request_otp("a@example.com")
    clock.advance(10 * 365 * 24 * 3600)
    service.verify_otp("a@example.com", code)
    assert sender.sent[-1][2].endswith("It will expire in 10 minutes.")


def test_send_confirmation_composes_message(service, sender):
    service.send_confirmation("a@example.com", "Ada Birch", "Site Visit Request", "Can we visit on Sunday?")
    to_email, subject, text = sender.sent[-1]
    assert to_email == "a@example.com"
    assert subject == "Confirmation of Your Inquiry"
    assert text.startswith("Hello Ada Birch,")
    assert "Inquiry Type: Site Visit Request" in text
    assert "Message: Can we visit on Sunday?" in text
    assert text.endswith("The Support Team")


@pytest.mark.parametrize(
    "fields",
    [
        ("", "Ada", "General Inquiry", "hi"),
        ("a@example.com", "", "General Inquiry", "hi"),
        ("a@example.com", "Ada", None, "hi"),
        ("a@example.com", "Ada", "General Inquiry", ""),
    ],
)
def test_send_confirmation_requires_all_fields(service, sender, fields):
    with pytest.raises(ValidationError, match="All fields are required"):
        service.send_confirmation(*fields)
    assert sender.sent == []


def test_send_confirmation_surfaces_delivery_error(store):
    service = OTPService(store=store, sender=RecordingSender(fail=True))
    with pytest.raises(DeliveryError):
        service.send_confirmation("a@example.com", "Ada", "General Inquiry", "hi")


def test_message_helpers():
    assert otp_message("123456", 300) == "Your OTP is 123456. It will expire in 5 minutes."
    assert "Hello Bo," in confirmation_message("Bo", "General Inquiry", "x")


def test_secrets_equal():
    assert secrets_equal("123456", "123456")
    assert not secrets_equal("123456", "123457")
    assert not secrets_equal("123456", "12345")
    assert secrets_equal("é1", "é1")


def test_whitespace_email_is_accepted(service, store, sender):
    """Presence is the only check: a blank-looking address is still a key."""
    code = service.request_otp("   ")
    assert store.get("   ") == code
    assert sender.sent[-1][0] == "   "
    service.verify_otp("   ", code)


def test_whitespace_confirmation_fields_are_accepted(service, sender):
    service.send_confirmation("a@example.com", "Ada", "General Inquiry", " ")
    assert sender.sent[-1][2].endswith("The Support Team")
    assert "Message:  \n" in sender.sent[-1][2]


def test_whitespace_code_is_compared_not_rejected(service):
    service.request_otp("a@example.com")
    with pytest.raises(VerificationError):
        service.verify_otp("a@example.com", "  ")


def test_codes_come_from_secrets(monkeypatch, store, sender):
    import utils.otp_service as otp_service

    monkeypatch.setattr(otp_service.secrets, "randbelow", lambda n: n - 1)
    assert otp_service._gen_otp() == "999999"
    monkeypatch.setattr(otp_service.secrets, "randbelow", lambda n: 0)
    assert OTPService(store=store, sender=sender).request_otp("a@example.com") == "100000"
