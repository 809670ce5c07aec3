from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from utils.errors import DeliveryError, RelayError
from utils.otp_service import INQUIRY_TYPES, OTPService, get_otp_service


router = APIRouter(tags=["contact"])


def _http_error(e: RelayError) -> HTTPException:
    return HTTPException(e.status_code, e.message)


# Fields are optional so a missing one reaches the service and gets the
# relay's 400 message instead of a 422.
class SendOtpIn(BaseModel):
    email: Optional[str] = None


class VerifyOtpIn(BaseModel):
    email: Optional[str] = None
    otp: Optional[str] = None


class ConfirmationIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: Optional[str] = None
    full_name: Optional[str] = Field(None, alias="fullName")
    inquiry_type: Optional[str] = Field(None, alias="inquiryType")
    message: Optional[str] = None


@router.post("/send-otp")
def send_otp(payload: SendOtpIn, service: OTPService = Depends(get_otp_service)):
    try:
        service.request_otp(payload.email)
    except DeliveryError:
        raise HTTPException(503, "Failed to send OTP. Please try again.")
    except RelayError as e:
        raise _http_error(e)
    return {"ok": True, "message": "OTP sent successfully"}


@router.post("/verify-otp")
def verify_otp(payload: VerifyOtpIn, service: OTPService = Depends(get_otp_service)):
    try:
        service.verify_otp(payload.email, payload.otp)
    except RelayError as e:
        raise _http_error(e)
    return {"ok": True, "message": "OTP verified successfully"}


@router.post("/send-confirmation")
def send_confirmation(payload: ConfirmationIn, service: OTPService = Depends(get_otp_service)):
    try:
        service.send_confirmation(payload.email, payload.full_name, payload.inquiry_type, payload.message)
    except DeliveryError:
        raise HTTPException(503, "Failed to send confirmation email")
    except RelayError as e:
        raise _http_error(e)
    return {"ok": True, "message": "Confirmation email sent successfully"}


@router.get("/inquiry-types")
def inquiry_types():
    return {"ok": True, "inquiry_types": list(INQUIRY_TYPES)}
