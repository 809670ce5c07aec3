from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, String

from database import Base


class OTPRecord(Base):
    __tablename__ = "otp_records"

    # Exact, case-sensitive address as submitted by the contact form.
    email = Column(String, primary_key=True)
    code = Column(String(6), nullable=False)

    # Naive UTC. NULL means the code never expires (OTP_TTL_SECONDS=0).
    expires_at = Column(DateTime, nullable=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
