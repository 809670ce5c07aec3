"""
Key-value stores for pending OTP codes, keyed by email address.

Every backend offers get/set/delete plus purge_expired. Reads never return
an expired code. None of them make verify's read-compare-delete atomic:
two concurrent requests for the same address are last-write-wins.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from datetime import datetime, timezone
from typing import Callable, Dict, Optional, Tuple

import redis
from sqlalchemy.orm import Session, sessionmaker

from models import OTPRecord


logger = logging.getLogger(__name__)

OTP_STORE_BACKEND = os.getenv("OTP_STORE_BACKEND", "memory").strip().lower()


class OTPStore:
    backend = "base"

    def get(self, email: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, email: str, code: str, ttl_seconds: Optional[int] = None) -> None:
        raise NotImplementedError

    def delete(self, email: str) -> None:
        raise NotImplementedError

    def purge_expired(self) -> int:
        return 0


class MemoryOTPStore(OTPStore):
    backend = "memory"

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._mem: Dict[str, Tuple[str, Optional[float]]] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._mem)

    def _evict(self, email: str, rec: Tuple[str, Optional[float]]) -> bool:
        # Only drop the record that was seen expired; a newer set() wins.
        with self._lock:
            if self._mem.get(email) is rec:
                del self._mem[email]
                return True
            return False

    def get(self, email: str) -> Optional[str]:
        rec = self._mem.get(email)
        if not rec:
            return None
        code, exp = rec
        if exp is not None and self._clock() > exp:
            self._evict(email, rec)
            return None
        return code

    def set(self, email: str, code: str, ttl_seconds: Optional[int] = None) -> None:
        exp = self._clock() + ttl_seconds if ttl_seconds else None
        with self._lock:
            self._mem[email] = (code, exp)

    def delete(self, email: str) -> None:
        with self._lock:
            self._mem.pop(email, None)

    def purge_expired(self) -> int:
        now = self._clock()
        with self._lock:
            stale = [(k, rec) for k, rec in self._mem.items() if rec[1] is not None and now > rec[1]]
        return sum(1 for k, rec in stale if self._evict(k, rec))


class RedisOTPStore(OTPStore):
    """Expiry is left to Redis (SETEX), so purge_expired is a no-op."""

    backend = "redis"

    def __init__(self, client=None, url: Optional[str] = None, prefix: str = "otp:"):
        if client is None:
            url = url or os.getenv("REDIS_URL")
            if not url:
                raise RuntimeError("REDIS_URL is not set")
            client = redis.Redis.from_url(url, decode_responses=True)
        self._r = client
        self._prefix = prefix

    def _key(self, email: str) -> str:
        return f"{self._prefix}{email}"

    def get(self, email: str) -> Optional[str]:
        return self._r.get(self._key(email))

    def set(self, email: str, code: str, ttl_seconds: Optional[int] = None) -> None:
        if ttl_seconds:
            self._r.setex(self._key(email), ttl_seconds, code)
        else:
            self._r.set(self._key(email), code)

    def delete(self, email: str) -> None:
        self._r.delete(self._key(email))


def _utc(ts: float) -> datetime:
    return datetime.fromtimestamp(ts, tz=timezone.utc).replace(tzinfo=None)


class SqlOTPStore(OTPStore):
    backend = "sql"

    def __init__(self, session_factory: Optional[sessionmaker] = None, clock: Callable[[], float] = time.time):
        if session_factory is None:
            from database import Base, SessionLocal, engine

            Base.metadata.create_all(bind=engine)
            session_factory = SessionLocal
        self._session_factory = session_factory
        self._clock = clock

    def get(self, email: str) -> Optional[str]:
        db: Session = self._session_factory()
        try:
            rec = db.get(OTPRecord, email)
            if rec is None:
                return None
            if rec.expires_at is not None and _utc(self._clock()) > rec.expires_at:
                return None
            return rec.code
        finally:
            db.close()

    def set(self, email: str, code: str, ttl_seconds: Optional[int] = None) -> None:
        expires_at = _utc(self._clock() + ttl_seconds) if ttl_seconds else None
        db: Session = self._session_factory()
        try:
            # merge() gives last-write-wins on the primary key.
            db.merge(OTPRecord(email=email, code=code, expires_at=expires_at, created_at=_utc(self._clock())))
            db.commit()
        finally:
            db.close()

    def delete(self, email: str) -> None:
        db: Session = self._session_factory()
        try:
            db.query(OTPRecord).filter(OTPRecord.email == email).delete()
            db.commit()
        finally:
            db.close()

    def purge_expired(self) -> int:
        db: Session = self._session_factory()
        try:
            deleted = (
                db.query(OTPRecord)
                .filter(OTPRecord.expires_at.isnot(None), OTPRecord.expires_at < _utc(self._clock()))
                .delete(synchronize_session=False)
            )
            db.commit()
            return int(deleted or 0)
        finally:
            db.close()


def build_otp_store(backend: Optional[str] = None) -> OTPStore:
    backend = (backend or OTP_STORE_BACKEND).strip().lower()
    if backend == "redis":
        return RedisOTPStore()
    if backend == "sql":
        return SqlOTPStore()
    if backend != "memory":
        raise ValueError(f"Unknown OTP_STORE_BACKEND: {backend!r}")
    return MemoryOTPStore()
