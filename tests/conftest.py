import pytest
from fastapi.testclient import TestClient

from main import app
from utils.errors import DeliveryError
from utils.otp_service import OTPService, get_otp_service
from utils.otp_store import MemoryOTPStore
from utils.visits import VisitRegistry, get_visit_registry


class RecordingSender:
    """Stands in for the mail gateway; optionally fails every send."""

    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []

    def __call__(self, to_email, subject, text):
        if self.fail:
            raise DeliveryError("gateway down")
        self.sent.append((to_email, subject, text))


class FakeClock:
    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def store(clock):
    return MemoryOTPStore(clock=clock)


@pytest.fixture
def service(store, sender):
    return OTPService(store=store, sender=sender, ttl_seconds=600)


@pytest.fixture
def registry():
    return VisitRegistry()


@pytest.fixture
def client(service, registry):
    app.dependency_overrides[get_otp_service] = lambda: service
    app.dependency_overrides[get_visit_registry] = lambda: registry
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
