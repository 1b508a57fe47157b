from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.pool import StaticPool

from src.application.catalog_service import CatalogService
from src.config import Settings
from src.container import SWEEP_LOCK_KEY, ServiceContainer
from src.domain.exceptions import InvalidInputError, SendError, UploadError
from src.domain.identity import Principal, Role
from src.domain.vendor import (
    EventPackageData,
    EventTeamKind,
    EventTeamOffering,
    FreelancerCategory,
    FreelancerKind,
    Pricing,
    VendorProfile,
    VenueKind,
    VenueUnitData,
)
from src.infrastructure.db.session import build_engine
from src.infrastructure.locks import RedisLock
from src.infrastructure.repositories.user_repository import UserRepository
from src.main import create_app

TODAY = date(2026, 11, 10)


class FakeGateway:
    def __init__(self):
        self.sessions = []

    def create_checkout_session(self, **kwargs):
        self.sessions.append(kwargs)
        return f"https://rzp.io/l/{kwargs['reference_id']}"

    def verify_callback(self, params):
        if params.get("razorpay_signature") != "valid-signature":
            raise InvalidInputError("Invalid payment signature")
        if params.get("payment_link_status") != "paid":
            raise InvalidInputError("Payment not completed")


class FakeMediaStore:
    def __init__(self):
        self.uploads = []
        self.fail = False

    def upload(self, data, folder, filename="upload"):
        if self.fail:
            raise UploadError("Image upload failed")
        self.uploads.append((folder, filename, data))
        return f"https://cdn.example.com/{folder}/{filename}"


class FakeNotifier:
    def __init__(self):
        self.sent = []
        self.failing = set()

    def send(self, recipient, subject, body):
        if recipient in self.failing:
            raise SendError(f"Could not send '{subject}' to {recipient}")
        self.sent.append((recipient, subject, body))


class FakeRedis:
    """Just the SET NX EX / GET / DELETE surface the sweep lock uses."""

    def __init__(self):
        self.values = {}
        self.expiries = {}
        self.down = False

    def _check(self):
        if self.down:
            raise RedisConnectionError("Connection refused")

    def set(self, key, value, nx=False, ex=None):
        self._check()
        if nx and key in self.values:
            return None
        self.values[key] = value
        self.expiries[key] = ex
        return True

    def get(self, key):
        self._check()
        return self.values.get(key)

    def delete(self, key):
        self._check()
        self.expiries.pop(key, None)
        return 1 if self.values.pop(key, None) is not None else 0


def principal_for(user) -> Principal:
    return Principal(subject_id=user.id, role=user.role)


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite://",
        db_connect_max_retries=1,
        db_connect_retry_delay=0,
        jwt_secret="test-secret",
        frontend_url="http://frontend.test",
    )


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def media_store():
    return FakeMediaStore()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def redis_client():
    return FakeRedis()


@pytest.fixture
def sweep_lock(redis_client):
    return RedisLock(redis_client, SWEEP_LOCK_KEY, ttl_s=600)


@pytest.fixture
def container(settings, gateway, media_store, notifier, sweep_lock):
    engine = build_engine(
        settings.database_url,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    container = ServiceContainer(
        settings,
        engine=engine,
        gateway=gateway,
        media_store=media_store,
        notifier=notifier,
        sweep_lock=sweep_lock,
        today=lambda: TODAY,
    )
    container.start()
    yield container
    container.shutdown()


@pytest.fixture
def db(container):
    session = container.session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seeded(db):
    users = UserRepository(db)
    admin = users.create("Asha Admin", "admin@example.com", Role.ADMIN)
    customer = users.create("Kiran Customer", "kiran@example.com", Role.CUSTOMER)
    other_customer = users.create("Ravi Customer", "ravi@example.com", Role.CUSTOMER)
    venue_owner = users.create("Meera Venues", "meera@example.com", Role.VENDOR)
    photographer_owner = users.create("Dev Clicks", "dev@example.com", Role.VENDOR)
    team_owner = users.create("Utsav Events", "utsav@example.com", Role.VENDOR)
    db.flush()

    catalog = CatalogService(db)
    admin_principal = principal_for(admin)
    venue = catalog.register_vendor(
        admin_principal,
        VendorProfile(
            user_id=venue_owner.id,
            name="Royal Gardens",
            city="Jaipur",
            kind=VenueKind(
                units=(
                    VenueUnitData(title="Grand Hall", capacity=500, price_per_day=Decimal("50000")),
                    VenueUnitData(title="Lawn", capacity=800, price_per_day=Decimal("30000")),
                )
            ),
        ),
    )
    photographer = catalog.register_vendor(
        admin_principal,
        VendorProfile(
            user_id=photographer_owner.id,
            name="Dev Clicks Studio",
            city="Mumbai",
            kind=FreelancerKind(
                category=FreelancerCategory.PHOTOGRAPHER,
                pricing=Pricing(base_price=Decimal("15000")),
            ),
        ),
    )
    event_team = catalog.register_vendor(
        admin_principal,
        VendorProfile(
            user_id=team_owner.id,
            name="Utsav Event Crew",
            city="Jaipur",
            kind=EventTeamKind(
                offering=EventTeamOffering(
                    packages=(EventPackageData(name="Gold", price=Decimal("80000")),),
                    event_types_covered=("wedding",),
                )
            ),
        ),
    )
    db.commit()

    return SimpleNamespace(
        admin=admin,
        customer=customer,
        other_customer=other_customer,
        venue_owner=venue_owner,
        photographer_owner=photographer_owner,
        team_owner=team_owner,
        venue=venue,
        grand_hall=venue.units[0],
        lawn=venue.units[1],
        photographer=photographer,
        event_team=event_team,
        gold_package=event_team.packages[0],
    )


@pytest.fixture
def auth_headers(container):
    def _headers(user):
        token = container.auth_verifier.issue(user.id, user.role)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def client(container):
    with TestClient(create_app(container)) as test_client:
        yield test_client
