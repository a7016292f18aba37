"""
Shared pytest fixtures.

The app runs in-process over httpx's ASGI transport against a
mongomock-motor database; every outbound collaborator is a fake.
"""

import os
import tempfile

os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="civic-uploads-"))
os.environ.setdefault("JWT_SECRET", "test-secret")

import httpx
import pytest
import pytest_asyncio
from mongomock_motor import AsyncMongoMockClient

from app.api.deps import get_chat_rate_limiter, get_integrations
from app.core.enums import ComplaintStatus, DepartmentType, Role
from app.core.security import Principal, create_access_token, hash_password
from app.db.mongo import ensure_indexes, mongo
from app.integrations.geo_fallback import fallback_address
from app.integrations.registry import Integrations
from app.main import app
from app.models.accounts import Admin, Department, User
from app.models.complaint import Complaint, ComplaintLocation
from app.services.rate_limit import SlidingWindowRateLimiter
from app.services.registry import Services


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeGeocoder:
    async def resolve(self, lat, lng):
        return fallback_address(lat, lng)


class FakeCallGateway:
    def __init__(self):
        self.calls = []
        self.fail = False

    async def call(self, phone, complaint_id):
        if self.fail:
            raise RuntimeError("gateway down")
        self.calls.append((phone, complaint_id))
        return f"CA{len(self.calls):04d}"


class FakeSms:
    def __init__(self):
        self.sent = []

    async def send(self, to, content):
        self.sent.append((to, content))
        return True


class FakeEmail:
    def __init__(self):
        self.sent = []

    async def send(self, to, subject, body):
        self.sent.append((to, subject, body))
        return True


class FakeScheduler:
    """Captures jobs; tests run them explicitly."""

    def __init__(self):
        self.jobs = []

    @property
    def pending(self):
        return len(self.jobs)

    def schedule(self, delay_seconds, job, name="retry"):
        self.jobs.append((delay_seconds, job, name))

    async def run_all(self):
        jobs, self.jobs = self.jobs, []
        for _, job, _ in jobs:
            await job()

    async def shutdown(self):
        self.jobs.clear()


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def integrations():
    return Integrations(
        classifier=None,
        geocoder=FakeGeocoder(),
        call_gateway=FakeCallGateway(),
        sms=FakeSms(),
        email=FakeEmail(),
        scheduler=FakeScheduler(),
        production=False,
        retry_delay_seconds=600,
    )


@pytest_asyncio.fixture
async def db():
    database = AsyncMongoMockClient()["civic_test"]
    await ensure_indexes(database)
    mongo.use_database(database)
    yield database
    mongo.close()


@pytest.fixture
def services(db, integrations):
    return Services(db, integrations)


@pytest_asyncio.fixture
async def client(db, integrations):
    limiter = SlidingWindowRateLimiter(window_seconds=10, max_requests=1000)
    app.dependency_overrides[get_integrations] = lambda: integrations
    app.dependency_overrides[get_chat_rate_limiter] = lambda: limiter
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def admin(db):
    doc = Admin(
        admin_id="ADM-JAIPUR",
        name="Jaipur Admin",
        password=hash_password("admin123"),
        assigned_city="Jaipur",
        assigned_state="Rajasthan",
    ).to_document()
    r = await db["admins"].insert_one(doc)
    doc["_id"] = r.inserted_id
    return doc


@pytest_asyncio.fixture
async def departments(db):
    seeded = {}
    for key, dtype in (("road", DepartmentType.road), ("municipal", DepartmentType.municipal)):
        doc = Department(
            department_id=f"DEP-{key.upper()}",
            name=f"Jaipur {dtype.value}",
            password=hash_password("dept123"),
            department_type=dtype,
            assigned_city="Jaipur",
            assigned_state="Rajasthan",
            assigned_district="Jaipur",
        ).to_document()
        r = await db["departments"].insert_one(doc)
        doc["_id"] = r.inserted_id
        seeded[key] = doc
    return seeded


@pytest_asyncio.fixture
async def user(db):
    doc = User(
        name="Asha",
        email="asha@example.com",
        phone="9876543210",
        password=hash_password("secret123"),
    ).to_document()
    r = await db["users"].insert_one(doc)
    doc["_id"] = r.inserted_id
    return doc


def principal_for(doc, role: Role) -> Principal:
    return Principal(
        id=str(doc["_id"]),
        role=role,
        city=doc.get("assignedCity"),
        state=doc.get("assignedState"),
    )


def auth_headers(doc, role: Role) -> dict:
    claims = {"id": str(doc["_id"]), "role": role.value}
    if role == Role.admin:
        claims.update(city=doc["assignedCity"], state=doc["assignedState"], adminId=doc["adminId"])
    if role == Role.department:
        claims["type"] = "department"
    return {"Authorization": f"Bearer {create_access_token(claims)}"}


async def seed_complaint(db, user_doc, status=ComplaintStatus.pending, description="Big pothole on the road", **extra):
    doc = Complaint(
        user_id=str(user_doc["_id"]),
        description=description,
        phone="9876543210",
        image="/uploads/test.jpg",
        location=ComplaintLocation(lat=26.9, lng=75.8, city="Jaipur", state="Rajasthan", district="Jaipur"),
        status=status,
        assigned_city="Jaipur",
        assigned_state="Rajasthan",
    ).to_document()
    doc.update(extra)
    r = await db["complaints"].insert_one(doc)
    doc["_id"] = r.inserted_id
    return doc
