"""
PETVERSE - test configuration and fixtures
"""
import os
import itertools
from typing import AsyncGenerator

os.environ.setdefault("FIREBASE_PROJECT_ID", "petverse-test")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from beanie import init_beanie
from httpx import AsyncClient, ASGITransport
from mongomock_motor import AsyncMongoMockClient

from petverse.main import app
from petverse.models import DOCUMENT_MODELS, User
from petverse.security import get_current_user, get_firebase_identity
from petverse.services import EmailService, FirebaseService, OtpService


@pytest.fixture(autouse=True)
async def db():
    """Fresh in-memory database for every test"""
    client = AsyncMongoMockClient()
    database = client["petverse_test"]
    await init_beanie(database=database, document_models=DOCUMENT_MODELS)
    yield database


@pytest.fixture(autouse=True)
def outbox(monkeypatch) -> list:
    """Capture outgoing mail instead of talking to SMTP"""
    sent = []

    async def fake_send_email(to_email, subject, text, html=None):
        sent.append({"to": to_email, "subject": subject, "text": text})

    monkeypatch.setattr(EmailService, "send_email", staticmethod(fake_send_email))
    return sent


@pytest.fixture(autouse=True)
def firebase_claims(monkeypatch) -> list:
    """Record custom claim updates instead of calling Firebase"""
    calls = []

    async def fake_set_custom_user_claims(uid, claims):
        calls.append((uid, claims))
        return True

    monkeypatch.setattr(FirebaseService, "set_custom_user_claims", staticmethod(fake_set_custom_user_claims))
    return calls


@pytest.fixture
def otp_codes(monkeypatch) -> list:
    """Make generated codes predictable: 111111, 222222, ..."""
    issued = []
    counter = itertools.count(1)

    def fake_generate_code():
        code = str(next(counter)) * 6
        issued.append(code)
        return code

    monkeypatch.setattr(OtpService, "generate_code", staticmethod(fake_generate_code))
    return issued


async def make_user(role: str, **overrides) -> User:
    n = await User.find().count() + 1
    data = dict(
        fullName=f"{role} {n}",
        email=f"{role.lower()}{n}@petverse.com",
        phoneNumber=f"07700000{n:02d}",
        firebaseUid=f"uid-{role}-{n}",
        role=role,
    )
    if role == "serviceProvider":
        data.update(address="12 Temple Road, Kandy", nicNumber=f"9900000{n:02d}V")
    data.update(overrides)
    user = User(**data)
    await user.insert()
    return user


@pytest.fixture
async def admin() -> User:
    return await make_user("admin", fullName="Admin User")


@pytest.fixture
async def provider() -> User:
    return await make_user("serviceProvider", fullName="Happy Paws Grooming")


@pytest.fixture
async def pet_owner() -> User:
    return await make_user("petOwner", fullName="Nimal Perera", loyaltyPoints=100)


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app; no lifespan, the db fixture already set up Beanie"""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def login_as():
    """Authenticate subsequent requests as the given user"""
    def _login(user: User):
        app.dependency_overrides[get_current_user] = lambda: user
        return user
    return _login


@pytest.fixture
def user_factory():
    return make_user


@pytest.fixture
def signed_in_as():
    """Present a verified Firebase token for a uid that may have no account yet"""
    def _sign_in(uid: str):
        app.dependency_overrides[get_firebase_identity] = lambda: {"uid": uid, "sub": uid}
        return uid
    return _sign_in
