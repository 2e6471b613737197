# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Shared fixtures: an in-memory SQLite database (schema rebuilt per test) and
in-process stand-ins for the identity provider and the mail API.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CREATE_SCHEMA_ON_STARTUP"] = "false"
os.environ["MAIL_API_URL"] = ""

import uuid

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from main import app
from secons.core.database import engine
from secons.core.dependencies import get_identity_client, get_mail_client
from secons.core.schema import create_schema, drop_schema
from secons.repositories.user_repository import UserRepository


class FakeIdentityClient:
    """Accepts tokens issued by ``register``; records claim writes."""

    def __init__(self):
        self.accounts = {}
        self.claims = {}
        self.deleted = []

    def register(self, uid, email, name=None):
        token = f"token-{uid}"
        self.accounts[token] = {"uid": uid, "email": email, "name": name,
                                "role": "student", "domain": None}
        return token

    def verify_token(self, id_token):
        if id_token not in self.accounts:
            raise HTTPException(status_code=401, detail="Invalid or expired token")
        return dict(self.accounts[id_token])

    def set_claims(self, uid, role, domain):
        self.claims[uid] = {"role": role, "domain": domain}

    def delete_account(self, uid):
        self.deleted.append(uid)


class FakeMailClient:
    def __init__(self, deliver=True):
        self.deliver = deliver
        self.sent = []

    def send(self, to, subject, html):
        self.sent.append({"to": to, "subject": subject, "html": html})
        return self.deliver


@pytest.fixture(autouse=True)
def database():
    create_schema(engine)
    yield engine
    drop_schema(engine)


@pytest.fixture
def identity():
    fake = FakeIdentityClient()
    app.dependency_overrides[get_identity_client] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_identity_client, None)


@pytest.fixture
def mail():
    fake = FakeMailClient()
    app.dependency_overrides[get_mail_client] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_mail_client, None)


@pytest.fixture
def client(identity, mail):
    return TestClient(app)


@pytest.fixture
def user_repo(database):
    return UserRepository(database)


@pytest.fixture
def make_user(identity, user_repo):
    """Create a stored profile plus a bearer token the fake provider accepts."""

    def _make(role="student", domain=None, name=None, active=True):
        uid = f"uid-{uuid.uuid4().hex[:10]}"
        email = f"{uid}@edblazon.test"
        token = identity.register(uid, email, name)
        user = user_repo.create_user(uid, name or uid, email, role, domain)
        if not active:
            user = user_repo.update_user(user["id"], {"is_active": False})
        user["headers"] = {"Authorization": f"Bearer {token}"}
        return user

    return _make
