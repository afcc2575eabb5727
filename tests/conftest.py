"""Test configuration and fixtures for Sentinel API."""

import pytest
from fastapi.testclient import TestClient

from sentinel.config import firebase
from sentinel.core import rate_limit
from sentinel.models.user import User
from sentinel.services import (
    firestore_repository,
    group_service,
    identity_service,
    location_service,
    notification_service,
    panic_service,
    post_service,
    user_service,
)
from sentinel.services.firestore_repository import FirestoreRepository
from sentinel.services.group_service import GroupService
from sentinel.services.location_service import LocationService
from sentinel.services.notification_service import NotificationService
from sentinel.services.panic_service import PanicService
from sentinel.services.post_service import PostService
from sentinel.services.user_service import UserService
from tests.fakes import FakeFirestore, FakeIdentityService, FakeSender, ImmediateExecutor


@pytest.fixture
def fake_db(monkeypatch):
    """In-memory Firestore installed as the module-level client."""
    db = FakeFirestore()
    monkeypatch.setattr(firebase, "db", db)
    return db


@pytest.fixture
def identity():
    return FakeIdentityService()


@pytest.fixture
def sender():
    return FakeSender()


@pytest.fixture
def executor():
    return ImmediateExecutor()


@pytest.fixture
def repository(fake_db):
    return FirestoreRepository(fake_db)


@pytest.fixture
def notifier(repository, sender, executor):
    return NotificationService(repository=repository, sender=sender, executor=executor)


@pytest.fixture(autouse=True)
def reset_rate_limit():
    rate_limit.request_counter.reset()
    yield
    rate_limit.request_counter.reset()


@pytest.fixture
def services(monkeypatch, repository, notifier, identity):
    """Wire every service singleton to the fakes."""
    monkeypatch.setattr(firestore_repository, "_repository", repository)
    monkeypatch.setattr(notification_service, "_notification_service", notifier)
    monkeypatch.setattr(identity_service, "_identity_service", identity)
    monkeypatch.setattr(user_service, "_user_service", UserService(repository, identity))
    monkeypatch.setattr(post_service, "_post_service", PostService(repository, notifier))
    monkeypatch.setattr(group_service, "_group_service", GroupService(repository))
    monkeypatch.setattr(panic_service, "_panic_service", PanicService(repository, notifier))
    monkeypatch.setattr(location_service, "_location_service", LocationService(repository, notifier))


@pytest.fixture
def client(services):
    """Create test client."""
    from sentinel.main import app

    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def make_user(repository, identity):
    """Create a Firebase account plus profile document and return the User."""

    def _make_user(email: str, suburb: str = "Walmer", **fields) -> User:
        uid = identity.add_account(email)
        fields.setdefault("trusted_contacts", [])
        return repository.create_user(User(id=uid, email=email, suburb=suburb, **fields))

    return _make_user
