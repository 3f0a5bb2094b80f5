"""Shared fixtures: an in-memory database and in-memory collaborators."""

import os
import time
from datetime import datetime

import django
import pytest

from chainheart.config import Config
from chainheart.db.healthcheck import create_schema
from chainheart.db.session import dispose_db, init_db
from chainheart.errors import ExternalDependencyError
from chainheart.services.campaign_registry import CampaignRegistry
from chainheart.services.charity_lifecycle import CharityLifecycleManager
from chainheart.services.ledger_store import LedgerStore
from chainheart.services.notifications import NotificationDispatcher
from chainheart.services.storage import Upload

DONOR_A = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
DONOR_B = "0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC"
CHARITY_WALLET = "0x90F79bf6EB2c4f870365E785982E1f101E93b906"
FIXED_NOW = datetime(2024, 5, 1, 12, 30, 0)


class FakeStorage:
    """Keeps stored files in a dict and records deletions."""

    def __init__(self, fail_on_call=None):
        self.files = {}
        self.deleted = []
        self.calls = 0
        self.fail_on_call = fail_on_call

    def store(self, data, filename):
        self.calls += 1
        if self.fail_on_call == self.calls:
            raise ExternalDependencyError(f"disk full storing {filename}")
        reference = f"file-{self.calls}-{filename}"
        self.files[reference] = data
        return reference

    def delete(self, reference):
        if not reference:
            return
        self.deleted.append(reference)
        self.files.pop(reference, None)

    def public_url(self, reference):
        return f"/uploads/{reference}" if reference else None


class RecordingNotifier:
    """Collects sent messages."""

    def __init__(self):
        self.sent = []

    def send(self, to_address, subject, body):
        self.sent.append((to_address, subject, body))


class FailingNotifier:
    """Fails every attempt."""

    def __init__(self):
        self.attempts = 0

    def send(self, to_address, subject, body):
        self.attempts += 1
        raise ExternalDependencyError("relay unavailable")


class SlowNotifier:
    """Takes longer than any test timeout."""

    def __init__(self, delay=0.5):
        self.delay = delay
        self.attempts = 0

    def send(self, to_address, subject, body):
        self.attempts += 1
        time.sleep(self.delay)


@pytest.fixture
def test_config(tmp_path):
    """Test configuration."""
    return Config(
        db_url="sqlite://",
        upload_dir=str(tmp_path / "uploads"),
        notify_timeout_seconds=1.0,
        notify_max_retries=1,
    )


@pytest.fixture
def db(test_config):
    """Fresh in-memory database with the ledger schema."""
    dispose_db()
    init_db(test_config)
    create_schema()
    yield
    dispose_db()


@pytest.fixture
def store(db):
    return LedgerStore(clock=lambda: FIXED_NOW)


@pytest.fixture
def registry(db):
    return CampaignRegistry(clock=lambda: FIXED_NOW)


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def make_lifecycle(db, storage):
    """Build a lifecycle manager around a given notifier."""
    dispatchers = []

    def _make(notifier=None, timeout_seconds=1.0, max_retries=1, storage_override=None):
        dispatcher = None
        if notifier is not None:
            dispatcher = NotificationDispatcher(notifier, timeout_seconds=timeout_seconds, max_retries=max_retries)
            dispatchers.append(dispatcher)
        return CharityLifecycleManager(
            storage_override or storage,
            dispatcher=dispatcher,
            clock=lambda: FIXED_NOW,
        )

    yield _make

    for dispatcher in dispatchers:
        dispatcher.shutdown()


@pytest.fixture
def lifecycle(make_lifecycle, notifier):
    return make_lifecycle(notifier)


@pytest.fixture
def donation_data():
    """Factory for donation input mappings using wire names."""
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        data = {
            "txHash": f"0x{counter['n']:064x}",
            "donorAddress": DONOR_A,
            "charityId": 1,
            "charityName": "Clean Water",
            "amount": "0.5",
            "blockNumber": 100 + counter["n"],
        }
        data.update(overrides)
        return data

    return _make


@pytest.fixture
def charity_form():
    """Registration form fields using wire names."""
    return {
        "name": "Clean Water",
        "wallet": CHARITY_WALLET,
        "description": "Wells for rural schools",
        "email": "contact@cleanwater.org",
        "websiteUrl": "https://cleanwater.org",
    }


@pytest.fixture
def verification():
    return Upload(filename="registration.pdf", data=b"%PDF-1.4 registration")


@pytest.fixture
def logo():
    return Upload(filename="logo.png", data=b"\x89PNG logo")


@pytest.fixture
def failing_notifier():
    return FailingNotifier()


@pytest.fixture
def slow_notifier():
    return SlowNotifier()


@pytest.fixture
def fake_storage_factory():
    """Build a FakeStorage that fails on the given store call."""
    return FakeStorage


@pytest.fixture
def api_services(db, test_config, storage, notifier):
    """Install API services backed by the test database and fakes."""
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "chainheart.api.settings")
    django.setup()

    from chainheart.api.dependencies import build_services, set_services

    services = build_services(test_config, storage=storage, notifier=notifier)
    set_services(services)
    yield services
    set_services(None)


@pytest.fixture
def client(api_services):
    """DRF test client for the API."""
    from rest_framework.test import APIClient

    return APIClient()
