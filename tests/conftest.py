"""Shared pytest fixtures for dormseat tests."""
import sys
sys.dont_write_bytecode = True

from datetime import timedelta  # noqa: E402

import bcrypt  # noqa: E402
import pytest  # noqa: E402

from dormseat.config import Config  # noqa: E402
from dormseat.domain.admission import AdmissionController  # noqa: E402
from dormseat.domain.credentials import AdminCredentials  # noqa: E402
from dormseat.domain.moderation import Moderation  # noqa: E402

from .helpers import (  # noqa: E402
    ADMIN_SECRET,
    T0,
    FakeClock,
    InMemoryReservationStore,
    InMemorySettingsStore,
    RecordingNotifier,
)


@pytest.fixture(autouse=True)
def _fast_bcrypt(monkeypatch):
    """Cheapest bcrypt cost factor; the default cost makes the suite crawl."""
    real_gensalt = bcrypt.gensalt
    monkeypatch.setattr(bcrypt, "gensalt", lambda rounds=4, prefix=b"2b": real_gensalt(4, prefix))


@pytest.fixture
def config():
    return Config(admin_secret=ADMIN_SECRET, rate_limit_max_requests=0)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return InMemoryReservationStore(clock)


@pytest.fixture
def settings_store(clock):
    """Settings with a window open from T0-12h to T0+11h59m."""
    settings = InMemorySettingsStore(clock)
    settings.put_window(T0 - timedelta(hours=12), T0 + timedelta(hours=11, minutes=59))
    return settings


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def controller(config, store, settings_store, notifier, clock):
    return AdmissionController(config, store, settings_store, notifier, clock=clock)


@pytest.fixture
def moderation(config, store, settings_store, notifier):
    return Moderation(config, store, settings_store, notifier)


@pytest.fixture
def admin():
    return AdminCredentials(secret=ADMIN_SECRET)


@pytest.fixture
def app(config, store, settings_store, notifier, clock):
    from dormseat.api.factory import create_app

    return create_app(
        config,
        reservation_store=store,
        settings_store=settings_store,
        notifier=notifier,
        clock=clock,
    )


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient

    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {ADMIN_SECRET}"}
