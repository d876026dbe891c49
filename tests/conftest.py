import pytest
from fastapi.testclient import TestClient

from activation.config import Settings
from activation.main import create_app
from activation.sessions import SessionManager
from activation.store import JsonFileRecordStore

ADMIN_KEY = "test-admin-key"
ADMIN_USER = "admin"
ADMIN_PASS = "s3cret"


class FakeClock:
    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def settings(tmp_path):
    return Settings(
        admin_key=ADMIN_KEY,
        admin_username=ADMIN_USER,
        admin_password=ADMIN_PASS,
        data_file=str(tmp_path / "activations.json"),
        seed_example=False,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sessions(clock):
    return SessionManager(idle_timeout=30 * 60, clock=clock)


@pytest.fixture
def store(settings):
    return JsonFileRecordStore(settings.data_file)


@pytest.fixture
def app(settings, store, sessions):
    return create_app(settings, store=store, sessions=sessions)


@pytest.fixture
def client(app):
    # https so the Secure session cookie is sent back
    with TestClient(app, base_url="https://testserver") as c:
        yield c


@pytest.fixture
def admin_client(client):
    r = client.post("/admin/login", json={"username": ADMIN_USER, "password": ADMIN_PASS})
    assert r.status_code == 200
    return client
