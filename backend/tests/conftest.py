"""Pytest fixtures — file-backed SQLite per test and a recording mail transport."""
import asyncio
import smtplib

import pytest
from fastapi.testclient import TestClient

from club_events.config import Settings
from club_events.container import build_services
from club_events.main import create_app

COACH = {"email": "coach@x.edu", "id": "1", "username": "coach", "auth": "user"}
ADMIN = {"email": "admin@x.edu", "id": "99", "username": "admin", "auth": "admin"}
PLAYER = {"email": "a@x.edu", "id": "2", "username": "player_a", "auth": "user"}

EVENT_PAYLOAD = {
    "title": "Scrim Night",
    "start_date": "2099-03-01T18:00:00Z",
    "end_date": "2099-03-01T20:00:00Z",
    "location": "Lab 101",
}


class RecordingTransport:
    """Mail transport that keeps sent messages in memory.

    Addresses listed in ``fail_for`` are refused the way an SMTP server would.
    """

    def __init__(self):
        self.sent = []
        self.fail_for = set()

    async def send(self, message):
        to = message["To"]
        if to in self.fail_for:
            raise smtplib.SMTPRecipientsRefused({to: (550, b"Mailbox unavailable")})
        self.sent.append(message)
        return message["Message-ID"]

    async def verify(self):
        return None

    def recipients(self, subject_contains: str = "") -> list:
        return [m["To"] for m in self.sent if subject_contains in m["Subject"]]


def make_settings(tmp_path, **overrides) -> Settings:
    values = {
        "DATABASE_URL": f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        "ENABLE_EMAIL": True,
        "EMAIL_BATCH_DELAY_SECONDS": 0,
        "DISPLAY_TIMEZONE": "UTC",
        "BASE_URL": "http://testserver",
    }
    values.update(overrides)
    return Settings(**values)


def seed(settings: Settings, table: str, items: list) -> None:
    """Write raw items straight into storage before the app starts."""
    async def _seed():
        services = await build_services(settings, transport=RecordingTransport())
        try:
            for item in items:
                await services.storage.put(table, item)
        finally:
            await services.close()

    asyncio.run(_seed())


@pytest.fixture(scope="function")
def transport():
    return RecordingTransport()


@pytest.fixture(scope="function")
def app_settings(tmp_path):
    return make_settings(tmp_path)


@pytest.fixture(scope="function")
def service_env(app_settings, transport):
    """Run ``scenario(services)`` on a fresh event loop with services wired to the test database.

    Each call builds and closes its own services; data persists across calls.
    """
    def run(scenario):
        async def _main():
            services = await build_services(app_settings, transport=transport)
            try:
                return await scenario(services)
            finally:
                await services.close()

        return asyncio.run(_main())

    return run


@pytest.fixture(scope="function")
def client(app_settings, transport):
    """FastAPI TestClient backed by the per-test SQLite file, with users seeded."""
    seed(app_settings, "users", [COACH, ADMIN, PLAYER])
    app = create_app(app_settings, transport=transport)
    with TestClient(app) as c:
        yield c


# ---------------------------------------------------------------------------
# Helper: create an event via the API, returns the response JSON
# ---------------------------------------------------------------------------
def create_test_event(client: TestClient, actor: str = "coach@x.edu", **fields) -> dict:
    """Helper — POST /api/events and return response JSON."""
    resp = client.post("/api/events/", params={"actor_email": actor}, json={**EVENT_PAYLOAD, **fields})
    assert resp.status_code == 201, resp.text
    return resp.json()
