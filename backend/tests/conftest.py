"""Pytest fixtures: a fresh AppState on a tmp_path data directory per test."""
import asyncio

import pytest
from fastapi.testclient import TestClient

from field_scheduler.config import Settings
from field_scheduler.main import create_app
from field_scheduler.models.user import ADMIN, UserEntry
from field_scheduler.services.context import Context
from field_scheduler.services.notifier import ChangeNotifier
from field_scheduler.services.state import AppState
from field_scheduler.util.timeutil import local_today, utcnow

TZ = "America/Los_Angeles"


class RecordingNotifier(ChangeNotifier):
    """Collects every notification instead of sending it anywhere."""

    def __init__(self):
        self.events = []

    async def notify_reservation_changed(self, reservation):
        self.events.append(("reservation", reservation))

    async def notify_blackout_changed(self, blackout):
        self.events.append(("blackout", blackout))

    async def notify_site_event_changed(self, event):
        self.events.append(("siteEvent", event))

    async def notify_holiday_changed(self, holiday):
        self.events.append(("holiday", holiday))


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(_env_file=None, DATA_DIR=str(tmp_path / "data"), TIME_ZONE=TZ)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def state(settings, notifier) -> AppState:
    return AppState(settings, notifier=notifier)


@pytest.fixture
def today(settings):
    return local_today(settings.TIME_ZONE)


# ---------------------------------------------------------------------------
# Helpers: users and contexts bound directly to the state (no identity step)
# ---------------------------------------------------------------------------
def make_user(user_id: str, teams, **fields) -> UserEntry:
    now = utcnow()
    return UserEntry(id=user_id, name=user_id, created=now, updated=now, teams=teams, **fields)


def context_for(state: AppState, user: UserEntry) -> Context:
    if user not in state.users:
        state.users.append(user)
    return Context(state, user, "pytest", "127.0.0.1")


async def race_behind_lock(state: AppState, make_change, count: int) -> list:
    """Queue `count` changes on a held lock so all pass their pre-checks, then let them run."""
    release = await state.lock.acquire()
    tasks = [asyncio.create_task(make_change()) for _ in range(count)]
    await asyncio.sleep(0.01)
    assert state.lock.waiting == count
    release()
    return await asyncio.gather(*tasks, return_exceptions=True)


@pytest.fixture
def admin(state) -> Context:
    return context_for(state, make_user("admin-1", ADMIN))


@pytest.fixture
def member(state) -> Context:
    """Member of team 100."""
    return context_for(state, make_user("member-100", [100]))


@pytest.fixture
def outsider(state) -> Context:
    """Member of team 200 only."""
    return context_for(state, make_user("member-200", [200]))


# ---------------------------------------------------------------------------
# HTTP client with identity headers
# ---------------------------------------------------------------------------
@pytest.fixture
def client(settings):
    """TestClient running the full lifespan against the tmp data directory."""
    app = create_app(settings, on_rollover=lambda: None, force_exit=lambda code, grace: None)
    with TestClient(app) as c:
        yield c


def auth_headers(subject: str, email: str = "", name: str = "") -> dict:
    headers = {"X-Auth-Subject": subject, "User-Agent": "pytest"}
    if email:
        headers["X-Auth-Email"] = email
    if name:
        headers["X-Auth-Name"] = name
    return headers
