import json
import os

import pytest
import requests


# must be set before app.config.settings is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["SLACK_WEBHOOK_URL"] = ""
os.environ["DISCORD_WEBHOOK_URL"] = ""
os.environ.setdefault("LOG_LEVEL", "WARNING")

from app.clients.base_http_client import BaseHTTPClient  # noqa: E402
from app.models.integration_metric import IntegrationMetric  # noqa: E402
from app.models.integration_monitor import IntegrationMonitor  # noqa: E402
from app.services.database import SessionLocal, init_db  # noqa: E402
from app.services.prober_service import ProberService  # noqa: E402


def make_response(status_code: int, body=None, reason: str = "") -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    response.reason = reason
    response._content = json.dumps(body).encode() if body is not None else b""
    response._content_consumed = True
    response.headers["Content-Type"] = "application/json"
    return response


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSession:
    """Stands in for requests.Session; replays queued outcomes and records calls.

    An outcome is a Response to return or an exception to raise. `elapsed`
    seconds are added to the clock before each outcome is produced.
    """

    def __init__(self, outcomes=None, clock: FakeClock = None, elapsed: float = 0.05):
        self.outcomes = list(outcomes or [])
        self.clock = clock
        self.elapsed = elapsed
        self.calls = []
        self.headers = {}

    def queue(self, outcome) -> None:
        self.outcomes.append(outcome)

    def request(self, method, url, json=None, headers=None, timeout=None, stream=False):
        self.calls.append({"method": method, "url": url, "json": json, "headers": headers or {}, "timeout": timeout})
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if self.clock is not None:
            # a timeout consumes the whole budget
            budget = timeout[0] if isinstance(timeout, tuple) else timeout
            self.clock.advance(budget if isinstance(outcome, requests.exceptions.Timeout) else self.elapsed)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def close(self):
        pass


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_session(clock):
    return FakeSession([make_response(200, {"ok": True}, "OK")], clock=clock)


@pytest.fixture
def prober(fake_session, clock):
    return ProberService(http_client=BaseHTTPClient(session=fake_session), clock=clock)


@pytest.fixture(autouse=True)
def clean_db():
    init_db()
    yield
    session = SessionLocal()
    try:
        session.query(IntegrationMetric).delete()
        session.query(IntegrationMonitor).delete()
        session.commit()
    finally:
        session.close()
        SessionLocal.remove()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
