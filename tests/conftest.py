"""Shared pytest fixtures for prefect-trigger tests.

Provides a fake Prefect API served through httpx.MockTransport and a
recording replacement for time.sleep.
"""

from typing import Any

import httpx
import pytest

from prefect_trigger.env import clear_settings_cache


class FakePrefect:
    """In-memory Prefect API.

    POST requests answer with create_response; GET requests consume
    poll_responses in order. Every request is recorded.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.create_response: tuple[int, Any] = (
            201,
            {"id": "r1", "state": {"type": "SCHEDULED", "name": "Scheduled"}},
        )
        self.poll_responses: list[tuple[int, Any]] = []
        self.error: BaseException | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if request.method == "POST":
            status, body = self.create_response
        else:
            status, body = self.poll_responses.pop(0)
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))

    def poll_states(self, *states: str, run_id: str = "r1") -> None:
        for state in states:
            self.poll_responses.append((200, {"id": run_id, "state": {"type": state}}))

    @property
    def gets(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == "GET"]

    @property
    def posts(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == "POST"]


class RecordingSleep:
    """Stands in for time.sleep and records requested durations."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def fake_prefect() -> FakePrefect:
    """Fixture providing a fresh fake Prefect API."""
    return FakePrefect()


@pytest.fixture
def client(fake_prefect: FakePrefect):
    """httpx.Client wired to the fake Prefect API.

    Yields:
        Client that is closed after the test
    """
    with fake_prefect.client() as c:
        yield c


@pytest.fixture
def sleep() -> RecordingSleep:
    """Fixture providing a sleep function that does not block."""
    return RecordingSleep()


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Remove PREFECT_* variables and .env lookups from the environment.

    Yields:
        Temporary working directory without a .env file
    """
    for name in (
        "PREFECT_API_URL",
        "PREFECT_API_KEY",
        "PREFECT_ACCOUNT_ID",
        "PREFECT_WORKSPACE_ID",
        "PREFECT_POLL_FREQUENCY",
        "PREFECT_HTTP_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("prefect_trigger.env.find_dotenv", lambda start_path=None: None)
    clear_settings_cache()
    yield tmp_path
    clear_settings_cache()
