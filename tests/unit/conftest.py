"""Unit-test fixtures for the importer's remote and sync layers."""

from __future__ import annotations

import dataclasses
import datetime as dt
import json
import typing as typ

import httpx
import pytest
import pytest_asyncio

from halo_importer.config import ImporterConfig

if typ.TYPE_CHECKING:
    import collections.abc as cabc

BASE_URL = "https://halo.example.test"
REPORT_URL = f"{BASE_URL}/api/ReportData/1"
TOKEN_URL = f"{BASE_URL}/auth/token"
ACTIONS_URL = f"{BASE_URL}/api/actions"
CUSTOM_FIELD_ID = 214


def make_config(**overrides: object) -> ImporterConfig:
    """Return a configuration pointing at the test Halo instance."""
    values: dict[str, typ.Any] = {
        "base_resource_url": httpx.URL(BASE_URL),
        "client_id": "importer",
        "client_secret": "s3cret",
        "action_ids_resources": (httpx.URL(REPORT_URL),),
        "action_id_custom_field_id": CUSTOM_FIELD_ID,
        "submit_delay_s": 0.0,
        "gateway_cooldown_s": 0.0,
    }
    values.update(overrides)
    return ImporterConfig(**values)


@pytest.fixture
def importer_config() -> ImporterConfig:
    """Return the default test configuration."""
    return make_config()


def token_payload(value: str = "tok-1", expires_in: int = 3600) -> dict[str, object]:
    """Return a successful identity endpoint body."""
    return {"access_token": value, "token_type": "Bearer", "expires_in": expires_in}


@dataclasses.dataclass(slots=True)
class FakeClock:
    """Adjustable aware UTC clock."""

    now: dt.datetime = dataclasses.field(
        default_factory=lambda: dt.datetime(2024, 1, 5, 12, 0, tzinfo=dt.UTC)
    )

    def __call__(self) -> dt.datetime:
        """Return the current fake time."""
        return self.now

    def advance(self, seconds: float) -> None:
        """Move the clock forward."""
        self.now += dt.timedelta(seconds=seconds)


@dataclasses.dataclass(slots=True)
class RecordingSleep:
    """Awaitable sleep replacement that records requested delays."""

    delays: list[float] = dataclasses.field(default_factory=list)

    async def __call__(self, seconds: float) -> None:
        """Record ``seconds`` without waiting."""
        self.delays.append(seconds)


Responder = typ.Callable[[httpx.Request], httpx.Response]


@dataclasses.dataclass(slots=True)
class HaloStub:
    """Scriptable stand-in for the Halo API.

    Each route holds a queue of responses; the last response repeats once
    the queue is exhausted. Every request is recorded.
    """

    routes: dict[tuple[str, str], list[httpx.Response | Responder]] = (
        dataclasses.field(default_factory=dict)
    )
    requests: list[httpx.Request] = dataclasses.field(default_factory=list)

    def add(
        self, method: str, url: str, *responses: httpx.Response | Responder
    ) -> None:
        """Queue responses for ``method`` requests to ``url``."""
        self.routes.setdefault((method, url), []).extend(responses)

    def calls(self, method: str, url: str) -> list[httpx.Request]:
        """Return the recorded requests for one route."""
        return [
            request
            for request in self.requests
            if request.method == method and str(request.url) == url
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        """Serve ``request`` from the queued responses."""
        self.requests.append(request)
        queue = self.routes.get((request.method, str(request.url)))
        if not queue:
            return httpx.Response(404, text="no route")
        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if callable(response):
            return response(request)
        return response

    def client(self) -> httpx.AsyncClient:
        """Return an HTTP client routed through this stub."""
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def halo() -> HaloStub:
    """Return an empty Halo API stub."""
    return HaloStub()


@pytest_asyncio.fixture
async def halo_client(halo: HaloStub) -> cabc.AsyncIterator[httpx.AsyncClient]:
    """Yield an HTTP client bound to the ``halo`` stub."""
    client = halo.client()
    try:
        yield client
    finally:
        await client.aclose()


def json_body(request: httpx.Request) -> typ.Any:  # noqa: ANN401
    """Decode a recorded request body as JSON."""
    return json.loads(request.content.decode("utf-8"))


class RecordingLogger:
    """Collects femtologging-style log calls for assertions."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []

    def log(
        self,
        level: str,
        message: str,
        /,
        *,
        exc_info: object | None = None,
        stack_info: bool = False,
    ) -> str:
        del exc_info, stack_info
        self.calls.append((level, message))
        return message

    def messages(self, marker: str) -> list[str]:
        """Return logged messages containing ``marker``."""
        return [message for _, message in self.calls if marker in message]


def capture_module_logger(
    monkeypatch: pytest.MonkeyPatch, module: str
) -> RecordingLogger:
    """Replace ``module.logger`` with a recording logger."""
    recorder = RecordingLogger()
    monkeypatch.setattr(f"{module}.logger", recorder)
    return recorder
