import json

import httpx
import pytest

from qmd_verify.application.domain import (
    ComparisonResponse,
    ComparisonResult,
    DependencyOutcome,
)
from qmd_verify.infrastructure.api_client import HttpComparisonClient
from qmd_verify.infrastructure.polling import JobPoller

BASE_URL = "http://qmd-check.test"


class FakeClock:
    """A monotonic clock that only moves when something sleeps on it."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def poller(clock) -> JobPoller:
    return JobPoller(sleep=clock.sleep, clock=clock)


@pytest.fixture
def make_result():
    """Factory for ComparisonResult rows with sensible defaults."""

    def _make(device="rmpp", version="3.22.4.2", compatible=True, deps=None,
              error_detail=None):
        dependency_results = None
        if deps is not None:
            dependency_results = {
                name: DependencyOutcome(status="ok") for name in deps
            }
        return ComparisonResult(
            hashtable=f"{version}-{device}",
            os_version=version,
            device=device,
            compatible=compatible,
            error_detail=error_detail,
            dependency_results=dependency_results,
        )

    return _make


@pytest.fixture
def sample_response(make_result) -> ComparisonResponse:
    """Two devices across three versions, with one failure on rm1."""
    compatible = (
        make_result("rmpp", "3.22.4.2"),
        make_result("rmppm", "3.22.4.2"),
        make_result("rmpp", "3.21.0.79"),
        make_result("rm2", "3.20.0.92"),
    )
    incompatible = (
        make_result("rm1", "3.22.4.2", compatible=False,
                    error_detail="Hash not found"),
        make_result("rm1", "3.21.0.79", compatible=False),
    )
    return ComparisonResponse(
        compatible=compatible,
        incompatible=incompatible,
        total_checked=6,
        mode="hashtable",
    )


def result_json(device="rmpp", version="3.22.4.2", compatible=True, **extra):
    row = {
        "hashtable": f"{version}-{device}",
        "os_version": version,
        "device": device,
        "compatible": compatible,
        "validation_mode": "hashtable",
    }
    row.update(extra)
    return row


def response_json(compatible=(), incompatible=()):
    return {
        "compatible": list(compatible),
        "incompatible": list(incompatible),
        "total_checked": len(compatible) + len(incompatible),
        "mode": "hashtable",
    }


def reply(status_code, payload=None) -> httpx.Response:
    """Builds a fresh response from a JSON-able payload or raw bytes."""
    if isinstance(payload, bytes):
        return httpx.Response(status_code, content=payload)
    if payload is None:
        return httpx.Response(status_code)
    return httpx.Response(status_code, content=json.dumps(payload).encode())


class FakeServer:
    """
    A scripted qmd-check server for httpx.MockTransport.

    Replies are (status, payload) pairs. ``submit`` answers POST
    /api/compare; ``polls`` is consumed one entry per GET on the results
    endpoint, the last entry being repeated forever.
    """

    def __init__(self, submit=(200, {"jobId": "job-1"}), polls=()):
        self.submit = submit
        self.polls = list(polls)
        self.routes = {}
        self.requests = []

    @property
    def poll_count(self) -> int:
        return sum(
            1 for r in self.requests if r.url.path.startswith("/api/results/")
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/api/compare" and request.method == "POST":
            return reply(*self.submit)
        if path.startswith("/api/results/") and request.method == "GET":
            if len(self.polls) > 1:
                return reply(*self.polls.pop(0))
            return reply(*self.polls[0])
        if path in self.routes:
            return reply(*self.routes[path])
        return reply(404, {"error": f"no route {path}"})


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def api_client(server, poller):
    with httpx.Client(transport=httpx.MockTransport(server)) as client:
        yield HttpComparisonClient(client, BASE_URL, poller)
