"""Global pytest fixtures & helpers.

Adds project root to path and provides reusable fakes for the TomTom session,
a controllable clock and in-memory caches so no test touches the network.
"""
from __future__ import annotations

import json
import os
import sys
from typing import Any, Callable, Dict, List, Optional

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from track_speed_limits.cache_store import MemoryKeyValueStore, SpeedLimitCache
from track_speed_limits.models import TrackPoint

DAY_MS = 24 * 60 * 60 * 1000
BASE_TIME_MS = 1_760_000_000_000


class FakeResp:
    """Minimal fake response matching needed parts of requests.Response."""

    def __init__(self, status_code=200, data=None, text=None):
        self.status_code = status_code
        self._data = data
        self._text = text
        self.url = "https://api.tomtom.com/snapToRoads/1"

    def json(self):
        if self._data is None:
            raise ValueError("No JSON object could be decoded")
        return self._data

    @property
    def text(self):
        if self._text is not None:
            return self._text
        return json.dumps(self._data)


class FakeSession:
    """Records POST calls and replays queued responses (or raises queued errors)."""

    def __init__(self, responses: Optional[List[Any]] = None) -> None:
        self.responses: List[Any] = list(responses or [])
        self.calls: List[Dict[str, Any]] = []

    def post(self, url, params=None, json=None, timeout=None):
        self.calls.append({"url": url, "params": params, "json": json, "timeout": timeout})
        if not self.responses:
            raise AssertionError("unexpected TomTom request")
        outcome = self.responses.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeClock:
    def __init__(self, now_ms: int = BASE_TIME_MS) -> None:
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


def snap_response(limits: List[Optional[Dict[str, Any]]], route_indices: List[int]):
    """Build a Snap to Roads body: one route segment per ``limits`` entry."""

    route = []
    for limit in limits:
        props: Dict[str, Any] = {}
        if limit is not None:
            props["speedLimits"] = limit
        route.append({"type": "Feature", "properties": props})
    projected = [
        {"type": "Feature", "properties": {"routeIndex": idx}} for idx in route_indices
    ]
    return {"route": route, "projectedPoints": projected}


def make_track(coords: List[tuple[float, float]]) -> List[TrackPoint]:
    return [
        TrackPoint(latitude=lat, longitude=lng, timestamp=i)
        for i, (lat, lng) in enumerate(coords)
    ]


# --- Fixtures --------------------------------------------------------
@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def memory_cache(memory_store, clock) -> SpeedLimitCache:
    return SpeedLimitCache(memory_store, clock=clock)


@pytest.fixture
def fake_session_factory() -> Callable[..., FakeSession]:
    def _make(*responses: Any) -> FakeSession:
        return FakeSession(list(responses))

    return _make
