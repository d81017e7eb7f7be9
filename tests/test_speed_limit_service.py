"""End-to-end tests for SpeedLimitService with a fake TomTom session."""

from __future__ import annotations

import logging
from typing import Any

import pytest

from track_speed_limits.models import BatchResolution
from track_speed_limits.services import SpeedLimitService, SpeedLimitServiceConfig
from track_speed_limits.services import speed_limit_service
from track_speed_limits.tomtom_client import SnapToRoadsClient

from conftest import DAY_MS, FakeResp, make_track, snap_response

API_KEY = "test-key"


def _service(cache, session, **kwargs: Any) -> SpeedLimitService:
    config = SpeedLimitServiceConfig(
        cache=cache,
        client=SnapToRoadsClient(session),
        prune_on_start=kwargs.pop("prune_on_start", False),
        **kwargs,
    )
    return SpeedLimitService(config)


def test_identical_points_resolve_from_single_projected_point(
    memory_cache, fake_session_factory
) -> None:
    points = make_track([(52.370216, 4.895168)] * 25)
    session = fake_session_factory(
        FakeResp(200, snap_response([{"value": 50, "unit": "KMPH"}], [0]))
    )
    service = _service(memory_cache, session)

    limits = service.resolve(points, API_KEY)

    assert limits == [50] * 25
    assert len(session.calls) == 1
    sent = session.calls[0]["json"]["points"]
    assert len(sent) == 4  # sampled indices 0, 10, 20, 24


def test_second_run_is_served_from_cache(memory_cache, fake_session_factory) -> None:
    points = make_track([(52.370216, 4.895168)] * 25)
    session = fake_session_factory(
        FakeResp(200, snap_response([{"value": 50, "unit": "KMPH"}], [0]))
    )
    service = _service(memory_cache, session)
    service.resolve(points, API_KEY)

    limits = service.resolve(points, API_KEY)

    assert limits == [50] * 25
    assert len(session.calls) == 1


def test_only_cache_misses_are_sent(memory_cache, fake_session_factory) -> None:
    coords = [(52.0 + i * 1e-3, 4.0) for i in range(21)]
    points = make_track(coords)
    memory_cache.store(*coords[0], 30)
    session = fake_session_factory(
        FakeResp(200, snap_response([{"value": 60, "unit": "MPH"}], [0, 0]))
    )
    service = _service(memory_cache, session)

    limits = service.resolve(points, API_KEY)

    sent = session.calls[0]["json"]["points"]
    assert [f["geometry"]["coordinates"] for f in sent] == [
        [4.0, coords[10][0]],
        [4.0, coords[20][0]],
    ]
    assert limits == [30] * 10 + [97] * 11


def test_empty_track_short_circuits(memory_cache, fake_session_factory) -> None:
    session = fake_session_factory()
    assert _service(memory_cache, session).resolve([], API_KEY) == []
    assert session.calls == []


@pytest.mark.parametrize("key", ["", None])
def test_missing_key_short_circuits(memory_cache, fake_session_factory, key) -> None:
    session = fake_session_factory()
    points = make_track([(52.0, 4.0)] * 3)
    assert _service(memory_cache, session).resolve(points, key) == []
    assert session.calls == []


def test_failed_batch_is_skipped_and_length_preserved(
    memory_cache, fake_session_factory, caplog
) -> None:
    # Indices 0-10 sit ~111 km south of 11-20, forcing two batches.
    coords = [(10.0, 10.0)] * 11 + [(11.0, 10.0)] * 10
    points = make_track(coords)
    session = fake_session_factory(
        FakeResp(500, {"errorText": "Internal error"}),
        FakeResp(200, snap_response([{"value": 80, "unit": "KMPH"}], [0])),
    )
    service = _service(memory_cache, session)

    with caplog.at_level(logging.ERROR):
        limits = service.resolve(points, API_KEY)

    assert len(session.calls) == 2
    assert limits == [80] * 21
    assert "status 500" in caplog.text


def test_all_batches_failing_yields_all_none(memory_cache, fake_session_factory):
    points = make_track([(52.0, 4.0)] * 12)
    session = fake_session_factory(FakeResp(503, None, text="unavailable"))
    limits = _service(memory_cache, session).resolve(points, API_KEY)
    assert limits == [None] * 12


def test_non_finite_point_is_skipped_not_fatal(
    memory_cache, fake_session_factory
) -> None:
    coords = [(52.0, 4.0)] * 16
    coords[10] = (float("inf"), 4.0)
    session = fake_session_factory(
        FakeResp(200, snap_response([{"value": 50, "unit": "KMPH"}], [0, 0]))
    )

    limits = _service(memory_cache, session).resolve(make_track(coords), API_KEY)

    assert limits == [50] * 16
    assert len(session.calls[0]["json"]["points"]) == 2


def test_unexpected_client_error_is_contained(memory_cache, caplog) -> None:
    class ExplodingClient:
        cache = None

        def resolve_batch(self, batch, points, api_key) -> BatchResolution:
            raise RuntimeError("boom")

    config = SpeedLimitServiceConfig(
        cache=memory_cache, client=ExplodingClient(), prune_on_start=False
    )
    service = SpeedLimitService(config)
    points = make_track([(52.0, 4.0)] * 5)

    with caplog.at_level(logging.WARNING):
        limits = service.resolve(points, API_KEY)

    assert limits == [None] * 5
    assert "suppressed 1 speed limit batch errors" in caplog.text.lower()


def test_service_shares_its_cache_with_the_client(memory_cache, fake_session_factory):
    client = SnapToRoadsClient(fake_session_factory())
    service = SpeedLimitService(
        SpeedLimitServiceConfig(cache=memory_cache, client=client, prune_on_start=False)
    )
    assert service.client.cache is memory_cache


def test_prune_runs_when_service_starts(memory_cache, memory_store, clock) -> None:
    memory_cache.store(52.0, 4.0, 50)
    clock.advance(31 * DAY_MS)

    _service(memory_cache, None, prune_on_start=False)
    assert len(memory_store) == 1

    _service(memory_cache, None, prune_on_start=True)
    assert len(memory_store) == 0


def test_resolve_speed_limits_uses_default_service(
    monkeypatch, memory_cache, fake_session_factory
) -> None:
    session = fake_session_factory(
        FakeResp(200, snap_response([{"value": 50, "unit": "KMPH"}], [0]))
    )
    monkeypatch.setattr(
        speed_limit_service, "_default_service", _service(memory_cache, session)
    )
    points = make_track([(52.0, 4.0)] * 3)

    assert speed_limit_service.resolve_speed_limits(points, API_KEY) == [50, 50, 50]


def test_resolve_speed_limits_falls_back_to_configured_key(
    monkeypatch, memory_cache, fake_session_factory
) -> None:
    session = fake_session_factory()
    monkeypatch.setattr(
        speed_limit_service, "_default_service", _service(memory_cache, session)
    )
    monkeypatch.setattr(speed_limit_service, "TOMTOM_API_KEY", "")

    assert speed_limit_service.resolve_speed_limits(make_track([(52.0, 4.0)])) == []
    assert session.calls == []
