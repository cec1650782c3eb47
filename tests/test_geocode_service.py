"""
tests/test_geocode_service.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Nominatim lookups for text origins – the rate-limited geopy callable is
replaced so no request ever leaves the machine.
"""

from __future__ import annotations

from types import SimpleNamespace

import pytest
from geopy.exc import GeocoderTimedOut

from overhead import geocode_service as gs
from overhead.geo import Coordinate


@pytest.fixture(autouse=True)
def _clear_cache(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(gs, "_geocode_cache", {}, raising=True)


def _patch(monkeypatch: pytest.MonkeyPatch, result) -> list[str]:
    calls: list[str] = []

    def _fake(query: str, **_kwargs):
        calls.append(query)
        if isinstance(result, Exception):
            raise result
        return result

    monkeypatch.setattr(gs, "_geocode_raw", _fake, raising=True)
    return calls


def test_hit(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch(monkeypatch, SimpleNamespace(latitude=47.45, longitude=-122.30))
    assert gs.geocode_origin("Seattle Tacoma Airport") == Coordinate(47.45, -122.30)


def test_hits_and_misses_are_cached(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = _patch(monkeypatch, None)

    assert gs.geocode_origin("Atlantis") is None
    assert gs.geocode_origin("  ATLANTIS ") is None
    assert calls == ["atlantis"]


def test_errors_yield_none_and_are_not_cached(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = _patch(monkeypatch, GeocoderTimedOut("slow"))

    assert gs.geocode_origin("Boston") is None
    assert gs.geocode_origin("Boston") is None
    assert len(calls) == 2


def test_blank_place(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = _patch(monkeypatch, None)
    assert gs.geocode_origin("   ") is None
    assert calls == []


async def test_async_wrapper(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch(monkeypatch, SimpleNamespace(latitude=64.13, longitude=-21.94))
    assert await gs.geocode_origin_async("Reykjavik") == Coordinate(64.13, -21.94)
