"""
nearby_service.py
~~~~~~~~~~~~~~~~~
Turn one batch of raw aircraft observations into **described aircraft near
the user**.

Flow
----
1. Drop every observation outside the search radius (or without a usable
   position).
2. Resolve each survivor's ICAO address concurrently through
   :class:`~overhead.aircraft_db.AircraftDb` – at most *max_concurrency*
   lookups in flight.
3. Translate the type code with the
   :class:`~overhead.type_index.TypeDescriptionIndex`.
4. Wait for **all** of them and return the batch.

A failed lookup never removes an aircraft from the batch: it comes back as
``"Unknown aircraft"``. Each task builds and returns its own record; the
list is only assembled once every task is done.

Cancellation
------------
:class:`SearchSession` keeps at most one search running. Starting a new one
cancels the old, and the old caller gets :class:`SearchSuperseded` instead of
(stale) results.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import Any, Protocol, TypedDict

from .aircraft_db import InvalidAddress, MetadataRecord
from .constants import MAX_IN_FLIGHT, UNKNOWN_AIRCRAFT
from .geo import (
    Coordinate,
    InvalidCoordinate,
    check_radius,
    distance_km,
    is_within_radius,
    validate,
)
from .type_index import TypeDescriptionIndex

LOG = logging.getLogger("nearby_service")


# ── typing ───────────────────────────────────────────────────────────────
class RawAircraftObservation(TypedDict, total=False):
    icao_hex: str
    callsign: str | None
    altitude: int | None
    ground_speed: int | None
    heading: int | None
    lat: float | None
    lon: float | None


class ResolvedAircraftRecord(RawAircraftObservation, total=False):
    aircraft_type_code: str | None
    registration: str | None
    description: str
    distance_km: float


class Resolver(Protocol):
    async def resolve(self, icao_hex: str) -> MetadataRecord | None: ...


class SearchSuperseded(Exception):
    """A newer search on the same session replaced this one."""


# ── filtering ────────────────────────────────────────────────────────────
def filter_in_range(
    candidates: Iterable[RawAircraftObservation],
    origin: Coordinate,
    radius_km: float,
) -> list[tuple[RawAircraftObservation, float]]:
    """
    Return ``(observation, distance_km)`` for every candidate within
    *radius_km* of *origin* (inclusive).

    Candidates without a position are skipped; candidates with an
    out-of-range position are logged and skipped. *origin* and *radius_km*
    themselves must be valid (InvalidCoordinate otherwise).
    """
    origin = validate(origin)
    radius_km = check_radius(radius_km)

    survivors: list[tuple[RawAircraftObservation, float]] = []
    for obs in candidates:
        lat, lon = obs.get("lat"), obs.get("lon")
        if lat is None or lon is None:
            LOG.debug("[filter] %s has no position", obs.get("icao_hex"))
            continue
        position = Coordinate(lat, lon)
        try:
            if not is_within_radius(origin, position, radius_km):
                continue
        except InvalidCoordinate as exc:
            LOG.warning("[filter] dropping %s: %s", obs.get("icao_hex"), exc)
            continue
        survivors.append((obs, distance_km(origin, position)))
    return survivors


# ── resolution ───────────────────────────────────────────────────────────
async def _resolve_one(
    obs: RawAircraftObservation,
    dist: float,
    db: Resolver,
    index: TypeDescriptionIndex,
    gate: asyncio.Semaphore,
) -> ResolvedAircraftRecord:
    meta: MetadataRecord | None = None
    icao = obs.get("icao_hex", "")
    try:
        async with gate:
            meta = await db.resolve(icao)
    except InvalidAddress as exc:
        LOG.warning("[resolve] %s", exc)
    except Exception as exc:  # noqa: BLE001 – one aircraft must not sink the batch
        LOG.error("[resolve] %s failed: %s", icao, exc, exc_info=True)

    type_code = meta.get("type_code") if meta else None
    record = ResolvedAircraftRecord(**obs)  # type: ignore[typeddict-item]
    record["aircraft_type_code"] = type_code
    record["registration"] = meta.get("registration") if meta else None
    record["description"] = index.describe(type_code)
    record["distance_km"] = dist
    return record


async def resolve_all(
    candidates: Iterable[RawAircraftObservation],
    origin: Coordinate,
    radius_km: float,
    *,
    db: Resolver,
    index: TypeDescriptionIndex,
    max_concurrency: int = MAX_IN_FLIGHT,
) -> list[ResolvedAircraftRecord]:
    """
    Filter *candidates* by distance and describe every survivor.

    Args:
        candidates:      Observations from the traffic source.
        origin:          User position.
        radius_km:       Search radius, inclusive.
        db:              Address resolver (normally an AircraftDb).
        index:           Type code → description index.
        max_concurrency: Upper bound of lookups in flight.

    Returns:
        One record per in-range candidate – no more, no less – each with a
        non-empty ``description``.
    """
    if max_concurrency < 1:
        raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")

    survivors = filter_in_range(candidates, origin, radius_km)
    if not survivors:
        return []

    gate = asyncio.Semaphore(max_concurrency)
    results = await asyncio.gather(
        *(_resolve_one(obs, dist, db, index, gate) for obs, dist in survivors)
    )
    unknown = sum(1 for r in results if r["description"] == UNKNOWN_AIRCRAFT)
    LOG.info(
        "[batch] %d in range, %d identified, %d unknown",
        len(results),
        len(results) - unknown,
        unknown,
    )
    return list(results)


class SearchSession:
    """One user's searches: a new search supersedes the one still running."""

    def __init__(self) -> None:
        self._task: asyncio.Task[list[ResolvedAircraftRecord]] | None = None
        self._generation = 0

    @property
    def busy(self) -> bool:
        return self._task is not None and not self._task.done()

    def cancel(self) -> None:
        """Abandon the running search, if any."""
        self._generation += 1
        if self.busy:
            self._task.cancel()  # type: ignore[union-attr]

    async def search(self, *args: Any, **kwargs: Any) -> list[ResolvedAircraftRecord]:
        """Run :pyfunc:`resolve_all` (same arguments) as this session's search."""
        self.cancel()
        generation = self._generation
        task = asyncio.create_task(resolve_all(*args, **kwargs))
        self._task = task

        try:
            result = await task
        except asyncio.CancelledError:
            if generation != self._generation and task.cancelled():
                raise SearchSuperseded() from None
            raise

        if generation != self._generation:
            raise SearchSuperseded()
        return result


__all__ = [
    "RawAircraftObservation",
    "ResolvedAircraftRecord",
    "SearchSession",
    "SearchSuperseded",
    "filter_in_range",
    "resolve_all",
]
