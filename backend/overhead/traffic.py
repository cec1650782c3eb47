"""
traffic.py
~~~~~~~~~~
Normalise live-traffic JSON (already fetched by the caller) into
:class:`~overhead.nearby_service.RawAircraftObservation` records.

Two shapes are understood, both using readsb field names:

* a local receiver's ``aircraft.json`` – ``{"aircraft": [ … ]}``
* an adsb.fi / ADSBExchange-style area query – ``{"ac": [ … ]}``

A bare list of entries is accepted too.
"""

from __future__ import annotations

import logging
from typing import Any

from .nearby_service import RawAircraftObservation

LOG = logging.getLogger("traffic")


def _int(value: Any) -> int | None:
    if value is None:
        return None
    if value == "ground":  # readsb reports alt_baro="ground" on the ground
        return 0
    try:
        return int(round(float(value)))
    except (TypeError, ValueError, OverflowError):
        return None


def _float(value: Any) -> float | None:
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def observation_from_entry(entry: dict[str, Any]) -> RawAircraftObservation | None:
    """Map one readsb aircraft entry; ``None`` when it has no hex address."""
    icao = str(entry.get("hex") or "").strip()
    if not icao:
        return None

    callsign = entry.get("flight")
    return RawAircraftObservation(
        icao_hex=icao,
        callsign=(callsign.strip() or None) if isinstance(callsign, str) else None,
        altitude=_int(entry.get("alt_baro", entry.get("alt_geom"))),
        ground_speed=_int(entry.get("gs")),
        heading=_int(entry.get("track")),
        lat=_float(entry.get("lat")),
        lon=_float(entry.get("lon")),
    )


def observations_from_payload(payload: Any) -> list[RawAircraftObservation]:
    """
    Return every usable observation in *payload*.

    Raises:
        ValueError: *payload* is neither a list nor an object carrying an
            ``aircraft`` / ``ac`` list.
    """
    if isinstance(payload, dict):
        entries = payload.get("aircraft", payload.get("ac"))
    else:
        entries = payload
    if not isinstance(entries, list):
        raise ValueError("traffic payload must contain an 'aircraft' or 'ac' list")

    out: list[RawAircraftObservation] = []
    for entry in entries:
        obs = observation_from_entry(entry) if isinstance(entry, dict) else None
        if obs is None:
            LOG.debug("[traffic] skipping entry without hex: %r", entry)
            continue
        out.append(obs)
    return out


__all__ = ["observation_from_entry", "observations_from_payload"]
