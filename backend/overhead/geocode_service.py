"""
geocode_service.py
~~~~~~~~~~~~~~~~~~
Turn a free-text place ("Boston Logan", "Reykjavik") into a search origin
with **Nominatim** (OpenStreetMap), for callers that cannot send a GPS fix.

* Nominatim allows one request per second – enforced with geopy's
  :class:`~geopy.extra.rate_limiter.RateLimiter`.
* Results (hits *and* misses) are memoised for 15 minutes per cleaned query.
* The geopy call is blocking; :pyfunc:`geocode_origin_async` runs it in a
  worker thread.
"""

from __future__ import annotations

import asyncio
import datetime as dt
import logging
from typing import Final

from dateutil import tz
from geopy.exc import GeopyError
from geopy.extra.rate_limiter import RateLimiter
from geopy.geocoders import Nominatim

from .constants import USER_AGENT
from .geo import Coordinate

UTC: Final = tz.UTC
LOG = logging.getLogger("geocode_service")

_nominatim = Nominatim(user_agent=USER_AGENT)
_geocode_raw = RateLimiter(_nominatim.geocode, min_delay_seconds=1)

# ── Geocode result cache ─────────────────────────────────────────────────
_geocode_cache: dict[str, tuple[dt.datetime, Coordinate | None]] = {}
GEOCODE_CACHE_TTL_S: Final = 900


def _clean(query: str) -> str:
    return " ".join(query.split()).lower()


def geocode_origin(place: str, timeout: int = 10) -> Coordinate | None:
    """
    Return the coordinate of *place*, or ``None`` when Nominatim has no match
    or cannot be reached.
    """
    key = _clean(place)
    if not key:
        return None

    cached = _geocode_cache.get(key)
    if cached and (dt.datetime.now(UTC) - cached[0]).total_seconds() < GEOCODE_CACHE_TTL_S:
        LOG.debug("Cache hit for: %r", place)
        return cached[1]

    try:
        location = _geocode_raw(key, timeout=timeout)
    except GeopyError as exc:
        LOG.warning("[geocode] %r failed: %s", place, exc)
        return None  # errors are not cached

    coord = Coordinate(location.latitude, location.longitude) if location else None
    if coord is None:
        LOG.info("[geocode] no match for %r", place)
    _geocode_cache[key] = (dt.datetime.now(UTC), coord)
    return coord


async def geocode_origin_async(place: str, timeout: int = 10) -> Coordinate | None:
    return await asyncio.to_thread(geocode_origin, place, timeout)


__all__ = ["geocode_origin", "geocode_origin_async"]
