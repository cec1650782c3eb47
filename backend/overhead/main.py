"""
main.py – FastAPI entry point
=============================

Routes
------
* ``GET  /healthz``               – liveness probe.
* ``GET  /types/{code}.json``     – description of one ICAO type code.
* ``GET  /aircraft/{icao}.json``  – database record of one hex address.
* ``POST /nearby.json``           – describe every aircraft of a traffic
  batch that lies within the requested radius.

The two static datasets are loaded once in the lifespan hook; if either is
missing the app refuses to start – there is nothing to describe without them.
"""

from __future__ import annotations

# ─── Std-lib / third-party ────────────────────────────────────────────
import datetime as dt
import logging
import math
import sys
from contextlib import asynccontextmanager
from typing import Any

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

# ---------------------------------------------------------------------
# Environment (before project modules read it)
# ---------------------------------------------------------------------
load_dotenv()

# ─── Project modules ──────────────────────────────────────────────────
from . import constants as C  # noqa: E402
from .aircraft_db import AircraftDb, InvalidAddress, make_client  # noqa: E402
from .geo import (  # noqa: E402
    Coordinate,
    InvalidCoordinate,
    check_radius,
    miles_to_km,
    validate,
)
from .geocode_service import geocode_origin_async  # noqa: E402
from .narration import speech_text, summary_line  # noqa: E402
from .nearby_service import (  # noqa: E402
    RawAircraftObservation,
    SearchSession,
    SearchSuperseded,
    resolve_all,
)
from .traffic import observations_from_payload  # noqa: E402
from .type_index import load_index  # noqa: E402

# ─── Logging ──────────────────────────────────────────────────────────
LOG = logging.getLogger("overhead")

_handler = logging.StreamHandler(sys.stdout)
_handler.setFormatter(logging.Formatter("%(levelname)s:     %(name)s - %(message)s"))
for _name in (
    "overhead",
    "aircraft_db",
    "nearby_service",
    "type_index",
    "traffic",
    "geocode_service",
    "extapi",
):
    logging.getLogger(_name).addHandler(_handler)
    logging.getLogger(_name).setLevel(logging.INFO)

UTC = dt.timezone.utc

limiter = Limiter(key_func=get_remote_address)

INT_FIELDS = ("altitude", "ground_speed", "heading")
POSITION_FIELDS = ("lat", "lon")


# ---------------------------------------------------------------------
# Lifespan – datasets + shared HTTP client
# ---------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):  # noqa: N802 – FastAPI naming style
    """Load the type index once and open the shared database client."""
    app.state.index = load_index(C.MANUFACTURERS_FILE, C.AIRCRAFT_TYPES_FILE)
    LOG.info("[init] %r loaded", app.state.index)

    client = make_client(C.AIRCRAFT_DB_TIMEOUT)
    app.state.db = AircraftDb(client, C.AIRCRAFT_DB_URL, cache_ttl=C.AIRCRAFT_DB_CACHE_TTL)
    app.state.sessions = {}

    yield  # ⇢ application runs here

    for session in app.state.sessions.values():
        session.cancel()
    await client.aclose()


# ---------------------------------------------------------------------
# FastAPI instance & middleware
# ---------------------------------------------------------------------
app = FastAPI(title="Planes Overhead", lifespan=lifespan)
app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    """Return 429 when rate limit is exceeded."""
    return JSONResponse(
        status_code=429,
        content={"detail": "Rate limit exceeded. Try again later."},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=C.ALLOWED_ORIGINS,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------
def _number(body: dict, key: str) -> float | None:
    """Return ``body[key]`` as float (``None`` if absent) or raise 400."""
    value = body.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise HTTPException(status_code=400, detail=f"{key} must be a number")
    if not math.isfinite(value):
        raise HTTPException(status_code=400, detail=f"{key} must be finite")
    return float(value)


async def _origin(body: dict) -> Coordinate:
    lat, lon = _number(body, "lat"), _number(body, "lon")
    if lat is not None and lon is not None:
        try:
            return validate(Coordinate(lat, lon))
        except InvalidCoordinate as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

    place = body.get("place")
    if isinstance(place, str) and place.strip():
        coord = await geocode_origin_async(place)
        if coord is None:
            raise HTTPException(status_code=400, detail=f"unknown place: {place!r}")
        return coord

    raise HTTPException(status_code=400, detail="lat/lon or place required")


def _radius_km(body: dict) -> float:
    radius_km = _number(body, "radius_km")
    if radius_km is None:
        miles = _number(body, "radius_miles")
        radius_km = miles_to_km(C.DEFAULT_RADIUS_MILES if miles is None else miles)
    try:
        return check_radius(radius_km)
    except InvalidCoordinate as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _observation(item: Any) -> RawAircraftObservation:
    """Type-check one posted aircraft; a wrong field type is a 400."""
    if not isinstance(item, dict) or not isinstance(item.get("icao_hex"), str):
        raise HTTPException(status_code=400, detail="each aircraft needs an icao_hex")
    callsign = item.get("callsign")
    if callsign is not None and not isinstance(callsign, str):
        raise HTTPException(status_code=400, detail="callsign must be a string")

    obs = RawAircraftObservation(icao_hex=item["icao_hex"], callsign=callsign)
    for key in INT_FIELDS:
        value = _number(item, key)
        obs[key] = None if value is None else int(round(value))  # type: ignore[literal-required]
    for key in POSITION_FIELDS:
        obs[key] = _number(item, key)  # type: ignore[literal-required]
    return obs


def _observations(body: dict) -> list[RawAircraftObservation]:
    if "payload" in body:
        try:
            return observations_from_payload(body["payload"])
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

    aircraft = body.get("aircraft")
    if not isinstance(aircraft, list):
        raise HTTPException(status_code=400, detail="aircraft list or payload required")
    return [_observation(item) for item in aircraft]


# Health probe --------------------------------------------------------
@app.get("/healthz", response_class=PlainTextResponse)
async def healthz() -> PlainTextResponse:
    """Return HTTP 200 with body “ok” if the app is up."""
    return PlainTextResponse("ok", status_code=200)


# ---------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------
@app.get("/types/{code}.json")
async def type_description(code: str) -> dict[str, str]:
    """Return the manufacturer + model description of an ICAO type code."""
    index = app.state.index
    key = code.strip().upper()
    if key not in index:
        raise HTTPException(status_code=404, detail=f"unknown type code {code!r}")
    return {"code": key, "description": index[key]}


@app.get("/aircraft/{icao}.json")
async def aircraft(icao: str) -> JSONResponse:
    """Resolve a single hex address through the aircraft database."""
    try:
        meta = await app.state.db.resolve(icao)
    except InvalidAddress as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if meta is None:
        raise HTTPException(status_code=404, detail=f"{icao} not in database")

    payload = {**meta, "description": app.state.index.describe(meta.get("type_code"))}
    return JSONResponse(content=jsonable_encoder(payload))


@app.post("/nearby.json")
@limiter.limit(C.NEARBY_RATE_LIMIT)
async def nearby(body: dict, request: Request) -> JSONResponse:
    """
    Describe every aircraft of the posted batch within the search radius.

    Body keys: ``lat``/``lon`` or ``place``; ``radius_km`` or
    ``radius_miles`` (default 5 miles); ``aircraft`` (observation list) or
    ``payload`` (receiver / adsb.fi JSON); optional ``session`` – a newer
    search with the same session id supersedes this one (HTTP 409).
    """
    origin = await _origin(body)
    radius_km = _radius_km(body)
    observations = _observations(body)

    kwargs: dict[str, Any] = {
        "db": app.state.db,
        "index": app.state.index,
        "max_concurrency": C.MAX_IN_FLIGHT,
    }
    session_id = body.get("session")
    if session_id is not None:
        sessions: dict[str, SearchSession] = app.state.sessions
        key = str(session_id)
        session = sessions.setdefault(key, SearchSession())
        try:
            records = await session.search(observations, origin, radius_km, **kwargs)
        except SearchSuperseded:
            raise HTTPException(status_code=409, detail="superseded by a newer search")
        finally:
            # a newer search may still be running on the same session
            if not session.busy and sessions.get(key) is session:
                del sessions[key]
    else:
        records = await resolve_all(observations, origin, radius_km, **kwargs)

    enriched = [
        {**rec, "summary": summary_line(rec), "speech": speech_text(rec)}
        for rec in records
    ]
    payload = {
        "origin": {"lat": origin.lat, "lon": origin.lon},
        "radius_km": radius_km,
        "count": len(enriched),
        "aircraft": enriched,
        "timestamp": dt.datetime.now(UTC).isoformat(),
    }
    return JSONResponse(content=jsonable_encoder(payload))
