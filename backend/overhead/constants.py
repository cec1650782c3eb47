# backend/overhead/constants.py

"""
Global constants and environment-driven settings shared across modules.

Every setting can be overridden through an environment variable (a ``.env``
file is honoured when the app starts through :pyfile:`main.py`).
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Final

USER_AGENT: Final = "planes-overhead/0.2 (+https://github.com/planes-overhead)"

#: Placeholder used whenever an aircraft cannot be identified
UNKNOWN_AIRCRAFT: Final = "Unknown aircraft"

R_EARTH_KM: Final = 6_371.0
KM_PER_MILE: Final = 1.609344
#: Rough miles-per-degree factor used for bounding-box queries
MILES_PER_DEGREE: Final = 69.0

# ── Remote aircraft database (tar1090/dump1090 "db" layout) ──────────────
AIRCRAFT_DB_URL: str = os.getenv("AIRCRAFT_DB_URL", "http://localhost/dump1090-fa")
AIRCRAFT_DB_TIMEOUT: float = float(os.getenv("AIRCRAFT_DB_TIMEOUT", "8"))
AIRCRAFT_DB_CACHE_TTL: int = int(os.getenv("AIRCRAFT_DB_CACHE_TTL", "300"))

#: Upper bound of simultaneous resolutions for one batch
MAX_IN_FLIGHT: int = int(os.getenv("MAX_IN_FLIGHT", "16"))

# ── Static datasets ──────────────────────────────────────────────────────
DATA_DIR: Final = Path(__file__).resolve().parent / "data"
MANUFACTURERS_FILE: Path = Path(
    os.getenv("MANUFACTURERS_FILE", str(DATA_DIR / "manufacturers.json"))
).expanduser()
AIRCRAFT_TYPES_FILE: Path = Path(
    os.getenv("AIRCRAFT_TYPES_FILE", str(DATA_DIR / "aircraft-types.json"))
).expanduser()

# ── HTTP surface ─────────────────────────────────────────────────────────
DEFAULT_RADIUS_MILES: Final = 5.0
ALLOWED_ORIGINS: list[str] = [
    o.strip()
    for o in os.getenv(
        "ALLOWED_ORIGINS", "http://localhost:8090,http://127.0.0.1:8090"
    ).split(",")
    if o.strip()
]
NEARBY_RATE_LIMIT: str = os.getenv("NEARBY_RATE_LIMIT", "30/minute")
