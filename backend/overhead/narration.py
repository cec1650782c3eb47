"""
narration.py
~~~~~~~~~~~~
Plain-text sentences for list rows and text-to-speech.

    summary_line(rec) -> "Boeing 737-800 - Flight level 350, Speed 450 knots"
    speech_text(rec)  -> "There is a Boeing 737-800 flying at flight level 350
                          and a speed of 450 knots."
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .constants import UNKNOWN_AIRCRAFT


def _flight_level(rec: Mapping[str, Any]) -> int:
    # altitude is in feet; FL = hundreds of feet
    return int(rec.get("altitude") or 0) // 100


def _description(rec: Mapping[str, Any]) -> str:
    return (rec.get("description") or UNKNOWN_AIRCRAFT).strip() or UNKNOWN_AIRCRAFT


def summary_line(rec: Mapping[str, Any]) -> str:
    line = (
        f"{_description(rec)} - Flight level {_flight_level(rec)}, "
        f"Speed {int(rec.get('ground_speed') or 0)} knots"
    )
    callsign = (rec.get("callsign") or "").strip()
    return f"{line}, Callsign {callsign}" if callsign else line


def speech_text(rec: Mapping[str, Any]) -> str:
    return (
        f"There is a {_description(rec)} flying at flight level "
        f"{_flight_level(rec)} and a speed of "
        f"{int(rec.get('ground_speed') or 0)} knots."
    )


__all__ = ["speech_text", "summary_line"]
