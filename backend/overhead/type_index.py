"""
type_index.py
~~~~~~~~~~~~~
Join the static **manufacturer** and **aircraft-type** tables into a single
read-only ``type code → "Manufacturer Model"`` index.

Key points
----------
* The join is a *left* join: a type whose manufacturer id is unknown still
  gets an entry, described as ``" " + model`` (empty manufacturer, the leading
  space is kept so descriptions stay byte-identical to the app's tables).
* Duplicate keys are simply overwritten – last record wins.
* A malformed record is logged and skipped; the build never fails because of
  one bad row.
* Failing to *read* a dataset is the one fatal error of the whole service –
  :pyfunc:`load_index` raises :class:`DatasetError`.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any, TypedDict

from .constants import UNKNOWN_AIRCRAFT

LOG = logging.getLogger("type_index")


class ManufacturerRecord(TypedDict):
    id: str
    name: str


class AircraftTypeRecord(TypedDict):
    icaoCode: str
    manufacturer: str
    name: str


class DatasetError(RuntimeError):
    """A static dataset could not be read or is not a JSON array."""


# ── Index ────────────────────────────────────────────────────────────────
class TypeDescriptionIndex(Mapping[str, str]):
    """Immutable mapping of ICAO type code to descriptive name.

    Built once, then shared by every concurrent resolution without locking.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Mapping[str, str] | None = None) -> None:
        self._entries = MappingProxyType(dict(entries or {}))

    def __getitem__(self, code: str) -> str:
        return self._entries[code]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"TypeDescriptionIndex({len(self)} types)"

    def describe(self, type_code: str | None) -> str:
        """Return the description for *type_code* or ``"Unknown aircraft"``."""
        if not type_code:
            return UNKNOWN_AIRCRAFT
        return self._entries.get(type_code) or UNKNOWN_AIRCRAFT


# ── Builder ──────────────────────────────────────────────────────────────
def _field(record: Any, key: str) -> str:
    """Return ``record[key]`` as ``str`` or raise ``ValueError``."""
    if not isinstance(record, Mapping):
        raise ValueError(f"expected an object, got {type(record).__name__}")
    value = record.get(key)
    if not isinstance(value, str):
        raise ValueError(f"missing or non-string {key!r}")
    return value


def build(
    manufacturers: Iterable[ManufacturerRecord | Any],
    types: Iterable[AircraftTypeRecord | Any],
) -> TypeDescriptionIndex:
    """
    Left-join *types* onto *manufacturers* and return the description index.

    Args:
        manufacturers: ``{"id", "name"}`` records.
        types:         ``{"icaoCode", "manufacturer", "name"}`` records.

    Returns:
        A read-only :class:`TypeDescriptionIndex`.
    """
    names: dict[str, str] = {}
    for pos, rec in enumerate(manufacturers):
        try:
            names[_field(rec, "id")] = _field(rec, "name")
        except ValueError as exc:
            LOG.warning("[build] skipping manufacturer #%d: %s", pos, exc)

    entries: dict[str, str] = {}
    for pos, rec in enumerate(types):
        try:
            code = _field(rec, "icaoCode")
            maker_id = _field(rec, "manufacturer")
            model = _field(rec, "name")
        except ValueError as exc:
            LOG.warning("[build] skipping aircraft type #%d: %s", pos, exc)
            continue
        entries[code] = names.get(maker_id, "") + " " + model

    LOG.info(
        "[build] %d manufacturers, %d aircraft types indexed", len(names), len(entries)
    )
    return TypeDescriptionIndex(entries)


# ── Loading ──────────────────────────────────────────────────────────────
def load_json_dataset(path: Path | str) -> list[Any]:
    """Read one static dataset (a JSON array) from *path*."""
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise DatasetError(f"cannot load {path}: {exc}") from exc
    if not isinstance(data, list):
        raise DatasetError(f"{path}: expected a JSON array, got {type(data).__name__}")
    return data


def load_index(manufacturers_path: Path | str, types_path: Path | str) -> TypeDescriptionIndex:
    """Load both datasets from disk and build the index (fatal on I/O errors)."""
    return build(load_json_dataset(manufacturers_path), load_json_dataset(types_path))


__all__ = [
    "AircraftTypeRecord",
    "DatasetError",
    "ManufacturerRecord",
    "TypeDescriptionIndex",
    "build",
    "load_index",
    "load_json_dataset",
]
