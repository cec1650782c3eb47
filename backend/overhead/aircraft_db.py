"""
aircraft_db.py
~~~~~~~~~~~~~~
Resolve an ICAO hex address to its metadata record through the
**prefix-partitioned aircraft database** served by dump1090/tar1090-style
receivers (``<base>/db/<bucket>.json``).

How the database is laid out
----------------------------
* Bucket ``A`` holds the addresses starting with ``A``, keyed by the
  *remaining* characters (``"12345"`` for ``A12345``).
* Dense prefixes are split lazily: bucket ``A`` then lists
  ``"children": ["A1", "A7", …]`` and the ``A1…`` addresses live in
  bucket ``A1`` keyed by four characters, and so on.

The lookup walks down those buckets one level at a time and gives up
(``None``) as soon as a bucket neither holds the key nor declares the next
child. Transport and JSON errors also end in ``None`` – one bad bucket never
aborts the other aircraft of a batch.
"""

from __future__ import annotations

import datetime as dt
import logging
import re
from typing import Any, Final, TypedDict

import httpx
from dateutil import tz

from .api_logging import logged_request_async
from .constants import (
    AIRCRAFT_DB_CACHE_TTL,
    AIRCRAFT_DB_TIMEOUT,
    AIRCRAFT_DB_URL,
    USER_AGENT,
)

UTC: Final = tz.UTC
LOG = logging.getLogger("aircraft_db")

HEX_RE: Final = re.compile(r"[0-9A-F]+")

# Field aliases: tar1090 short keys first, then long-hand names
TYPE_KEYS: Final = ("t", "type")
REG_KEYS: Final = ("r", "registration")
MODEL_KEYS: Final = ("d", "desc")


class InvalidAddress(ValueError):
    """Empty or non-hexadecimal ICAO address."""


class MetadataRecord(TypedDict, total=False):
    icao: str
    type_code: str | None
    registration: str | None
    flags: str | None
    model: str | None


def normalize_icao(icao_hex: str) -> str:
    """Return *icao_hex* stripped and upper-cased, or raise InvalidAddress."""
    if not isinstance(icao_hex, str):
        raise InvalidAddress(f"ICAO address must be a string, got {icao_hex!r}")
    icao = icao_hex.strip().upper()
    if not icao:
        raise InvalidAddress("empty ICAO address")
    if not HEX_RE.fullmatch(icao):
        raise InvalidAddress(f"not a hex address: {icao_hex!r}")
    return icao


def _first(entry: dict[str, Any], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = entry.get(key)
        if value not in (None, ""):
            return str(value)
    return None


def _to_record(icao: str, entry: dict[str, Any]) -> MetadataRecord:
    return MetadataRecord(
        icao=icao,
        type_code=_first(entry, TYPE_KEYS),
        registration=_first(entry, REG_KEYS),
        flags=_first(entry, ("f",)),
        model=_first(entry, MODEL_KEYS),
    )


def make_client(timeout: float = AIRCRAFT_DB_TIMEOUT) -> httpx.AsyncClient:
    """Shared async client: bounded timeout, our User-Agent."""
    return httpx.AsyncClient(timeout=timeout, headers={"User-Agent": USER_AGENT})


class AircraftDb:
    """
    Client for one remote aircraft database.

    The wrapped ``httpx.AsyncClient`` is only used for stateless GETs and may
    be shared by any number of concurrent :pymeth:`resolve` calls. The caller
    owns the client and closes it.

    Args:
        client:    Shared async HTTP client.
        base_url:  Database root; buckets are ``<base_url>/db/<key>.json``.
        cache_ttl: Seconds a fetched bucket is reused (``0`` disables).
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str = AIRCRAFT_DB_URL,
        *,
        cache_ttl: int = AIRCRAFT_DB_CACHE_TTL,
    ) -> None:
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.cache_ttl = cache_ttl
        self._cache: dict[str, tuple[dt.datetime, dict[str, Any]]] = {}

    def bucket_url(self, bucket: str) -> str:
        return f"{self.base_url}/db/{bucket}.json"

    def cache_clear(self) -> None:
        self._cache.clear()

    async def fetch_bucket(self, bucket: str) -> dict[str, Any] | None:
        """
        Return the JSON object of *bucket*, or ``None`` on any failure.

        Only successful payloads are memoised; a failed bucket is retried by
        the next lookup that needs it.
        """
        now = dt.datetime.now(UTC)
        if self.cache_ttl > 0 and bucket in self._cache:
            ts, data = self._cache[bucket]
            if (now - ts).total_seconds() < self.cache_ttl:
                return data

        url = self.bucket_url(bucket)
        try:
            resp = await logged_request_async(self.client, "get", url)
        except httpx.HTTPError as exc:
            LOG.warning("[db] bucket %s unreachable: %r", bucket, exc)
            return None

        if resp.status_code == 404:
            LOG.debug("[db] bucket %s does not exist", bucket)
            return None
        if resp.status_code != 200:
            LOG.warning("[db] bucket %s → HTTP %s", bucket, resp.status_code)
            return None

        try:
            data = resp.json()
        except Exception as exc:  # noqa: BLE001 – malformed JSON
            LOG.warning("[db] bucket %s bad JSON: %s", bucket, exc)
            return None
        if not isinstance(data, dict):
            LOG.warning("[db] bucket %s is not an object", bucket)
            return None

        if self.cache_ttl > 0:
            self._cache[bucket] = (now, data)
        return data

    async def resolve(self, icao_hex: str, start_level: int = 1) -> MetadataRecord | None:
        """
        Walk the bucket tree for *icao_hex* and return its record.

        Args:
            icao_hex:    Transponder address, any case (``"a12345"``).
            start_level: Length of the first bucket key (default ``1``).

        Returns:
            The :class:`MetadataRecord`, or ``None`` when no bucket on the
            path holds the address or a fetch fails.

        Raises:
            InvalidAddress: *icao_hex* is empty or not hexadecimal.
        """
        icao = normalize_icao(icao_hex)
        if start_level < 1:
            raise ValueError(f"start_level must be >= 1, got {start_level}")

        level = start_level
        while level <= len(icao):
            bucket, remainder = icao[:level], icao[level:]
            data = await self.fetch_bucket(bucket)
            if data is None:
                return None

            if remainder in data:
                entry = data[remainder]
                if not isinstance(entry, dict):
                    LOG.warning("[db] %s: malformed entry in bucket %s", icao, bucket)
                    return None
                LOG.debug("[db] %s found in bucket %s", icao, bucket)
                return _to_record(icao, entry)

            children = data.get("children")
            if (
                remainder
                and isinstance(children, list)
                and bucket + remainder[0] in children
            ):
                level += 1
                continue

            break

        LOG.debug("[db] %s not found", icao)
        return None


__all__ = [
    "AircraftDb",
    "InvalidAddress",
    "MetadataRecord",
    "make_client",
    "normalize_icao",
]
