"""
tests/conftest.py
~~~~~~~~~~~~~~~~~
Global pytest fixtures.

* ``index`` – a tiny description index built from fixture tables.
* ``bucket_db`` – factory returning an :class:`AircraftDb` whose HTTP layer
  is an ``httpx.MockTransport`` serving canned buckets; every requested
  bucket key is recorded in ``db.requested`` so tests can assert how deep
  the lookup went.
"""

from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest

from overhead.aircraft_db import AircraftDb
from overhead.type_index import TypeDescriptionIndex, build

pytest_plugins = ["pytest_asyncio"]

BASE_URL = "https://db.test"

MANUFACTURERS = [
    {"id": "B", "name": "Boeing"},
    {"id": "A", "name": "Airbus"},
    {"id": "C", "name": "Cessna"},
]
TYPES = [
    {"icaoCode": "B738", "manufacturer": "B", "name": "737-800"},
    {"icaoCode": "A320", "manufacturer": "A", "name": "A320"},
    {"icaoCode": "C172", "manufacturer": "C", "name": "172 Skyhawk"},
]


@pytest.fixture
def index() -> TypeDescriptionIndex:
    return build(MANUFACTURERS, TYPES)


class RecordingDb(AircraftDb):
    """AircraftDb that remembers which buckets were fetched."""

    requested: list[str]


@pytest.fixture
def bucket_db() -> Callable[..., RecordingDb]:
    """
    Build a database client backed by *buckets*.

    Values may be a dict (served as JSON), an ``httpx.Response`` (served
    verbatim) or an exception instance (raised by the transport). Missing
    buckets answer 404.
    """

    def _make(buckets: dict[str, Any], **kwargs: Any) -> RecordingDb:
        requested: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            key = request.url.path.rsplit("/", 1)[-1].removesuffix(".json")
            requested.append(key)
            value = buckets.get(key)
            if value is None:
                return httpx.Response(404)
            if isinstance(value, Exception):
                raise value
            if isinstance(value, httpx.Response):
                return value
            return httpx.Response(200, json=value)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        kwargs.setdefault("cache_ttl", 0)
        db = RecordingDb(client, BASE_URL, **kwargs)
        db.requested = requested
        return db

    return _make
