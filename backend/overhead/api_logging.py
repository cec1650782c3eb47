"""
api_logging.py
~~~~~~~~~~~~~~
Tiny wrapper that prints **one concise log line** per outbound HTTP request.

Usage example
-------------
>>> from .api_logging import logged_request_async
>>> async with httpx.AsyncClient() as cli:
...     resp = await logged_request_async(cli, "get", "https://example.org/db/A.json")
"""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

LOG = logging.getLogger("extapi")


async def logged_request_async(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *args: Any,
    raise_for_status: bool = False,
    **kwargs: Any,
) -> httpx.Response:
    """
    Issue one request on *client* **and** emit a concise log line.

    Parameters
    ----------
    client:
        Shared ``httpx.AsyncClient`` instance.
    method:
        HTTP verb – e.g. ``"get"`` (any case).
    url:
        Absolute URL, or a path relative to the client's ``base_url``.
    raise_for_status:
        *True* ⇒ raise :class:`httpx.HTTPStatusError` for any 4xx/5xx.
        *False* ⇒ never raise on status; the caller decides.

    Notes
    -----
    * **404** is logged at *DEBUG*: a missing database bucket is normal.
    * Transport errors are logged at *WARNING* and re-raised.
    """
    verb = method.upper()
    t0 = time.perf_counter()
    try:
        response = await getattr(client, method.lower())(url, *args, **kwargs)
    except Exception as exc:  # network error before we get a response
        latency_ms = (time.perf_counter() - t0) * 1000.0
        LOG.warning("FAIL %s %s %.0f ms %r", verb, url, latency_ms, exc)
        raise

    latency_ms = (time.perf_counter() - t0) * 1000.0
    code = response.status_code

    if code == 404:
        LOG.debug("%s %s → 404 (%.0f ms)", verb, url, latency_ms)
    elif code >= 400:
        LOG.warning("%s %s → %s (%.0f ms)", verb, url, code, latency_ms)
    else:
        LOG.info("%s %s → %s (%.0f ms)", verb, url, code, latency_ms)

    if raise_for_status:
        response.raise_for_status()

    return response


__all__ = ["logged_request_async"]
