"""Timeout-bounded HTTP fetching.

Every upstream call goes through here so no request can wait unbounded.
Transport problems are translated into the resolver's FetchError family.

httpx timeouts apply per phase (connect, read, ...), so a server trickling
bytes never trips them. fetch() streams the body and enforces one
wall-clock deadline across the whole call on top of them.
"""

import time
from typing import Any

import httpx
from loguru import logger

from .errors import (
    MalformedResponseFailure,
    NetworkFailure,
    TimeoutFailure,
    UpstreamStatusFailure,
)

log = logger.bind(stage="fetch")

DEFAULT_TIMEOUT = 10.0


def fetch(
    url: str,
    params: dict[str, str] | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> httpx.Response:
    """GET url, giving up after timeout seconds.

    Raises TimeoutFailure if the deadline passes, NetworkFailure on any
    other transport error. The response status is not checked here.
    """
    log.debug(f"GET {url} params={params} timeout={timeout:g}s")
    deadline = time.monotonic() + timeout

    def _check_deadline() -> None:
        if time.monotonic() > deadline:
            raise TimeoutFailure(url, timeout)

    try:
        with httpx.stream(
            "GET",
            url,
            params=params,
            timeout=timeout,
            follow_redirects=True,
        ) as streamed:
            _check_deadline()
            raw = bytearray()
            # Leaving the block closes the connection, also on timeout
            for chunk in streamed.iter_raw():
                raw.extend(chunk)
                _check_deadline()

        # Rebuilt from the raw bytes so content-encoding is decoded once
        resp = httpx.Response(
            streamed.status_code,
            headers=streamed.headers,
            content=bytes(raw),
            request=streamed.request,
        )
    except httpx.TimeoutException as e:
        raise TimeoutFailure(url, timeout) from e
    except httpx.HTTPError as e:
        raise NetworkFailure(f"{url}: {e.__class__.__name__}: {e}", url) from e

    log.debug(f"{url} -> HTTP {resp.status_code}")
    return resp


def fetch_json(
    url: str,
    params: dict[str, str] | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Any:
    """GET url and decode a JSON body from a 2xx response.

    Raises UpstreamStatusFailure on non-2xx and MalformedResponseFailure
    when the body is not JSON, on top of what fetch() raises.
    """
    resp = fetch(url, params=params, timeout=timeout)
    if not resp.is_success:
        raise UpstreamStatusFailure(url, resp.status_code)

    try:
        return resp.json()
    except ValueError as e:
        raise MalformedResponseFailure(f"{url}: body is not JSON", url) from e
