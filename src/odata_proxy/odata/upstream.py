# src/odata_proxy/odata/upstream.py
from typing import Any
import json
import logging
import time

import requests
from urllib3.exceptions import ReadTimeoutError

from ..config import ProxyConfig

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class UpstreamError(Exception):
    """Base class for failures talking to the upstream source."""


class UpstreamStatusError(UpstreamError):
    def __init__(self, status: int):
        super().__init__(f"Upstream API returned HTTP {status}")
        self.status = status


class UpstreamTimeoutError(UpstreamError):
    pass


def _read_body(resp: requests.Response, deadline: float) -> bytes:
    """Read the streamed body, giving up once the overall deadline passes."""
    chunks = []
    try:
        for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
            chunks.append(chunk)
            if time.monotonic() > deadline:
                raise UpstreamTimeoutError("Upstream response body exceeded the deadline")
    except requests.exceptions.ConnectionError as e:
        # requests reports a read timeout mid-body as a ConnectionError
        if e.args and isinstance(e.args[0], ReadTimeoutError):
            raise UpstreamTimeoutError(str(e)) from e
        raise
    return b"".join(chunks)


def fetch_collection(config: ProxyConfig) -> Any:
    """
    GET the whole upstream collection and return the decoded JSON payload.

    One attempt, no retries. config.upstream_timeout bounds the whole
    exchange: connect, each read, and the total time spent on the body.
    Raises:
      - UpstreamTimeoutError when any of those limits is exceeded
      - UpstreamStatusError on a non-2xx response
      - UpstreamError when no upstream URL is configured
    Connection errors and invalid JSON propagate unchanged.
    """
    if not config.upstream_url:
        raise UpstreamError("SOURCE_API is not configured")

    deadline = time.monotonic() + config.upstream_timeout
    try:
        resp = requests.get(
            config.upstream_url,
            headers={"Accept": "application/json"},
            auth=config.upstream_auth,
            timeout=config.upstream_timeout,
            stream=True,
        )
        try:
            if not 200 <= resp.status_code < 300:
                logger.error("Upstream %s returned HTTP %s", config.upstream_url, resp.status_code)
                raise UpstreamStatusError(resp.status_code)
            body = _read_body(resp, deadline)
        finally:
            resp.close()
    except (requests.exceptions.Timeout, UpstreamTimeoutError) as e:
        logger.warning(
            "Upstream request timed out after %ss: %s (%r)",
            config.upstream_timeout,
            config.upstream_url,
            e,
        )
        if isinstance(e, UpstreamTimeoutError):
            raise
        raise UpstreamTimeoutError(str(e)) from e

    return json.loads(body)
