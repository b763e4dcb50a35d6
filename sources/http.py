"""
Time-boxed HTTP helper shared by the source clients.

Every call is bounded by the caller's timeout as a total deadline: requests'
own timeout only limits the connect and each individual read, so the body is
streamed and reading stops once the deadline has passed. Any network error,
timeout or non-2xx response becomes SourceUnavailable, and an unreadable JSON
body becomes MalformedPayload.
"""

import json
import logging
import time
from typing import Any, Dict, Optional

import requests

from shared.errors import MalformedPayload, SourceUnavailable

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192


def _read_body(response, url: str, timeout: float, deadline: float) -> bytes:
    chunks = []
    try:
        for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
            if time.monotonic() > deadline:
                raise SourceUnavailable(f"Request to {url} timed out after {timeout:g}s")
            if chunk:
                chunks.append(chunk)
    except requests.exceptions.RequestException as e:
        raise SourceUnavailable(f"Cannot read response from {url}: {e}", e)
    finally:
        response.close()
    return b"".join(chunks)


def request_json(
    session,
    method: str,
    url: str,
    timeout: float,
    headers: Optional[Dict[str, str]] = None,
    json_body: Optional[Dict[str, Any]] = None,
) -> Any:
    """
    Issue one request and decode its body.

    Returns:
        Decoded JSON, the raw text for non-JSON bodies, or None for empty/204

    Raises:
        SourceUnavailable: network failure, timeout or non-2xx status
        MalformedPayload: JSON content type with an undecodable body
    """
    deadline = time.monotonic() + timeout
    try:
        response = session.request(method, url, headers=headers, json=json_body, timeout=timeout, stream=True)
    except requests.exceptions.Timeout as e:
        raise SourceUnavailable(f"Request to {url} timed out after {timeout:g}s", e)
    except requests.exceptions.RequestException as e:
        raise SourceUnavailable(f"Cannot reach {url}: {e}", e)

    if not 200 <= response.status_code < 300:
        response.close()
        raise SourceUnavailable(f"HTTP {response.status_code}", status_code=response.status_code)

    body = _read_body(response, url, timeout, deadline)
    if response.status_code == 204 or not body:
        return None

    text = body.decode(response.encoding or "utf-8", errors="replace")
    content_type = response.headers.get("content-type", "")
    if "json" not in content_type:
        return text

    try:
        return json.loads(text)
    except ValueError as e:
        raise MalformedPayload(f"Invalid JSON from {url}: {e}", e)
