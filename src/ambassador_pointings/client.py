"""HTTP plumbing shared by the pointings store and the health check."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import httpx

from .config import Config
from .logging import get_logger, redact_mapping

logger = get_logger("ambassador.http")


class PointingsError(Exception):
    """Raised when a call against the Ambassador admin API cannot be completed."""


class RequestFailed(PointingsError):
    """Transport failure, timeout, or non-2xx response."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ResponseFormatError(PointingsError):
    """The response body did not have the expected shape."""


@dataclass(frozen=True)
class UpdateResponse:
    """Raw outcome of a mutating call. Diagnostic only."""

    ok: bool
    status_code: Optional[int]
    body: str


def build_client(config: Config) -> httpx.Client:
    """Create the single HTTP client used for the whole session."""

    timeout = httpx.Timeout(config.timeout, connect=config.connect_timeout)
    return httpx.Client(timeout=timeout)


def get_text(client: httpx.Client, url: str) -> str:
    """GET `url` and return the body, raising `RequestFailed` on any failure."""

    logger.debug("GET request", extra={"url": url})
    try:
        response = client.get(url)
    except httpx.RequestError as exc:
        logger.info("GET request failed", extra={"url": url, "error": str(exc)})
        raise RequestFailed(f"HTTP request failed: {exc}") from exc

    logger.debug("GET response", extra={"url": url, "status_code": response.status_code})
    _raise_for_status(response)
    return response.text


def get_json(client: httpx.Client, url: str) -> Any:
    """GET `url` and decode the JSON body."""

    body = get_text(client, url)
    try:
        return json.loads(body)
    except json.JSONDecodeError as exc:
        raise ResponseFormatError(f"Response from {url} is not valid JSON: {exc}") from exc


def post_json(
    client: httpx.Client,
    url: str,
    payload: Mapping[str, Any],
    headers: Optional[Mapping[str, str]] = None,
) -> UpdateResponse:
    """POST `payload` as JSON and capture the outcome without raising."""

    request_headers = {"Content-Type": "application/json"}
    request_headers.update(headers or {})
    logger.debug(
        "POST request",
        extra={"url": url, "payload": dict(payload), "headers": redact_mapping(request_headers)},
    )
    try:
        response = client.post(url, content=json.dumps(payload), headers=request_headers)
    except httpx.RequestError as exc:
        logger.info("POST request failed", extra={"url": url, "error": str(exc)})
        return UpdateResponse(ok=False, status_code=None, body=f"HTTP request failed: {exc}")

    logger.debug("POST response", extra={"url": url, "status_code": response.status_code})
    if response.is_success:
        return UpdateResponse(ok=True, status_code=response.status_code, body=response.text)
    return UpdateResponse(
        ok=False,
        status_code=response.status_code,
        body=_failure_text(response),
    )


def _raise_for_status(response: httpx.Response) -> None:
    try:
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise RequestFailed(
            _failure_text(response),
            status_code=response.status_code,
            body=response.text,
        ) from exc


def _failure_text(response: httpx.Response) -> str:
    detail = response.text.strip() or response.reason_phrase
    return f"Request failed ({response.status_code}): {detail}"
