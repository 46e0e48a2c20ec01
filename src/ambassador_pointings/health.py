"""Armor health check."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from .client import RequestFailed, get_text
from .logging import get_logger

logger = get_logger("ambassador.health")


@dataclass(frozen=True)
class HealthResult:
    """Outcome of one health-check request."""

    url: str
    ok: bool
    status_code: Optional[int] = None
    payload: Any = None
    raw: str = ""
    is_json: bool = False


def check_health(client: httpx.Client, url: str) -> HealthResult:
    """GET `url` once. Failures are returned, not raised."""

    try:
        body = get_text(client, url)
    except RequestFailed as exc:
        logger.info("Health check failed", extra={"url": url, "error": str(exc)})
        return HealthResult(url=url, ok=False, status_code=exc.status_code, raw=str(exc))

    try:
        payload = json.loads(body)
    except json.JSONDecodeError:
        return HealthResult(url=url, ok=True, raw=body)
    return HealthResult(url=url, ok=True, payload=payload, raw=body, is_json=True)
