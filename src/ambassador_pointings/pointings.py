"""Client for the Ambassador list/update pointing endpoints."""

from __future__ import annotations

from typing import Any, Dict

import httpx

from .client import ResponseFormatError, UpdateResponse, get_json, post_json
from .config import Config
from .logging import get_logger

logger = get_logger("ambassador.pointings")

PointingMap = Dict[str, str]


def parse_pointings(data: Any) -> PointingMap:
    """Validate a decoded list response and return it sorted by service name."""

    if not isinstance(data, dict):
        raise ResponseFormatError(
            f"Unexpected list response: expected an object, got {type(data).__name__}."
        )
    for service, url in data.items():
        if not isinstance(url, str):
            raise ResponseFormatError(
                f"Unexpected list response: URL for {service!r} is {type(url).__name__}, not a string."
            )
    return {service: data[service] for service in sorted(data)}


class PointingsClient:
    """List and update service pointings on an Ambassador instance."""

    def __init__(self, client: httpx.Client, config: Config) -> None:
        self.client = client
        self.config = config

    def list_pointings(self, base_url: str) -> PointingMap:
        """Fetch the current service → URL mapping. Never cached."""

        url = f"{base_url}{self.config.list_path}"
        pointings = parse_pointings(get_json(self.client, url))
        logger.debug("Fetched pointings", extra={"base_url": base_url, "count": len(pointings)})
        return pointings

    def update_mapping(self, base_url: str, service: str, url: str) -> UpdateResponse:
        """Ask Ambassador to point `service` at `url`.

        The response is returned as-is; callers decide success by listing
        again.
        """

        payload = {"system": service, "url": url}
        response = post_json(self.client, f"{base_url}{self.config.update_path}", payload)
        logger.info(
            "Update submitted",
            extra={"service": service, "url": url, "ok": response.ok, "status_code": response.status_code},
        )
        return response
