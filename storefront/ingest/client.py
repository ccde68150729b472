"""HTTP access to the upstream storefront endpoints."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from typing import Any

import httpx

from storefront.ingest.models import Endpoint
from storefront.logic.shapes import detect_listing_array

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = float(os.environ.get("STOREFRONT_TIMEOUT", 30.0))
USER_AGENT = "StorefrontBot/1.0"


class ShapeMismatchError(ValueError):
    """The response parsed, but held nothing that looks like a listing array."""


class StorefrontClient:
    def __init__(self, *, session: httpx.AsyncClient | None = None) -> None:
        self.session = session or httpx.AsyncClient(
            timeout=REQUEST_TIMEOUT, headers={"User-Agent": USER_AGENT}
        )

    async def close(self) -> None:
        await self.session.aclose()

    async def get_json(self, url: str, params: Mapping[str, Any] | None = None) -> Any:
        response = await self.session.get(url, params=dict(params or {}))
        response.raise_for_status()
        return response.json()

    async def get_listing_records(self, endpoint: Endpoint) -> tuple[Any, list]:
        """Fetch one candidate and return ``(payload, records)``.

        Raises ``httpx.HTTPError`` on transport/status failures, ``ValueError``
        on undecodable bodies and ``ShapeMismatchError`` on unrelated shapes.
        """
        logger.debug("Fetching %s (%s)", endpoint.name, endpoint.url)
        payload = await self.get_json(endpoint.url, endpoint.params_fn())
        records = detect_listing_array(payload)
        if records is None:
            raise ShapeMismatchError(f"{endpoint.name} did not return a listing array")
        return payload, records
