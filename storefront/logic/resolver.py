"""Ordered endpoint fallback."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import httpx

from storefront.ingest.client import ShapeMismatchError, StorefrontClient
from storefront.ingest.models import Endpoint

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EndpointFailure:
    index: int
    url: str
    reason: str


@dataclass(frozen=True, slots=True)
class Resolved:
    payload: Any
    records: list
    source_index: int
    failures: tuple[EndpointFailure, ...] = ()


@dataclass(frozen=True, slots=True)
class Unavailable:
    failures: tuple[EndpointFailure, ...] = field(default_factory=tuple)


async def resolve_first_usable(
    client: StorefrontClient, endpoints: Sequence[Endpoint]
) -> Resolved | Unavailable:
    """Try ``endpoints`` strictly in order and return the first usable one.

    Each candidate is contacted once. Transport errors, error statuses,
    undecodable bodies and unrelated shapes all move on to the next
    candidate; when none is left the result is ``Unavailable``.
    """
    failures: list[EndpointFailure] = []
    for index, endpoint in enumerate(endpoints):
        try:
            payload, records = await client.get_listing_records(endpoint)
        except ShapeMismatchError as exc:
            reason = f"shape mismatch: {exc}"
        except httpx.HTTPError as exc:
            reason = f"transport: {exc.__class__.__name__}: {exc}"
        except ValueError as exc:
            reason = f"invalid body: {exc}"
        else:
            logger.info("Using %s for listings (%s records)", endpoint.name, len(records))
            return Resolved(payload=payload, records=records, source_index=index, failures=tuple(failures))
        logger.warning("Endpoint %s unusable: %s", endpoint.name, reason)
        failures.append(EndpointFailure(index=index, url=endpoint.url, reason=reason))
    logger.warning("All %s listing endpoints unusable", len(endpoints))
    return Unavailable(failures=tuple(failures))
