"""Detect listing arrays inside differently-enveloped payloads."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

CONTAINER_FIELDS = ("items", "nfts", "nftCollection", "collection", "results", "data", "newItems")
LISTING_HINT_FIELDS = ("title", "name", "image", "imageUrl", "nftImage")
MAX_DEPTH = 3


def looks_like_listing(value: Any) -> bool:
    return isinstance(value, Mapping) and any(value.get(key) for key in LISTING_HINT_FIELDS)


def looks_like_list(value: Any) -> bool:
    """Empty lists pass; otherwise the first element must look like a listing.

    Generic containers such as ``data`` sometimes hold unrelated shapes
    (users, stats), which must not be rendered as listings.
    """
    return isinstance(value, list) and (not value or looks_like_listing(value[0]))


def candidate_arrays(payload: Any, depth: int = 0) -> Iterator[list]:
    if isinstance(payload, list):
        yield payload
        return
    if not isinstance(payload, Mapping) or depth >= MAX_DEPTH:
        return
    for name in CONTAINER_FIELDS:
        value = payload.get(name)
        if isinstance(value, list):
            yield value
    for name in CONTAINER_FIELDS:
        value = payload.get(name)
        if isinstance(value, Mapping):
            yield from candidate_arrays(value, depth + 1)


def detect_listing_array(payload: Any) -> list | None:
    """Return the first listing-like array in ``payload``, or None if rejected."""
    for array in candidate_arrays(payload):
        if looks_like_list(array):
            return array
    return None


def extract_listing_array(payload: Any) -> list:
    return detect_listing_array(payload) or []


def unwrap_root(payload: Any) -> Any:
    """``{data: x}`` envelopes unwrap to ``x``; anything else is returned as is."""
    if isinstance(payload, Mapping) and payload.get("data") is not None:
        return payload["data"]
    return payload
