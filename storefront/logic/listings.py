"""Listing normalization: raw upstream records -> NormalizedListing."""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from typing import Any

from storefront.ingest.models import NormalizedListing, NormalizedPerson
from storefront.logic.countdown import CountdownCache, resolve_end_timestamp
from storefront.logic.fields import resolve_field, resolve_str

FALLBACK_IMAGE = os.environ.get("STOREFRONT_FALLBACK_IMAGE", "/images/nftImage.jpg")
FALLBACK_AVATAR = os.environ.get("STOREFRONT_FALLBACK_AVATAR", "/images/author_thumbnail.jpg")
CURRENCY = os.environ.get("STOREFRONT_CURRENCY", "ETH")
PRICE_PLACEHOLDER = "\u2014"
UNKNOWN_NAME = "Unknown"
UNTITLED = "Untitled"


def synthetic_id(index: int) -> str:
    return f"idx-{index}"


def format_price(price: float | None, currency: str = CURRENCY) -> str:
    if price is None:
        return PRICE_PLACEHOLDER
    return f"{price:.2f} {currency}"


def _likes(record: Any) -> int:
    likes = resolve_field(record, "likes", 0.0)
    return max(0, int(likes))


def normalize_listing(
    record: Any,
    index: int,
    *,
    authors: Mapping[str, NormalizedPerson] | None = None,
    countdowns: CountdownCache | None = None,
    now_ms: int | None = None,
    fallback_image: str = FALLBACK_IMAGE,
    fallback_avatar: str = FALLBACK_AVATAR,
) -> NormalizedListing:
    """Build the canonical listing for the ``index``-th record of one fetch.

    Records without an id get a positional id, which is unique within the
    fetch but not across fetches, so it is never used as a countdown key.
    """
    listing_id = resolve_str(record, "id")
    is_synthetic = listing_id is None
    if is_synthetic:
        listing_id = synthetic_id(index)

    price = resolve_field(record, "price")
    author_id = resolve_str(record, "author_ref")
    person = (authors or {}).get(author_id) if author_id else None

    if person is not None:
        author_name = person.name
        avatar = person.avatar_url
    else:
        author_name = resolve_str(record, "author_name") or UNKNOWN_NAME
        avatar = resolve_str(record, "author_avatar") or fallback_avatar

    if countdowns is not None and not is_synthetic:
        countdown_end = countdowns.end_for(listing_id, record, now_ms)
    else:
        countdown_end = resolve_end_timestamp(record, now_ms)

    return NormalizedListing(
        id=listing_id,
        title=resolve_str(record, "title") or UNTITLED,
        image_url=resolve_str(record, "image") or fallback_image,
        price_text=format_price(price),
        price=price,
        like_count=_likes(record),
        author_id=author_id,
        author_name=author_name,
        author_avatar_url=avatar,
        countdown_end_ms=countdown_end,
        synthetic_id=is_synthetic,
    )


def normalize_listings(
    records: Sequence[Any],
    *,
    authors: Mapping[str, NormalizedPerson] | None = None,
    countdowns: CountdownCache | None = None,
    now_ms: int | None = None,
) -> tuple[NormalizedListing, ...]:
    return tuple(
        normalize_listing(record, index, authors=authors, countdowns=countdowns, now_ms=now_ms)
        for index, record in enumerate(records)
    )
