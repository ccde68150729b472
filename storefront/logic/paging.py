"""Client-side sorting and "load more" windowing over canonical listings."""

from __future__ import annotations

import os
from collections.abc import Callable, Sequence
from typing import Any

from storefront.ingest.models import NormalizedListing

INITIAL_COUNT = int(os.environ.get("STOREFRONT_INITIAL_COUNT", 8))
LOAD_MORE_STEP = int(os.environ.get("STOREFRONT_LOAD_MORE_STEP", 4))

PRICE_LOW_TO_HIGH = "price_low_to_high"
PRICE_HIGH_TO_LOW = "price_high_to_low"
LIKES_HIGH_TO_LOW = "likes_high_to_low"

# Unpriced listings go last in both price orders.
SORT_KEYS: dict[str, Callable[[NormalizedListing], Any]] = {
    PRICE_LOW_TO_HIGH: lambda item: (item.price is None, item.price or 0.0),
    PRICE_HIGH_TO_LOW: lambda item: (item.price is None, -(item.price or 0.0)),
    LIKES_HIGH_TO_LOW: lambda item: -item.like_count,
}


def sort_listings(listings: Sequence[NormalizedListing], key: str | None) -> list[NormalizedListing]:
    if not key:
        return list(listings)
    try:
        sort_key = SORT_KEYS[key]
    except KeyError:
        raise ValueError(f"Unknown sort key: {key}") from None
    return sorted(listings, key=sort_key)


class ListingPager:
    """Presentation order and revealed window over a read-only listing sequence.

    The window starts at ``initial`` entries and grows by ``step`` per
    :meth:`load_more`, never past the end of the sequence.
    """

    def __init__(
        self,
        listings: Sequence[NormalizedListing] = (),
        *,
        initial: int = INITIAL_COUNT,
        step: int = LOAD_MORE_STEP,
    ) -> None:
        self.initial = initial
        self.step = step
        self.sort_key: str | None = None
        self._listings: tuple[NormalizedListing, ...] = tuple(listings)
        self._window = initial

    def __len__(self) -> int:
        return len(self._listings)

    @property
    def window(self) -> int:
        return min(self._window, len(self._listings))

    @property
    def can_load_more(self) -> bool:
        return self.window < len(self._listings)

    def reset(self, listings: Sequence[NormalizedListing]) -> None:
        self._listings = tuple(listings)
        self._window = self.initial

    def set_sort(self, key: str | None) -> None:
        if key and key not in SORT_KEYS:
            raise ValueError(f"Unknown sort key: {key}")
        self.sort_key = key or None

    def load_more(self, step: int | None = None) -> None:
        step = self.step if step is None else step
        if step <= 0 or not self.can_load_more:
            return
        self._window = min(self.window + step, len(self._listings))

    def ordered(self) -> list[NormalizedListing]:
        return sort_listings(self._listings, self.sort_key)

    def visible(self) -> list[NormalizedListing]:
        return self.ordered()[: self.window]
