"""Fetch-and-normalize cycles for one listing surface."""

from __future__ import annotations

import asyncio
import itertools
import logging
import os
import time
from collections.abc import Callable, Sequence
from typing import Any

from storefront.ingest.client import StorefrontClient
from storefront.ingest.models import AggregateState, Endpoint, Status
from storefront.logic.authors import build_author_index
from storefront.logic.countdown import CountdownCache
from storefront.logic.listings import normalize_listings
from storefront.logic.resolver import Resolved, resolve_first_usable
from storefront.utils.dates import now_ms

logger = logging.getLogger(__name__)

MIN_DISPLAY_SECONDS = float(os.environ.get("STOREFRONT_MIN_DISPLAY", 2.0))
UNAVAILABLE_MESSAGE = "The explore API didn't return a valid list."

Listener = Callable[[AggregateState], Any]


class ListingAggregator:
    """Owns the canonical listing sequence of one surface.

    Every call to :meth:`aggregate` takes a new cycle token. A cycle only
    publishes its result if its token is still the latest when it finishes,
    so a slow early request can never overwrite a faster later one.
    """

    def __init__(
        self,
        client: StorefrontClient,
        endpoints: Sequence[Endpoint],
        *,
        countdown_cache: CountdownCache | None = None,
        min_display: float = MIN_DISPLAY_SECONDS,
    ) -> None:
        self.client = client
        self.endpoints = list(endpoints)
        self.countdown_cache = countdown_cache if countdown_cache is not None else CountdownCache()
        self.min_display = min_display
        self._tokens = itertools.count(1)
        self._current = 0
        self._author_records: tuple[Any, ...] = ()
        self._last_records: tuple[Any, ...] = ()
        self._listeners: list[Listener] = []
        self._state = AggregateState(status=Status.LOADING)
        self._last_success: AggregateState | None = None

    @property
    def state(self) -> AggregateState:
        return self._state

    @property
    def last_success(self) -> AggregateState | None:
        """The most recent published SUCCESS state, kept while later cycles load."""
        return self._last_success

    @property
    def current_cycle(self) -> int:
        return self._current

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def set_author_records(self, records: Sequence[Any]) -> None:
        """Replace the full author records and rebuild the visible author index."""
        self._author_records = tuple(records)
        authors = build_author_index(self._author_records, self._last_records)
        self._publish(
            AggregateState(
                status=self._state.status,
                listings=self._state.listings,
                authors=authors,
                source_index=self._state.source_index,
                cycle=self._state.cycle,
                message=self._state.message,
            )
        )

    def teardown(self) -> None:
        """Discard the results of every cycle still in flight."""
        self._current = next(self._tokens)
        self._listeners.clear()

    async def aggregate(self, endpoints: Sequence[Endpoint] | None = None) -> AggregateState:
        """Run one cycle and return its result.

        The returned state is this cycle's own; :attr:`state` only changes
        when the cycle is still current at the end.
        """
        token = self._current = next(self._tokens)
        started = time.monotonic()
        self._publish(AggregateState(status=Status.LOADING, authors=self._state.authors, cycle=token))

        resolution = await resolve_first_usable(self.client, endpoints or self.endpoints)
        if isinstance(resolution, Resolved):
            records = tuple(resolution.records)
            authors = build_author_index(self._author_records, records)
            listings = normalize_listings(
                records, authors=authors, countdowns=self.countdown_cache, now_ms=now_ms()
            )
            result = AggregateState(
                status=Status.SUCCESS,
                listings=listings,
                authors=authors,
                source_index=resolution.source_index,
                cycle=token,
            )
        else:
            records = ()
            result = AggregateState(
                status=Status.UNAVAILABLE,
                authors=build_author_index(self._author_records),
                cycle=token,
                message=UNAVAILABLE_MESSAGE,
            )

        remaining = self.min_display - (time.monotonic() - started)
        if remaining > 0:
            await asyncio.sleep(remaining)

        if token != self._current:
            logger.debug("Discarding stale cycle %s (current %s)", token, self._current)
            return result
        self._last_records = records
        self._publish(result)
        return result

    def _publish(self, state: AggregateState) -> None:
        self._state = state
        if state.status is Status.SUCCESS:
            self._last_success = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Listener %r failed on cycle %s", listener, state.cycle)
