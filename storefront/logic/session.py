"""One browsing session: the state that outlives single fetch cycles."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from storefront.ingest import load_endpoints
from storefront.ingest.client import StorefrontClient
from storefront.ingest.models import AggregateState, AuthorProfile, Endpoint, ItemDetail, Status
from storefront.logic.aggregator import MIN_DISPLAY_SECONDS, ListingAggregator
from storefront.logic.authors import AuthorDirectory
from storefront.logic.countdown import CountdownCache
from storefront.logic.details import ItemDetailsClient
from storefront.logic.paging import ListingPager

logger = logging.getLogger(__name__)


class StorefrontSession:
    """Owns the countdown cache, the aggregator and the pager for one surface.

    The countdown cache lives here rather than in the aggregator so that
    every fetch made during the session (listings, author pages, item
    details) shares the same end timestamps.
    """

    def __init__(
        self,
        client: StorefrontClient | None = None,
        *,
        surface: str = "explore",
        endpoints: Sequence[Endpoint] | None = None,
        min_display: float = MIN_DISPLAY_SECONDS,
        authors: AuthorDirectory | None = None,
        details: ItemDetailsClient | None = None,
    ) -> None:
        self.client = client or StorefrontClient()
        self.surface = surface
        self.countdowns = CountdownCache()
        self._configured = endpoints is None
        self.aggregator = ListingAggregator(
            self.client,
            endpoints if endpoints is not None else load_endpoints(surface),
            countdown_cache=self.countdowns,
            min_display=min_display,
        )
        self.pager = ListingPager()
        self.authors = authors or AuthorDirectory(self.client)
        self.details = details or ItemDetailsClient(self.client)

    @property
    def state(self) -> AggregateState:
        return self.aggregator.state

    async def refresh_authors(self) -> None:
        records = await self.authors.fetch_all()
        if records:
            self.aggregator.set_author_records(records)

    async def refresh(self, sort: str | None = None) -> AggregateState:
        await self.refresh_authors()
        # explicit endpoints are used as given; sorting then stays client-side
        endpoints = load_endpoints(self.surface, sort=sort) if sort and self._configured else None
        result = await self.aggregator.aggregate(endpoints)
        if self.aggregator.state is result and result.status is Status.SUCCESS:
            self.pager.reset(result.listings)
        return result

    async def author_profile(self, author_id: str) -> AuthorProfile | None:
        return await self.authors.fetch_profile(author_id, countdowns=self.countdowns)

    async def item_detail(self, item_id: str) -> ItemDetail | None:
        return await self.details.fetch(item_id, authors=self.state.authors, countdowns=self.countdowns)

    async def close(self) -> None:
        self.aggregator.teardown()
        await self.client.close()
