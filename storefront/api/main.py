"""Read-only FastAPI surface over the normalized storefront model."""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Any

from dotenv import find_dotenv, load_dotenv
from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel

# storefront modules read their settings at import time
load_dotenv(find_dotenv(usecwd=True))

from storefront.ingest import surfaces  # noqa: E402
from storefront.ingest.models import NormalizedListing, NormalizedPerson, Status  # noqa: E402
from storefront.logic.countdown import format_remaining  # noqa: E402
from storefront.logic.paging import SORT_KEYS, ListingPager  # noqa: E402
from storefront.logic.session import StorefrontSession  # noqa: E402
from storefront.utils.dates import now_ms  # noqa: E402

logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))
logger = logging.getLogger(__name__)

_sessions: dict[str, StorefrontSession] = {}


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    yield
    for session in _sessions.values():  # pragma: no cover - server lifecycle
        await session.close()
    _sessions.clear()


app = FastAPI(title="Storefront API", lifespan=lifespan)


class ListingOut(BaseModel):
    id: str
    title: str
    image_url: str
    price_text: str
    price: float | None
    like_count: int
    author_id: str | None
    author_name: str
    author_avatar_url: str
    countdown_end_ms: int | None
    remaining: str | None = None


class PersonOut(BaseModel):
    id: str | None
    name: str
    avatar_url: str
    wallet_address: str | None = None
    tag: str | None = None
    followers: int = 0


class ListingsResponse(BaseModel):
    status: str
    message: str | None = None
    listings: list[ListingOut]
    total: int
    can_load_more: bool


class CountdownResponse(BaseModel):
    listing_id: str
    end_ms: int | None
    remaining: str | None


class AuthorResponse(BaseModel):
    author: PersonOut
    listings: list[ListingOut]


class ItemResponse(BaseModel):
    listing: ListingOut
    owner: PersonOut
    creator: PersonOut
    owners: list[PersonOut]
    description: str | None = None


def get_session(surface: str = Query("explore")) -> StorefrontSession:
    if surface not in surfaces():
        raise HTTPException(status_code=400, detail=f"Unknown surface: {surface}")
    session = _sessions.get(surface)
    if session is None:
        session = _sessions[surface] = StorefrontSession(surface=surface, min_display=0.0)
    return session


def _listing_out(listing: NormalizedListing, now: int) -> ListingOut:
    data: dict[str, Any] = asdict(listing)
    data.pop("synthetic_id", None)
    end = listing.countdown_end_ms
    data["remaining"] = format_remaining(end, now) if end is not None else None
    return ListingOut(**data)


def _person_out(person: NormalizedPerson) -> PersonOut:
    return PersonOut(**asdict(person))


@app.get("/listings", response_model=ListingsResponse)
async def listings(
    sort: str | None = None,
    page: int = Query(1, ge=1),
    session: StorefrontSession = Depends(get_session),
):
    if sort and sort not in SORT_KEYS:
        raise HTTPException(status_code=400, detail=f"Unknown sort: {sort}")
    state = await session.refresh(sort)
    if state.status is not Status.SUCCESS:
        body = ListingsResponse(
            status=state.status.value, message=state.message, listings=[], total=0, can_load_more=False
        )
        return JSONResponse(status_code=503, content=body.model_dump())
    pager = ListingPager(state.listings)
    pager.set_sort(sort)
    if page > 1:
        pager.load_more((page - 1) * pager.step)
    now = now_ms()
    return ListingsResponse(
        status=state.status.value,
        listings=[_listing_out(item, now) for item in pager.visible()],
        total=len(pager),
        can_load_more=pager.can_load_more,
    )


@app.get("/listings/{listing_id}/countdown", response_model=CountdownResponse)
async def listing_countdown(listing_id: str, session: StorefrontSession = Depends(get_session)):
    last = session.aggregator.last_success
    listings = last.listings if last is not None else ()
    listing = next((item for item in listings if item.id == listing_id), None)
    if listing is None:
        raise HTTPException(status_code=404, detail="Listing not found")
    end = listing.countdown_end_ms
    remaining = format_remaining(end, now_ms()) if end is not None else None
    return CountdownResponse(listing_id=listing_id, end_ms=end, remaining=remaining)


@app.get("/authors/{author_id}", response_model=AuthorResponse)
async def author(author_id: str, session: StorefrontSession = Depends(get_session)):
    profile = await session.author_profile(author_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Author not found")
    now = now_ms()
    return AuthorResponse(
        author=_person_out(profile.person),
        listings=[_listing_out(item, now) for item in profile.listings],
    )


@app.get("/items/{item_id}", response_model=ItemResponse)
async def item(item_id: str, session: StorefrontSession = Depends(get_session)):
    detail = await session.item_detail(item_id)
    if detail is None:
        raise HTTPException(status_code=404, detail="This NFT ID didn't return data from the API.")
    return ItemResponse(
        listing=_listing_out(detail.listing, now_ms()),
        owner=_person_out(detail.owner),
        creator=_person_out(detail.creator),
        owners=[_person_out(person) for person in detail.owners],
        description=detail.description,
    )


@app.get("/sellers", response_model=list[PersonOut])
async def sellers(session: StorefrontSession = Depends(get_session)):
    return [_person_out(person) for person in await session.authors.fetch_top_sellers()]
