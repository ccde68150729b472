"""Canonical storefront data models."""

from __future__ import annotations

import enum
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any


def _no_params() -> Mapping[str, Any]:
    return {}


@dataclass(frozen=True, slots=True)
class Endpoint:
    name: str
    url: str
    params_fn: Callable[[], Mapping[str, Any]] = _no_params


@dataclass(frozen=True, slots=True)
class NormalizedPerson:
    id: str | None
    name: str
    avatar_url: str
    wallet_address: str | None = None
    tag: str | None = None
    followers: int = 0


@dataclass(frozen=True, slots=True)
class NormalizedListing:
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
    synthetic_id: bool = False


class Status(str, enum.Enum):
    LOADING = "loading"
    SUCCESS = "success"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True, slots=True)
class AggregateState:
    status: Status
    listings: tuple[NormalizedListing, ...] = ()
    authors: Mapping[str, NormalizedPerson] = field(default_factory=lambda: MappingProxyType({}))
    source_index: int | None = None
    cycle: int = 0
    message: str | None = None


@dataclass(frozen=True, slots=True)
class AuthorProfile:
    person: NormalizedPerson
    listings: tuple[NormalizedListing, ...]


@dataclass(frozen=True, slots=True)
class ItemDetail:
    listing: NormalizedListing
    owner: NormalizedPerson
    creator: NormalizedPerson
    owners: tuple[NormalizedPerson, ...]
    description: str | None = None
