"""Author records: normalization, the cross-reference index and directory fetches."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import replace
from types import MappingProxyType
from typing import Any

import httpx

from storefront.ingest import endpoint_url
from storefront.ingest.client import StorefrontClient
from storefront.ingest.models import AuthorProfile, NormalizedListing, NormalizedPerson
from storefront.logic.countdown import CountdownCache
from storefront.logic.fields import resolve_field, resolve_str
from storefront.logic.listings import FALLBACK_AVATAR, UNKNOWN_NAME, normalize_listing
from storefront.logic.shapes import unwrap_root
from storefront.utils.retry import retry_async

logger = logging.getLogger(__name__)

PROFILE_LISTING_FIELDS = ("nftCollection", "nfts", "items", "collection")
PERSON_FIELDS = ("id", "name", "avatar_url", "wallet_address", "tag", "followers")


def to_person_record(value: Any) -> Mapping[str, Any] | None:
    """Bare ids (``7``, ``"7"``) stand for ``{"authorId": value}``."""
    if isinstance(value, Mapping):
        return value
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float, str)):
        return {"authorId": value}
    return None


def _person_fields(record: Mapping[str, Any]) -> dict[str, Any]:
    followers = resolve_field(record, "followers")
    return {
        "id": resolve_str(record, "person_id"),
        "name": resolve_str(record, "person_name"),
        "avatar_url": resolve_str(record, "person_avatar"),
        "wallet_address": resolve_str(record, "wallet"),
        "tag": resolve_str(record, "person_tag"),
        "followers": max(0, int(followers)) if followers is not None else None,
    }


def _fragment_fields(record: Mapping[str, Any]) -> dict[str, Any]:
    """Inline author data embedded in a listing record."""
    return {
        "id": resolve_str(record, "author_ref"),
        "name": resolve_str(record, "author_name"),
        "avatar_url": resolve_str(record, "author_avatar"),
        "wallet_address": None,
        "tag": None,
        "followers": None,
    }


def _person_from(fields: Mapping[str, Any], fallback_avatar: str = FALLBACK_AVATAR) -> NormalizedPerson:
    return NormalizedPerson(
        id=fields.get("id"),
        name=fields.get("name") or UNKNOWN_NAME,
        avatar_url=fields.get("avatar_url") or fallback_avatar,
        wallet_address=fields.get("wallet_address"),
        tag=fields.get("tag"),
        followers=fields.get("followers") or 0,
    )


def normalize_person(value: Any, *, fallback_avatar: str = FALLBACK_AVATAR) -> NormalizedPerson | None:
    record = to_person_record(value)
    if record is None:
        return None
    return _person_from(_person_fields(record), fallback_avatar)


def _merge_into(merged: dict[str, dict[str, Any]], fields: dict[str, Any]) -> None:
    author_id = fields["id"]
    if author_id is None:
        return
    current = merged.setdefault(author_id, {"id": author_id})
    for name in PERSON_FIELDS:
        if current.get(name) is None and fields.get(name) is not None:
            current[name] = fields[name]


def build_author_index(
    author_records: Iterable[Any],
    inline_fragments: Iterable[Any] = (),
) -> Mapping[str, NormalizedPerson]:
    """Index authors by id, merging field by field.

    Full author records win over inline fragments for every field they
    provide; fields neither provides take the NormalizedPerson defaults.
    """
    merged: dict[str, dict[str, Any]] = {}
    for record in author_records:
        person_record = to_person_record(record)
        if person_record is not None:
            _merge_into(merged, _person_fields(person_record))
    for fragment in inline_fragments:
        if isinstance(fragment, Mapping):
            _merge_into(merged, _fragment_fields(fragment))
    return MappingProxyType({author_id: _person_from(fields) for author_id, fields in merged.items()})


def _profile_listings(root: Mapping[str, Any]) -> list:
    for name in PROFILE_LISTING_FIELDS:
        value = root.get(name)
        if isinstance(value, list):
            return value
    return []


class AuthorDirectory:
    def __init__(
        self,
        client: StorefrontClient,
        *,
        url: str | None = None,
        sellers_url: str | None = None,
    ) -> None:
        self.client = client
        self.url = url or endpoint_url("authors")
        self.sellers_url = sellers_url or endpoint_url("top_sellers")

    async def _get(self, params: Mapping[str, Any] | None = None) -> Any:
        return await retry_async(self.client.get_json)(self.url, params)

    async def fetch_all(self) -> list:
        """Raw author records from the full-authors endpoint; empty on failure."""
        try:
            payload = await self._get()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Authors list unavailable: %s", exc)
            return []
        root = unwrap_root(payload)
        return list(root) if isinstance(root, list) else []

    async def fetch_top_sellers(self) -> tuple[NormalizedPerson, ...]:
        try:
            payload = await retry_async(self.client.get_json)(self.sellers_url, None)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Top sellers unavailable: %s", exc)
            return ()
        root = unwrap_root(payload)
        if not isinstance(root, list):
            return ()
        sellers = (normalize_person(record) for record in root)
        return tuple(seller for seller in sellers if seller is not None)

    async def fetch_profile(
        self, author_id: str, *, countdowns: CountdownCache | None = None
    ) -> AuthorProfile | None:
        try:
            payload = await self._get({"author": str(author_id)})
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Author %s unavailable: %s", author_id, exc)
            return None
        root = unwrap_root(payload)
        if isinstance(root, list):
            root = root[0] if root else None
        if not isinstance(root, Mapping):
            return None
        fields = _person_fields(root)
        if fields["id"] is None:
            fields["id"] = str(author_id)
        person = _person_from(fields)
        listings = tuple(
            normalize_listing(
                record,
                index,
                authors={person.id: person},
                countdowns=countdowns,
            )
            for index, record in enumerate(_profile_listings(root))
        )
        # the profile's own items carry no author data of their own
        listings = tuple(
            listing if listing.author_id else _with_author(listing, person) for listing in listings
        )
        return AuthorProfile(person=person, listings=listings)


def _with_author(listing: NormalizedListing, person: NormalizedPerson) -> NormalizedListing:
    return replace(
        listing,
        author_id=person.id,
        author_name=person.name,
        author_avatar_url=person.avatar_url,
    )
