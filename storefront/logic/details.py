"""Item detail pages: the listing plus its owner, creator and owner history."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from storefront.ingest import endpoint_url
from storefront.ingest.client import StorefrontClient
from storefront.ingest.models import ItemDetail, NormalizedPerson
from storefront.logic.authors import normalize_person, to_person_record
from storefront.logic.countdown import CountdownCache
from storefront.logic.fields import first_present, is_present, resolve_str
from storefront.logic.listings import FALLBACK_AVATAR, UNKNOWN_NAME, normalize_listing
from storefront.logic.shapes import unwrap_root
from storefront.utils.retry import retry_async

logger = logging.getLogger(__name__)

HISTORY_FIELDS = ("owners", "ownerHistory", "history", "ownerList", "ownersList")
OWNER_FIELDS = ("owner", "currentOwner", "seller", "ownerData", "ownerDetails")
CREATOR_FIELDS = ("creator", "author", "creatorData", "creatorDetails")


def owner_history(item: Mapping[str, Any]) -> tuple[NormalizedPerson, ...]:
    """Normalized owner history, de-duplicated on (id, name, avatar)."""
    raw = next((item[name] for name in HISTORY_FIELDS if isinstance(item.get(name), list)), [])
    seen: set[tuple[str | None, str, str]] = set()
    owners: list[NormalizedPerson] = []
    for entry in raw:
        person = normalize_person(entry)
        if person is None:
            continue
        key = (person.id, person.name, person.avatar_url)
        if key in seen:
            continue
        seen.add(key)
        owners.append(person)
    return tuple(owners)


def _role_record(item: Mapping[str, Any], fields: tuple[str, ...], prefix: str) -> Mapping[str, Any] | None:
    value = first_present(item, tuple((name,) for name in fields))
    if value is not None:
        return to_person_record(value)
    flat = {
        "authorId": item.get(f"{prefix}Id"),
        "name": item.get(f"{prefix}Name"),
        "avatar": item.get(f"{prefix}Image"),
    }
    if any(is_present(v) for v in flat.values()):
        return flat
    return None


def _avatar(
    person_id: str | None,
    record: Mapping[str, Any] | None,
    authors: Mapping[str, NormalizedPerson],
) -> str | None:
    indexed = authors.get(person_id) if person_id else None
    if indexed is not None and indexed.avatar_url != FALLBACK_AVATAR:
        return indexed.avatar_url
    if record is not None:
        return resolve_str(record, "person_avatar")
    return None


def resolve_owner(
    item: Mapping[str, Any],
    authors: Mapping[str, NormalizedPerson],
    history: tuple[NormalizedPerson, ...] = (),
) -> NormalizedPerson:
    record = _role_record(item, OWNER_FIELDS, "owner")
    first = history[0] if history else None
    owner_id = resolve_str(record, "person_id") if record else None
    if owner_id is None and first is not None:
        owner_id = first.id
    name = resolve_str(record, "person_name") if record else None
    if name is None and first is not None:
        name = first.name
    avatar = _avatar(owner_id, record, authors) or (first.avatar_url if first else None)
    return NormalizedPerson(id=owner_id, name=name or UNKNOWN_NAME, avatar_url=avatar or FALLBACK_AVATAR)


def resolve_creator(item: Mapping[str, Any], authors: Mapping[str, NormalizedPerson]) -> NormalizedPerson:
    record = _role_record(item, CREATOR_FIELDS, "creator")
    creator_id = resolve_str(record, "person_id") if record else None
    name = resolve_str(record, "person_name") if record else None
    avatar = _avatar(creator_id, record, authors)
    return NormalizedPerson(id=creator_id, name=name or UNKNOWN_NAME, avatar_url=avatar or FALLBACK_AVATAR)


def build_item_detail(
    item: Mapping[str, Any],
    *,
    authors: Mapping[str, NormalizedPerson] | None = None,
    countdowns: CountdownCache | None = None,
    now_ms: int | None = None,
) -> ItemDetail:
    authors = authors or {}
    history = owner_history(item)
    return ItemDetail(
        listing=normalize_listing(item, 0, authors=authors, countdowns=countdowns, now_ms=now_ms),
        owner=resolve_owner(item, authors, history),
        creator=resolve_creator(item, authors),
        owners=history,
        description=resolve_str(item, "description"),
    )


class ItemDetailsClient:
    def __init__(self, client: StorefrontClient, *, url: str | None = None) -> None:
        self.client = client
        self.url = url or endpoint_url("item_details")

    async def fetch(
        self,
        item_id: str,
        *,
        authors: Mapping[str, NormalizedPerson] | None = None,
        countdowns: CountdownCache | None = None,
    ) -> ItemDetail | None:
        try:
            payload = await retry_async(self.client.get_json)(self.url, {"nftId": str(item_id)})
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Item %s unavailable: %s", item_id, exc)
            return None
        item = unwrap_root(payload)
        if not isinstance(item, Mapping) or not any(is_present(value) for value in item.values()):
            return None
        item = {"nftId": str(item_id), **item}
        return build_item_detail(item, authors=authors, countdowns=countdowns)
