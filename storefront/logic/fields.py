"""Field resolution over upstream records of unknown shape.

Every canonical field has an ordered list of candidate paths. A path is a
tuple of keys; nested steps only descend through mappings. The first path
whose value is present wins, where present means not ``None`` and, for
strings, not blank. Numeric kinds additionally require a finite number.

Nothing here raises: absence is always ``None`` (or the caller's default).
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

Path = tuple[str, ...]

PERSON_KEYS = ("author", "creator", "owner", "seller")
AVATAR_KEYS = ("authorImage", "profileImg", "profileImage", "avatar", "image")


def _nested(keys: tuple[str, ...], prefixes: tuple[str, ...] = PERSON_KEYS) -> tuple[Path, ...]:
    return tuple((prefix, key) for prefix in prefixes for key in keys)


FIELD_PATHS: dict[str, tuple[Path, ...]] = {
    "id": (("nftId",), ("id",), ("_id",), ("tokenId",)),
    "title": (("title",), ("name",)),
    "image": (("nftImage",), ("image",), ("imageUrl",), ("img",)),
    "price": (("price",), ("nftPrice",)),
    "likes": (("likes",), ("favoriteCount",), ("favorites",)),
    # authorId only. Some listing endpoints put NFT identifiers in authorId;
    # that is an upstream ambiguity and is not corrected here.
    "author_ref": (("authorId",),) + _nested(("authorId",)),
    "author_name": (("authorName",), ("creatorName",)) + _nested(("authorName", "name")),
    "author_avatar": (("authorImage",), ("authorAvatar",)) + _nested(AVATAR_KEYS, ("author", "creator", "owner")),
    "wallet": (("address",), ("wallet",), ("walletAddress",)),
    "person_id": (
        ("authorId",), ("id",), ("_id",), ("ownerId",), ("sellerId",), ("creatorId",), ("userId",),
    ),
    "person_name": (
        ("authorName",), ("name",), ("username",), ("tag",), ("handle",), ("ownerName",), ("creatorName",),
    ),
    "person_avatar": (
        ("authorImage",), ("authorAvatar",), ("profileImg",), ("profileImage",), ("profile_image",),
        ("avatar",), ("image",), ("img",), ("ownerImage",), ("creatorImage",),
    ),
    "person_tag": (("tag",), ("username",)),
    "followers": (("followers",), ("followersCount",)),
    "description": (("description",), ("desc",)),
}

NUMERIC_KINDS = frozenset({"price", "likes", "followers"})


def dig(record: Any, path: Path) -> Any:
    value = record
    for key in path:
        if not isinstance(value, Mapping):
            return None
        value = value.get(key)
    return value


def to_number(value: Any) -> float | None:
    """Coerce a JSON scalar to a finite float, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        if "_" in value:
            return None
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def first_present(record: Any, paths: tuple[Path, ...], *, numeric: bool = False) -> Any:
    for path in paths:
        value = dig(record, path)
        if numeric:
            value = to_number(value)
        if is_present(value):
            return value
    return None


def resolve_field(record: Any, kind: str, default: Any = None) -> Any:
    paths = FIELD_PATHS.get(kind)
    if paths is None:
        return default
    value = first_present(record, paths, numeric=kind in NUMERIC_KINDS)
    return default if value is None else value


def as_text(value: Any) -> str | None:
    if value is None or isinstance(value, (bool, Mapping, list)):
        return None
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        if value.is_integer():
            value = int(value)
    text = str(value).strip()
    return text or None


def resolve_str(record: Any, kind: str) -> str | None:
    """Like resolve_field, but only scalar candidates count and ids such as
    ``7`` and ``7.0`` both come back as ``"7"``."""
    for path in FIELD_PATHS.get(kind, ()):
        text = as_text(dig(record, path))
        if text is not None:
            return text
    return None
