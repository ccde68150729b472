"""Countdown derivation from heterogeneous time-remaining encodings.

Duration encodings (free text, bare numbers, ``{days, hours, ...}``) are
relative to the moment of resolution, so the result depends on the clock.
Absolute encodings (epoch numbers, date strings) do not.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import AsyncIterator, Callable, Mapping
from typing import Any

from storefront.logic.fields import dig, first_present, is_present, to_number
from storefront.utils.dates import epoch_to_ms, now_ms, parse_timestamp_ms

logger = logging.getLogger(__name__)

COUNTDOWN_FIELDS = (
    "countdown", "countDown", "countdownText", "countdown_text", "timeLeft", "time_left",
    "remaining", "remainingTime", "remaining_time", "expiresIn", "expires_in", "timer", "timerText",
)
NESTED_DATE_FIELDS = ("date", "endDate", "endTime", "endsAt", "end")
ABSOLUTE_DATE_FIELDS = (
    "countdown_end", "countdownEnd", "auction_end", "auctionEnd", "endDate", "endTime",
    "endsAt", "expiresAt", "expiryDate", "deadline",
)
MS_DURATION_THRESHOLD = 100_000

DURATION_RE = re.compile(
    r"""^\s*
    (?:(?P<days>\d+)\s*d(?:ays?)?[\s,]*)?
    (?:(?P<hours>\d+)\s*h(?:(?:ou)?rs?)?[\s,]*)?
    (?:(?P<minutes>\d+)\s*m(?:in(?:ute)?s?)?[\s,]*)?
    (?:(?P<seconds>\d+)\s*s(?:ec(?:ond)?s?)?)?
    \s*$""",
    re.IGNORECASE | re.VERBOSE,
)


def parse_duration_text(text: str) -> int | None:
    """``"2d 3h 10m"`` -> total seconds; None unless at least one unit matched."""
    match = DURATION_RE.match(text)
    if not match or not any(match.groupdict().values()):
        return None
    parts = {name: int(value or 0) for name, value in match.groupdict().items()}
    return parts["days"] * 86400 + parts["hours"] * 3600 + parts["minutes"] * 60 + parts["seconds"]


def _numeric_duration_ms(value: float) -> int:
    if value > MS_DURATION_THRESHOLD:
        return int(value)
    return int(value * 1000)


def _structured_seconds(raw: Mapping[str, Any]) -> float | None:
    if any(raw.get(key) is not None for key in ("days", "hours", "minutes")):
        total = 0.0
        for key, scale in (("days", 86400), ("hours", 3600), ("minutes", 60), ("seconds", 1)):
            number = to_number(raw.get(key))
            if raw.get(key) is not None and number is None:
                return None
            total += (number or 0.0) * scale
        return total
    return first_present(raw, (("seconds",), ("secs",), ("s",)), numeric=True)


def date_value_to_ms(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return epoch_to_ms(float(value))
    if isinstance(value, str):
        # numeric strings are epochs, same as bare numbers
        number = to_number(value)
        if number is not None:
            return epoch_to_ms(number)
        return parse_timestamp_ms(value)
    return None


def _from_countdown_value(raw: Any, now: int) -> int | None:
    if isinstance(raw, str):
        seconds = parse_duration_text(raw)
        if seconds is not None:
            return now + seconds * 1000
        number = to_number(raw)
        if number is not None:
            return now + _numeric_duration_ms(number)
        return None
    number = to_number(raw)
    if number is not None:
        return now + _numeric_duration_ms(number)
    if isinstance(raw, Mapping):
        seconds = _structured_seconds(raw)
        if seconds is not None:
            return now + int(seconds * 1000)
        for key in NESTED_DATE_FIELDS:
            if is_present(raw.get(key)):
                end = date_value_to_ms(raw[key])
                if end is not None:
                    return end
    return None


def resolve_end_timestamp(record: Any, now_ms: int | None = None) -> int | None:
    """Absolute end time in epoch ms for ``record``, or None when it has no countdown."""
    if not isinstance(record, Mapping):
        return None
    now = _clock() if now_ms is None else now_ms
    raw = first_present(record, tuple((key,) for key in COUNTDOWN_FIELDS))
    if raw is None:
        seconds = _structured_seconds(record)
        if seconds is not None:
            return now + int(seconds * 1000)
    else:
        end = _from_countdown_value(raw, now)
        if end is not None:
            return end
    for key in ABSOLUTE_DATE_FIELDS:
        value = dig(record, (key,))
        if is_present(value):
            end = date_value_to_ms(value)
            if end is not None:
                return end
    return None


def format_remaining(end_ms: int, now_ms: int) -> str:
    total = max(0, int(end_ms - now_ms) // 1000)
    days, rest = divmod(total, 86400)
    hours, rest = divmod(rest, 3600)
    minutes, seconds = divmod(rest, 60)
    if days > 0:
        return f"{days}d {hours}h {minutes}m {seconds}s"
    return f"{hours}h {minutes}m {seconds}s"


def _clock() -> int:
    return now_ms()


async def ticks(
    end_ms: int,
    *,
    interval: float = 1.0,
    clock: Callable[[], int] | None = None,
) -> AsyncIterator[str]:
    """Yield the remaining time once per ``interval`` until it reaches zero."""
    clock = clock or _clock
    while True:
        now = clock()
        yield format_remaining(end_ms, now)
        if now >= end_ms:
            return
        await asyncio.sleep(interval)


class CountdownCache:
    """Per-session end timestamps, written once per listing id.

    Re-fetching the same listings must not restart their countdowns, so the
    first resolution for an id is kept for the rest of the session. A
    ``None`` result is kept as well.
    """

    def __init__(self) -> None:
        self._ends: dict[str, int | None] = {}

    def __contains__(self, listing_id: object) -> bool:
        return listing_id in self._ends

    def __len__(self) -> int:
        return len(self._ends)

    def get(self, listing_id: str) -> int | None:
        return self._ends.get(listing_id)

    def end_for(self, listing_id: str, record: Any, now_ms: int | None = None) -> int | None:
        if listing_id in self._ends:
            return self._ends[listing_id]
        end = resolve_end_timestamp(record, now_ms)
        self._ends[listing_id] = end
        logger.debug("Countdown for %s resolved to %s", listing_id, end)
        return end
