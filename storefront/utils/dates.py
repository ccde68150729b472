"""Datetime helpers."""

from __future__ import annotations

import math
import os

import pendulum

DEFAULT_TZ = "UTC"


def timezone_name() -> str:
    return os.environ.get("STOREFRONT_TIMEZONE", DEFAULT_TZ)


def now_ms() -> int:
    """Wall clock in epoch milliseconds."""
    return int(pendulum.now("UTC").timestamp() * 1000)


def epoch_to_ms(value: float) -> int | None:
    """Scale an epoch number to milliseconds; values below 1e12 are seconds."""
    if not math.isfinite(value):
        return None
    if value < 1e12:
        return int(value * 1000)
    return int(value)


def parse_timestamp_ms(value: str) -> int | None:
    """Parse a date/time string into epoch milliseconds, or None."""
    text = value.strip()
    if not text:
        return None
    try:
        parsed = pendulum.parse(text, tz=pendulum.timezone(timezone_name()), strict=False)
    except (ValueError, TypeError, OverflowError):
        return None
    if not isinstance(parsed, pendulum.DateTime):
        # a bare date means midnight; times and durations are rejected
        if isinstance(parsed, pendulum.Date):
            parsed = pendulum.datetime(parsed.year, parsed.month, parsed.day, tz=timezone_name())
        else:
            return None
    return int(parsed.timestamp() * 1000)
