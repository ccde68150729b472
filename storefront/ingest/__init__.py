"""Upstream endpoint configuration."""

from __future__ import annotations

import functools
import os
import pathlib
from typing import Any

import yaml

from storefront.ingest.models import Endpoint

ENDPOINTS_PATH = pathlib.Path(__file__).with_name("endpoints.yml")
DEFAULT_API_BASE = "https://us-central1-nft-cloud-functions.cloudfunctions.net"


def api_base() -> str:
    return os.environ.get("STOREFRONT_API_BASE", DEFAULT_API_BASE).rstrip("/")


@functools.lru_cache(maxsize=1)
def _load_config() -> dict[str, list[dict[str, Any]]]:
    return yaml.safe_load(ENDPOINTS_PATH.read_text()) or {}


def surfaces() -> list[str]:
    return list(_load_config())


def _params_fn(static: dict[str, Any], sort_param: str | None, sort: str | None):
    def params() -> dict[str, Any]:
        query = dict(static)
        if sort and sort_param:
            query[sort_param] = sort
        return query
    return params


def load_endpoints(surface: str, *, sort: str | None = None) -> list[Endpoint]:
    try:
        entries = _load_config()[surface]
    except KeyError:
        raise KeyError(f"Unknown storefront surface: {surface}") from None
    base = api_base()
    return [
        Endpoint(
            name=entry["name"],
            url=f"{base}{entry['path']}",
            params_fn=_params_fn(entry.get("params") or {}, entry.get("sort_param"), sort),
        )
        for entry in entries
    ]


def endpoint_url(surface: str) -> str:
    """URL of the single endpoint configured for ``surface``."""
    return load_endpoints(surface)[0].url
