import json
from pathlib import Path

import httpx
import pytest

from storefront.ingest.client import StorefrontClient
from storefront.ingest.models import Endpoint
from storefront.logic.authors import AuthorDirectory
from storefront.logic.details import ItemDetailsClient
from storefront.logic.session import StorefrontSession

FIXTURES = Path(__file__).parent / "fixtures" / "http"
API = "https://api.test"


def _load_json(path: str):
    return json.loads((FIXTURES / path).read_text())


@pytest.fixture()
def load_json():
    return _load_json


@pytest.fixture(autouse=True)
def no_retry_delay(monkeypatch):
    monkeypatch.setattr("storefront.utils.retry.BASE_DELAY", 0.0)


@pytest.fixture()
def explore_endpoints():
    return [Endpoint(name=name, url=f"{API}/{name}") for name in ("explore", "marketplace", "nfts")]


@pytest.fixture()
def upstream():
    """Request key -> (status, json body) served by the mock transport.

    The key is the path, plus ``?author=<id>`` or ``?nftId=<id>`` when the
    request carries one of those parameters.
    """
    return {
        "/explore": (500, {"error": "down"}),
        "/marketplace": (200, _load_json("explore_nested.json")),
        "/authors": (200, _load_json("authors.json")),
        "/authors?author=7": (200, _load_json("author_profile.json")),
        "/authors?author=404": (200, {"data": []}),
        "/topSellers": (200, _load_json("top_sellers.json")),
        "/itemDetails?nftId=301": (200, _load_json("item_details.json")),
        "/itemDetails?nftId=999": (200, {}),
    }


@pytest.fixture()
def make_session(upstream, explore_endpoints):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        key = request.url.path
        for name in ("author", "nftId"):
            if name in request.url.params:
                key = f"{key}?{name}={request.url.params[name]}"
        status, body = upstream.get(key, (404, {"error": "not found"}))
        return httpx.Response(status, json=body)

    def factory(**kwargs) -> StorefrontSession:
        client = StorefrontClient(session=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        session = StorefrontSession(
            client,
            endpoints=kwargs.pop("endpoints", explore_endpoints),
            min_display=kwargs.pop("min_display", 0.0),
            authors=AuthorDirectory(client, url=f"{API}/authors", sellers_url=f"{API}/topSellers"),
            details=ItemDetailsClient(client, url=f"{API}/itemDetails"),
            **kwargs,
        )
        session.requests = requests
        return session

    return factory
