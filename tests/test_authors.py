import httpx
import pytest
import respx

from storefront.ingest.client import StorefrontClient
from storefront.logic.authors import (
    AuthorDirectory,
    build_author_index,
    normalize_person,
    to_person_record,
)
from storefront.logic.countdown import CountdownCache
from storefront.logic.listings import FALLBACK_AVATAR

AUTHORS_URL = "https://api.test/authors"
SELLERS_URL = "https://api.test/topSellers"


def test_full_record_wins_over_inline_fragment():
    index = build_author_index(
        [{"authorId": 7, "authorName": "Anne"}],
        [{"nftId": 1, "authorId": 7, "authorName": "Ann", "authorImage": "https://img.example/ann.png"}],
    )
    assert index["7"].name == "Anne"
    assert index["7"].avatar_url == "https://img.example/ann.png"


def test_fragments_alone_build_entries():
    index = build_author_index([], [{"authorId": 3, "authorName": "Cal"}, {"title": "no author"}])
    assert list(index) == ["3"]
    assert index["3"].name == "Cal"
    assert index["3"].avatar_url == FALLBACK_AVATAR


def test_earliest_record_wins_per_field():
    index = build_author_index([
        {"authorId": 1, "authorName": "First"},
        {"authorId": 1, "authorName": "Second", "followers": 5},
    ])
    assert index["1"].name == "First"
    assert index["1"].followers == 5


def test_index_is_read_only():
    index = build_author_index([{"authorId": 1}])
    with pytest.raises(TypeError):
        index["2"] = index["1"]


def test_bare_ids_are_person_records():
    assert to_person_record(7) == {"authorId": 7}
    assert to_person_record(True) is None
    person = normalize_person("42")
    assert person.id == "42"
    assert person.name == "Unknown"
    assert normalize_person(None) is None


def test_normalize_person_reads_profile_fields(load_json):
    person = normalize_person(load_json("authors.json")[0])
    assert person.id == "7"
    assert person.wallet_address == "0xabc"
    assert person.tag == "anne"
    assert person.followers == 120


@pytest.mark.asyncio
async def test_fetch_profile(load_json):
    async with respx.mock(assert_all_called=True) as router:
        route = router.get(AUTHORS_URL).mock(return_value=httpx.Response(200, json=load_json("author_profile.json")))
        client = StorefrontClient()
        directory = AuthorDirectory(client, url=AUTHORS_URL, sellers_url=SELLERS_URL)
        profile = await directory.fetch_profile("7", countdowns=CountdownCache())
        await client.close()

    assert route.calls.last.request.url.params["author"] == "7"
    assert profile.person.name == "Anne"
    assert profile.person.followers == 120
    (heron,) = profile.listings
    assert heron.id == "201"
    assert heron.author_id == "7"
    assert heron.author_name == "Anne"
    assert heron.author_avatar_url == "https://img.example/anne.png"


@pytest.mark.asyncio
async def test_missing_profile_is_none():
    async with respx.mock(assert_all_called=True) as router:
        router.get(AUTHORS_URL).mock(return_value=httpx.Response(200, json={"data": []}))
        client = StorefrontClient()
        profile = await AuthorDirectory(client, url=AUTHORS_URL, sellers_url=SELLERS_URL).fetch_profile("404")
        await client.close()
    assert profile is None


@pytest.mark.asyncio
async def test_fetch_all_retries_transport_errors(load_json):
    async with respx.mock(assert_all_called=True) as router:
        route = router.get(AUTHORS_URL).mock(
            side_effect=[httpx.ConnectError("reset"), httpx.Response(200, json=load_json("authors.json"))]
        )
        client = StorefrontClient()
        records = await AuthorDirectory(client, url=AUTHORS_URL, sellers_url=SELLERS_URL).fetch_all()
        await client.close()
    assert route.call_count == 2
    assert len(records) == 2


@pytest.mark.asyncio
async def test_fetch_all_failure_is_empty():
    async with respx.mock(assert_all_called=True) as router:
        router.get(AUTHORS_URL).mock(return_value=httpx.Response(503))
        client = StorefrontClient()
        records = await AuthorDirectory(client, url=AUTHORS_URL, sellers_url=SELLERS_URL).fetch_all()
        await client.close()
    assert records == []


@pytest.mark.asyncio
async def test_fetch_top_sellers(load_json):
    async with respx.mock(assert_all_called=True) as router:
        router.get(SELLERS_URL).mock(return_value=httpx.Response(200, json=load_json("top_sellers.json")))
        client = StorefrontClient()
        sellers = await AuthorDirectory(client, url=AUTHORS_URL, sellers_url=SELLERS_URL).fetch_top_sellers()
        await client.close()
    assert [seller.name for seller in sellers] == ["Anne", "Cy"]
    assert sellers[1].avatar_url == FALLBACK_AVATAR
