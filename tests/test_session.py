import pytest

from storefront.ingest.models import Status


@pytest.mark.asyncio
async def test_refresh_resolves_fallback_and_authors(make_session):
    session = make_session()
    state = await session.refresh()

    assert state.status is Status.SUCCESS
    assert state.source_index == 1
    assert [listing.id for listing in state.listings] == ["101", "102", "idx-2"]
    assert state.listings[0].author_name == "Anne"
    assert state.authors["7"].wallet_address == "0xabc"
    assert len(session.pager) == 3
    await session.close()


@pytest.mark.asyncio
async def test_countdowns_survive_refresh(make_session):
    session = make_session()
    first = await session.refresh()
    second = await session.refresh()
    assert first.listings[0].countdown_end_ms == second.listings[0].countdown_end_ms
    assert first.listings[1].countdown_end_ms == second.listings[1].countdown_end_ms
    await session.close()


@pytest.mark.asyncio
async def test_failed_author_refresh_keeps_previous_records(make_session, upstream):
    session = make_session()
    await session.refresh()
    upstream["/authors"] = (500, {"error": "down"})
    state = await session.refresh()
    assert state.authors["7"].name == "Anne"
    await session.close()


@pytest.mark.asyncio
async def test_unavailable_surface(make_session, upstream):
    upstream["/marketplace"] = (500, {"error": "down"})
    session = make_session()
    state = await session.refresh()
    assert state.status is Status.UNAVAILABLE
    assert len(session.pager) == 0
    paths = [request.url.path for request in session.requests]
    assert paths == ["/authors", "/explore", "/marketplace", "/nfts"]
    await session.close()


@pytest.mark.asyncio
async def test_item_detail_uses_session_authors(make_session):
    session = make_session()
    await session.refresh()
    detail = await session.item_detail("301")
    assert detail.creator.avatar_url == "https://img.example/anne.png"
    assert await session.item_detail("999") is None
    await session.close()


@pytest.mark.asyncio
async def test_author_profile(make_session):
    session = make_session()
    profile = await session.author_profile("7")
    assert profile.person.tag == "anne"
    assert await session.author_profile("404") is None
    await session.close()
