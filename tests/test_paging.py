import pytest

from storefront.ingest.models import NormalizedListing
from storefront.logic.listings import format_price
from storefront.logic.paging import (
    LIKES_HIGH_TO_LOW,
    PRICE_HIGH_TO_LOW,
    PRICE_LOW_TO_HIGH,
    ListingPager,
    sort_listings,
)


def make_listing(listing_id, price=None, likes=0):
    return NormalizedListing(
        id=listing_id,
        title=f"Item {listing_id}",
        image_url="https://img.example/x.png",
        price_text=format_price(price),
        price=price,
        like_count=likes,
        author_id=None,
        author_name="Unknown",
        author_avatar_url="https://img.example/a.png",
        countdown_end_ms=None,
    )


@pytest.fixture()
def listings():
    return [
        make_listing("a", 2.0, likes=1),
        make_listing("b", None, likes=9),
        make_listing("c", 0.5, likes=4),
        make_listing("d", 7.0, likes=4),
    ]


def ids(items):
    return [item.id for item in items]


def test_price_orders_put_unpriced_last(listings):
    assert ids(sort_listings(listings, PRICE_LOW_TO_HIGH)) == ["c", "a", "d", "b"]
    assert ids(sort_listings(listings, PRICE_HIGH_TO_LOW)) == ["d", "a", "c", "b"]


def test_likes_order_is_stable(listings):
    assert ids(sort_listings(listings, LIKES_HIGH_TO_LOW)) == ["b", "c", "d", "a"]


def test_no_sort_keeps_upstream_order(listings):
    assert ids(sort_listings(listings, None)) == ["a", "b", "c", "d"]
    assert ids(sort_listings(listings, "")) == ["a", "b", "c", "d"]


def test_unknown_sort_key(listings):
    with pytest.raises(ValueError):
        sort_listings(listings, "newest")
    with pytest.raises(ValueError):
        ListingPager(listings).set_sort("newest")


def test_sort_does_not_mutate_the_sequence(listings):
    pager = ListingPager(listings)
    pager.set_sort(PRICE_HIGH_TO_LOW)
    pager.visible()
    assert ids(listings) == ["a", "b", "c", "d"]


def test_load_more_grows_window_to_the_end():
    pager = ListingPager([make_listing(str(i)) for i in range(10)], initial=8, step=4)
    assert len(pager.visible()) == 8
    assert pager.can_load_more
    pager.load_more()
    assert pager.window == 10
    assert not pager.can_load_more
    pager.load_more()
    assert len(pager.visible()) == 10


def test_window_never_exceeds_short_sequences(listings):
    pager = ListingPager(listings, initial=8, step=4)
    assert pager.window == 4
    assert not pager.can_load_more


def test_reset_restores_initial_window():
    pager = ListingPager([make_listing(str(i)) for i in range(20)], initial=8, step=4)
    pager.load_more()
    pager.load_more(step=2)
    assert pager.window == 14
    pager.reset([make_listing(str(i)) for i in range(12)])
    assert pager.window == 8
    assert len(pager) == 12


def test_sort_applies_before_windowing():
    items = [make_listing(str(i), price=float(i)) for i in range(10)]
    pager = ListingPager(items, initial=3, step=3)
    pager.set_sort(PRICE_HIGH_TO_LOW)
    assert ids(pager.visible()) == ["9", "8", "7"]


def test_non_positive_steps_are_ignored():
    pager = ListingPager([make_listing(str(i)) for i in range(12)], initial=4, step=4)
    pager.load_more(-5)
    assert pager.window == 4
    pager.load_more(0)
    assert pager.window == 4
    pager.load_more()
    assert pager.window == 8
