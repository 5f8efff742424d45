"""Tests for scan-based post discovery."""

import asyncio

import pytest

from app.adapters.ledger.client_cache import LedgerClientCache
from app.services.post_discovery import PostDiscovery
from conftest import CID, CREATOR_ADDRESS, OTHER_CREATOR_ADDRESS, FakeConnector, FakeLedger

GATEWAY = "https://gateway.example/ipfs"


def _discovery(ledger: LedgerClientCache, **kwargs) -> PostDiscovery:
    options = {"scan_upper_bound": 10, "concurrency": 4, "timeout_seconds": 5, "gateway": GATEWAY}
    options.update(kwargs)
    return PostDiscovery(ledger, **options)


@pytest.mark.asyncio
async def test_list_all_posts_newest_first(ledger: LedgerClientCache, fake_ledger: FakeLedger) -> None:
    fake_ledger.put_creator(CREATOR_ADDRESS, "Alice")
    fake_ledger.put_post(3, CREATOR_ADDRESS)
    fake_ledger.put_post(7, CREATOR_ADDRESS, is_free=False, contributions=5 * 10**17)

    posts = await _discovery(ledger).list_all_posts()

    assert [p.id for p in posts] == [7, 3]
    assert posts[0].is_premium is True
    assert posts[0].contributions == "500000000000000000"
    assert posts[0].creator_name == "Alice"
    assert posts[0].content_url == f"{GATEWAY}/{CID}"
    assert posts[0].title == "Post #7"
    assert sorted(fake_ledger.post_lookups) == list(range(1, 11))


@pytest.mark.asyncio
async def test_failing_id_is_skipped(ledger: LedgerClientCache, fake_ledger: FakeLedger) -> None:
    for post_id in (1, 2, 3):
        fake_ledger.put_post(post_id, CREATOR_ADDRESS)
    fake_ledger.failing_post_ids = {2}

    posts = await _discovery(ledger).list_all_posts()

    assert [p.id for p in posts] == [3, 1]


@pytest.mark.asyncio
async def test_unregistered_creator_name_is_anonymous(ledger: LedgerClientCache, fake_ledger: FakeLedger) -> None:
    fake_ledger.put_post(1, OTHER_CREATOR_ADDRESS)

    posts = await _discovery(ledger).list_all_posts()

    assert posts[0].creator_name == "Anonymous"


@pytest.mark.asyncio
async def test_ledger_unavailable_yields_empty_list(ledger: LedgerClientCache, fake_ledger: FakeLedger) -> None:
    fake_ledger.put_post(1, CREATOR_ADDRESS)
    fake_ledger.unavailable = True

    assert await _discovery(ledger).list_all_posts() == []


@pytest.mark.asyncio
async def test_not_deployed_yields_empty_list(ledger: LedgerClientCache, connector: FakeConnector) -> None:
    connector.code = b""

    assert await _discovery(ledger).list_all_posts() == []
    assert await _discovery(ledger).list_posts_by_creator(CREATOR_ADDRESS) == []


@pytest.mark.asyncio
async def test_creator_posts_prefer_owned_ids(ledger: LedgerClientCache, fake_ledger: FakeLedger) -> None:
    fake_ledger.put_creator(CREATOR_ADDRESS, "Alice", post_ids=(2, 5))
    fake_ledger.put_post(2, CREATOR_ADDRESS)
    fake_ledger.put_post(5, CREATOR_ADDRESS)
    fake_ledger.put_post(6, OTHER_CREATOR_ADDRESS)

    posts = await _discovery(ledger).list_posts_by_creator(CREATOR_ADDRESS)

    assert [p.id for p in posts] == [5, 2]
    assert sorted(fake_ledger.post_lookups) == [2, 5]


@pytest.mark.asyncio
async def test_creator_posts_fall_back_to_scan(ledger: LedgerClientCache, fake_ledger: FakeLedger) -> None:
    fake_ledger.put_creator(CREATOR_ADDRESS, "Alice")
    fake_ledger.put_post(1, CREATOR_ADDRESS)
    fake_ledger.put_post(4, OTHER_CREATOR_ADDRESS)
    fake_ledger.put_post(9, CREATOR_ADDRESS)

    posts = await _discovery(ledger).list_posts_by_creator(CREATOR_ADDRESS.upper().replace("0X", "0x"))

    assert [p.id for p in posts] == [9, 1]
    assert all(p.creator_name == "Alice" for p in posts)


@pytest.mark.asyncio
async def test_creator_posts_for_unregistered_or_invalid(ledger: LedgerClientCache, fake_ledger: FakeLedger) -> None:
    fake_ledger.put_post(1, CREATOR_ADDRESS)
    discovery = _discovery(ledger)

    assert await discovery.list_posts_by_creator(CREATOR_ADDRESS) == []
    assert await discovery.list_posts_by_creator("not-an-address") == []


@pytest.mark.asyncio
async def test_get_post(ledger: LedgerClientCache, fake_ledger: FakeLedger) -> None:
    fake_ledger.put_creator(CREATOR_ADDRESS, "Alice")
    fake_ledger.put_post(4, CREATOR_ADDRESS)
    discovery = _discovery(ledger)

    post = await discovery.get_post(4)
    assert post is not None
    assert post.creator_name == "Alice"
    assert await discovery.get_post(5) is None
    assert await discovery.get_post(0) is None


@pytest.mark.asyncio
async def test_scan_deadline_returns_partial_results(ledger: LedgerClientCache, fake_ledger: FakeLedger) -> None:
    fake_ledger.put_post(1, CREATOR_ADDRESS)
    fake_ledger.put_post(2, CREATOR_ADDRESS)
    original = fake_ledger.get_post

    async def slow_get_post(post_id: int):
        if post_id == 2:
            await asyncio.sleep(10)
        return await original(post_id)

    fake_ledger.get_post = slow_get_post  # type: ignore[method-assign]

    posts = await _discovery(ledger, scan_upper_bound=3, timeout_seconds=0.2).list_all_posts()

    assert [p.id for p in posts] == [1]


@pytest.mark.asyncio
async def test_lookups_respect_concurrency_bound(ledger: LedgerClientCache, fake_ledger: FakeLedger) -> None:
    in_flight = 0
    peak = 0
    original = fake_ledger.get_post

    async def counting_get_post(post_id: int):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return await original(post_id)

    fake_ledger.get_post = counting_get_post  # type: ignore[method-assign]

    await _discovery(ledger, scan_upper_bound=12, concurrency=3).list_all_posts()

    assert peak <= 3


@pytest.mark.asyncio
async def test_explicit_zero_upper_bound_scans_nothing(ledger: LedgerClientCache, fake_ledger: FakeLedger) -> None:
    fake_ledger.put_post(1, CREATOR_ADDRESS)
    discovery = _discovery(ledger, scan_upper_bound=0)

    assert discovery.scan_upper_bound == 0
    assert await discovery.list_all_posts() == []
    assert fake_ledger.post_lookups == []


@pytest.mark.asyncio
async def test_cancelled_scan_cancels_lookups(ledger: LedgerClientCache, fake_ledger: FakeLedger) -> None:
    started: list[int] = []
    cancelled: list[int] = []

    async def hanging_get_post(post_id: int):
        started.append(post_id)
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.append(post_id)
            raise

    fake_ledger.get_post = hanging_get_post  # type: ignore[method-assign]

    scan = asyncio.create_task(_discovery(ledger, scan_upper_bound=3).list_all_posts())
    while len(started) < 3:
        await asyncio.sleep(0.01)
    scan.cancel()
    with pytest.raises(asyncio.CancelledError):
        await scan
    await asyncio.sleep(0.01)

    assert sorted(cancelled) == [1, 2, 3]
