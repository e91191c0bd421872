"""TTL behaviour of the per-wallet trade cache."""
import asyncio

from tradejournal.cache.wallet_cache import WalletTradeCache
from tradejournal.core.constants import MS_PER_MINUTE
from tradejournal.ingestion.normalizer import normalize_trades

from fakes import FakeClock, raw_trade

TTL_MS = 5 * MS_PER_MINUTE


def make_cache():
    clock = FakeClock()
    return WalletTradeCache(ttl_minutes=5, clock=clock), clock


def sample_trades():
    return normalize_trades([raw_trade(signature="a"), raw_trade(signature="b")])


def test_absent_wallet():
    cache, _ = make_cache()
    assert cache.get("w1") is None
    assert cache.is_valid("w1") is False
    assert cache.written_at("w1") is None


def test_set_then_get():
    cache, clock = make_cache()
    trades = sample_trades()
    cache.set("w1", trades)

    assert cache.get("w1") == trades
    assert cache.written_at("w1") == clock.now
    assert "w1" in cache


def test_ttl_boundary():
    cache, clock = make_cache()
    cache.set("w1", sample_trades())
    written = clock.now

    clock.now = written + TTL_MS - 1
    assert cache.is_valid("w1") is True

    clock.now = written + TTL_MS
    assert cache.is_valid("w1") is True

    clock.now = written + TTL_MS + 1
    assert cache.is_valid("w1") is False


def test_stale_entry_is_evicted_on_read():
    cache, clock = make_cache()
    cache.set("w1", sample_trades())
    clock.advance(TTL_MS + 1)

    assert cache.get("w1") is None
    # gone for good, even for a more lenient check
    assert cache.is_valid("w1", max_age_minutes=60) is False


def test_caller_can_override_max_age():
    cache, clock = make_cache()
    cache.set("w1", sample_trades())
    clock.advance(2 * MS_PER_MINUTE)

    assert cache.is_valid("w1", max_age_minutes=1) is False
    assert cache.is_valid("w1") is True
    clock.advance(10 * MS_PER_MINUTE)
    assert cache.is_valid("w1", max_age_minutes=30) is True
    assert cache.get("w1", max_age_minutes=30) is not None


def test_set_replaces_and_resets_clock():
    cache, clock = make_cache()
    cache.set("w1", sample_trades())
    clock.advance(4 * MS_PER_MINUTE)
    replacement = normalize_trades([raw_trade(signature="z")])
    cache.set("w1", replacement)
    clock.advance(4 * MS_PER_MINUTE)

    assert cache.get("w1") == replacement


def test_invalidate_only_touches_one_wallet():
    cache, _ = make_cache()
    cache.set("w1", sample_trades())
    cache.set("w2", sample_trades())

    cache.invalidate("w1")
    cache.invalidate("unknown")

    assert cache.get("w1") is None
    assert cache.get("w2") is not None


def test_clear():
    cache, _ = make_cache()
    cache.set("w1", sample_trades())
    cache.clear()
    assert cache.get("w1") is None


def test_returned_list_is_a_copy():
    cache, _ = make_cache()
    cache.set("w1", sample_trades())
    cache.get("w1").clear()
    assert len(cache.get("w1")) == 2


def test_locks_are_per_wallet():
    cache, _ = make_cache()
    assert cache.lock("w1") is cache.lock("w1")
    assert cache.lock("w1") is not cache.lock("w2")


def test_lock_serializes_same_wallet():
    cache, _ = make_cache()
    order = []

    async def writer(name, trades):
        async with cache.lock("w1"):
            order.append(f"{name}-start")
            await asyncio.sleep(0)
            cache.set("w1", trades)
            order.append(f"{name}-end")

    async def main():
        await asyncio.gather(
            writer("first", sample_trades()),
            writer("second", normalize_trades([raw_trade(signature="z")])),
        )

    asyncio.run(main())
    assert order == ["first-start", "first-end", "second-start", "second-end"]
    assert [t.identifier for t in cache.get("w1")] == ["z"]


def test_entry_keeps_upstream_total_and_page_size():
    cache, _ = make_cache()
    cache.set("w1", sample_trades(), total_count=40, page_size=2)
    entry = cache.entry("w1")

    assert entry.total_count == 40
    assert entry.page_size == 2
    assert entry.upstream_total == 40


def test_entry_without_total_counts_its_trades():
    cache, _ = make_cache()
    cache.set("w1", sample_trades())
    entry = cache.entry("w1")

    assert entry.page_size is None
    assert entry.upstream_total == 2


def test_stale_entry_is_evicted_on_lookup():
    cache, clock = make_cache()
    cache.set("w1", sample_trades(), total_count=2, page_size=2)
    clock.advance(TTL_MS + 1)
    assert cache.entry("w1") is None
    assert cache.written_at("w1") is None


def test_invalidate_drops_idle_lock():
    cache, _ = make_cache()
    first = cache.lock("w1")
    cache.lock("w2")
    cache.invalidate("w1")

    assert cache.lock("w1") is not first
    assert set(cache._locks) == {"w1", "w2"}


def test_invalidate_keeps_held_lock():
    cache, _ = make_cache()

    async def main():
        held = cache.lock("w1")
        async with held:
            cache.invalidate("w1")
            return held, cache.lock("w1")

    held, current = asyncio.run(main())
    assert current is held


def test_clear_drops_idle_locks():
    cache, _ = make_cache()
    cache.lock("w1")
    cache.lock("w2")
    cache.clear()
    assert cache._locks == {}


def test_invalidation_listeners_are_told_which_wallet():
    cache, _ = make_cache()
    seen = []
    cache.add_invalidation_listener(seen.append)

    cache.invalidate("w1")
    cache.clear()
    assert seen == ["w1", None]


def test_failing_listener_does_not_block_invalidation():
    cache, _ = make_cache()
    seen = []

    def broken(wallet_id):
        raise RuntimeError("boom")

    cache.add_invalidation_listener(broken)
    cache.add_invalidation_listener(seen.append)
    cache.set("w1", sample_trades())
    cache.invalidate("w1")

    assert cache.get("w1") is None
    assert seen == ["w1"]
