"""Tests for the rate-limited certificate cache."""

from __future__ import annotations

import asyncio

import pytest

from redirectname.certs.cache import DirCache
from redirectname.certs.ratelimit import (
    WEEK_SECONDS,
    RateLimitedCache,
    apex_domain,
    week_bucket,
)
from redirectname.errors import CacheMiss, RateLimitExceededError

DATA = b"test-cert-data"


class FakeClock:
    """Settable stand-in for time.time."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class MemoryCache:
    """In-memory cache recording writes; can be told to fail."""

    def __init__(self) -> None:
        self.data: dict[str, bytes] = {}
        self.fail_with: Exception | None = None
        self.puts = 0

    async def get(self, key: str) -> bytes:
        try:
            return self.data[key]
        except KeyError:
            raise CacheMiss(key) from None

    async def put(self, key: str, data: bytes) -> None:
        self.puts += 1
        if self.fail_with is not None:
            raise self.fail_with
        self.data[key] = data

    async def delete(self, key: str) -> None:
        self.data.pop(key, None)


class TestApexDomain:
    """Tests for apex_domain()."""

    @pytest.mark.parametrize(
        "key,apex",
        [
            ("example.com", "example.com"),
            ("sub1.example.com", "example.com"),
            ("a.b.c.example.com", "example.com"),
            ("sub1.other.org", "other.org"),
            ("go.example.co.uk", "example.co.uk"),
            ("Sub.Example.COM", "example.com"),
        ],
    )
    def test_domains(self, key, apex):
        """Test eTLD+1 derivation for domain keys."""
        assert apex_domain(key) == apex

    @pytest.mark.parametrize(
        "key",
        ["acme_account+key", "abc123+http-01", "localhost", "", "com", ".example.com", "example.com."],
    )
    def test_non_domains(self, key):
        """Test that keys without a registrable domain return None."""
        assert apex_domain(key) is None

    def test_public_suffix_alone(self):
        """Test that a bare public suffix has no apex."""
        assert apex_domain("co.uk") is None


class TestWeekBucket:
    """Tests for week_bucket()."""

    def test_same_bucket_within_week(self):
        """Test that timestamps inside one 7-day slice share a bucket."""
        start = 10 * WEEK_SECONDS
        assert week_bucket(start) == week_bucket(start + WEEK_SECONDS - 1)

    def test_next_bucket_at_boundary(self):
        """Test that the bucket changes exactly at the boundary."""
        start = 10 * WEEK_SECONDS
        assert week_bucket(start - 1) == 9
        assert week_bucket(start) == 10


class TestRateLimitedCache:
    """Tests for RateLimitedCache."""

    @pytest.mark.asyncio
    async def test_quota_per_apex(self, tmp_path):
        """Test the 2-per-apex limit against a real directory cache."""
        cache = RateLimitedCache(DirCache(tmp_path))

        # First two certs for the same apex succeed
        await cache.put("sub1.example.com", DATA)
        await cache.put("sub2.example.com", DATA)

        # Third cert for the same apex is rate limited
        with pytest.raises(RateLimitExceededError) as exc_info:
            await cache.put("sub3.example.com", DATA)
        assert exc_info.value.apex == "example.com"
        assert exc_info.value.limit == 2
        assert not (tmp_path / "sub3.example.com").exists()

        # Different apex is not affected
        await cache.put("sub1.other.org", DATA)

        # Non-domain keys (e.g., acme account key) bypass rate limiting
        await cache.put("acme_account+key", DATA)
        assert await cache.get("acme_account+key") == DATA

    @pytest.mark.asyncio
    async def test_non_domain_keys_never_limited(self):
        """Test that account keys and tokens are always stored."""
        inner = MemoryCache()
        cache = RateLimitedCache(inner, clock=FakeClock())
        await cache.put("a.example.com", DATA)
        await cache.put("b.example.com", DATA)

        for i in range(5):
            await cache.put("acme_account+key", DATA)
            await cache.put(f"token{i}+http-01", DATA)
        assert inner.puts == 12

    @pytest.mark.asyncio
    async def test_rejected_put_does_not_touch_store(self):
        """Test that an over-quota put never reaches the underlying cache."""
        inner = MemoryCache()
        cache = RateLimitedCache(inner, clock=FakeClock())
        await cache.put("a.example.com", DATA)
        await cache.put("b.example.com", DATA)

        with pytest.raises(RateLimitExceededError):
            await cache.put("c.example.com", DATA)
        assert inner.puts == 2
        assert "c.example.com" not in inner.data

    @pytest.mark.asyncio
    async def test_store_failure_does_not_consume_quota(self):
        """Test that a failed write propagates unchanged and costs nothing."""
        inner = MemoryCache()
        cache = RateLimitedCache(inner, clock=FakeClock())
        error = OSError("disk full")
        inner.fail_with = error

        with pytest.raises(OSError) as exc_info:
            await cache.put("a.example.com", DATA)
        assert exc_info.value is error

        inner.fail_with = None
        await cache.put("a.example.com", DATA)
        await cache.put("b.example.com", DATA)
        with pytest.raises(RateLimitExceededError):
            await cache.put("c.example.com", DATA)

    @pytest.mark.asyncio
    async def test_week_rollover_resets_quota(self):
        """Test that crossing a bucket boundary allows 2 more certificates."""
        clock = FakeClock(now=100 * WEEK_SECONDS + 10)
        cache = RateLimitedCache(MemoryCache(), clock=clock)
        await cache.put("a.example.com", DATA)
        await cache.put("b.example.com", DATA)
        with pytest.raises(RateLimitExceededError):
            await cache.put("c.example.com", DATA)

        # Still the same bucket near its end
        clock.now = 101 * WEEK_SECONDS - 1
        with pytest.raises(RateLimitExceededError):
            await cache.put("c.example.com", DATA)

        clock.now = 101 * WEEK_SECONDS
        await cache.put("c.example.com", DATA)
        await cache.put("d.example.com", DATA)
        with pytest.raises(RateLimitExceededError):
            await cache.put("e.example.com", DATA)

    @pytest.mark.asyncio
    async def test_custom_limit(self):
        """Test a non-default per-apex limit."""
        cache = RateLimitedCache(MemoryCache(), limit=3, clock=FakeClock())
        for name in ("a", "b", "c"):
            await cache.put(f"{name}.example.com", DATA)
        with pytest.raises(RateLimitExceededError):
            await cache.put("d.example.com", DATA)

    @pytest.mark.asyncio
    async def test_concurrent_puts_respect_limit(self):
        """Test that racing puts for one apex never exceed the quota."""
        inner = MemoryCache()
        cache = RateLimitedCache(inner, clock=FakeClock())

        results = await asyncio.gather(
            *(cache.put(f"host{i}.example.com", DATA) for i in range(10)),
            return_exceptions=True,
        )

        stored = [r for r in results if r is None]
        limited = [r for r in results if isinstance(r, RateLimitExceededError)]
        assert len(stored) == 2
        assert len(limited) == 8
        assert len(inner.data) == 2

    @pytest.mark.asyncio
    async def test_cancelled_put_does_not_consume_quota(self):
        """Test that cancelling a put mid-write leaves the counter alone."""
        started = asyncio.Event()
        release = asyncio.Event()

        class SlowCache(MemoryCache):
            async def put(self, key: str, data: bytes) -> None:
                started.set()
                await release.wait()
                await super().put(key, data)

        inner = SlowCache()
        cache = RateLimitedCache(inner, clock=FakeClock())

        task = asyncio.create_task(cache.put("a.example.com", DATA))
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        release.set()
        await cache.put("b.example.com", DATA)
        await cache.put("c.example.com", DATA)
        with pytest.raises(RateLimitExceededError):
            await cache.put("d.example.com", DATA)

    @pytest.mark.asyncio
    async def test_get_and_delete_pass_through(self):
        """Test that reads and deletes go straight to the underlying cache."""
        inner = MemoryCache()
        inner.data["example.com"] = DATA
        cache = RateLimitedCache(inner, clock=FakeClock())

        assert await cache.get("example.com") == DATA
        await cache.delete("example.com")
        with pytest.raises(CacheMiss):
            await cache.get("example.com")

    @pytest.mark.asyncio
    async def test_rollover_uses_quota_anchor(self):
        """Test that quotas carry their bucket and stale ones are dropped."""
        clock = FakeClock(now=100 * WEEK_SECONDS)
        cache = RateLimitedCache(MemoryCache(), clock=clock)
        await cache.put("a.example.com", DATA)
        await cache.put("a.example.org", DATA)
        assert cache._quotas["example.com"].week_anchor == 100
        assert cache._quotas["example.org"].count == 1

        clock.now = 101 * WEEK_SECONDS
        await cache.put("b.example.com", DATA)

        assert cache._quotas["example.com"].week_anchor == 101
        assert cache._quotas["example.com"].count == 1
        assert "example.org" not in cache._quotas
