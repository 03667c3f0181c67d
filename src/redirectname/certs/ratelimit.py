"""Weekly per-apex quota in front of the certificate cache.

Every certificate the ACME manager obtains is written through ``put``; the
write is refused once an apex domain (eTLD+1) has stored ``limit``
certificates in the current week bucket. This keeps a local safety margin
below the CA's own rate limits, which remain the source of truth.

Week buckets are fixed 7-day slices counted from the Unix epoch, not
calendar weeks and not a rolling window. Counters live in memory only and
start from zero after a restart.

Example:
    cache = RateLimitedCache(DirCache("/var/lib/redirectname/certs"))
    await cache.put("go.example.com", pem)     # 1st for example.com
    await cache.put("www.example.com", pem)    # 2nd
    await cache.put("docs.example.com", pem)   # RateLimitExceededError
    await cache.put("acme_account+key", key)   # never limited
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache

import structlog
from publicsuffixlist import PublicSuffixList

from redirectname.certs.cache import Cache
from redirectname.errors import RateLimitExceededError
from redirectname.observability.metrics import CERT_STORES

logger = structlog.get_logger()

WEEK_SECONDS = 7 * 24 * 60 * 60
DEFAULT_CERTS_PER_WEEK = 2


@lru_cache(maxsize=1)
def _public_suffix_list() -> PublicSuffixList:
    return PublicSuffixList()


def apex_domain(key: str) -> str | None:
    """Registrable domain (eTLD+1) for a cache key, or None if not a domain.

    Examples:
        >>> apex_domain("sub1.example.com")
        'example.com'
        >>> apex_domain("acme_account+key") is None
        True
    """
    if "." not in key or key.startswith(".") or key.endswith("."):
        return None
    return _public_suffix_list().privatesuffix(key.lower())


def week_bucket(now: float) -> int:
    """Index of the 7-day bucket containing the POSIX timestamp ``now``."""
    return int(now // WEEK_SECONDS)


@dataclass
class ApexQuota:
    """Certificates stored for one apex domain in the current week bucket."""

    apex: str
    week_anchor: int
    count: int = 0


class RateLimitedCache:
    """Certificate cache wrapper enforcing a per-apex weekly quota.

    A single lock covers all apexes and is held across the underlying write,
    so check, write and increment happen as one step.
    """

    def __init__(
        self,
        cache: Cache,
        limit: int = DEFAULT_CERTS_PER_WEEK,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the wrapper.

        Args:
            cache: Underlying persistent store.
            limit: Certificates allowed per apex domain per week bucket.
            clock: Returns the current POSIX time; replaceable in tests.
        """
        self.cache = cache
        self.limit = limit
        self._clock = clock
        self._quotas: dict[str, ApexQuota] = {}
        self._lock = asyncio.Lock()

    def _drop_stale(self, week: int) -> None:
        for apex in [a for a, q in self._quotas.items() if q.week_anchor != week]:
            del self._quotas[apex]

    async def get(self, key: str) -> bytes:
        return await self.cache.get(key)

    async def delete(self, key: str) -> None:
        await self.cache.delete(key)

    async def put(self, key: str, data: bytes) -> None:
        """Store ``data`` under ``key`` if the apex still has quota.

        Raises:
            RateLimitExceededError: The apex already stored ``limit``
                certificates this week. The underlying cache is not touched.
            Exception: Whatever the underlying cache raises, unchanged. A
                failed or cancelled write does not use up quota.
        """
        apex = apex_domain(key)
        if apex is None:
            await self.cache.put(key, data)
            CERT_STORES.labels(result="unlimited").inc()
            return

        async with self._lock:
            week = week_bucket(self._clock())
            quota = self._quotas.get(apex)
            if quota is None or quota.week_anchor != week:
                if quota is not None:
                    logger.info("Certificate quota window rolled over", apex=apex, week=week)
                self._drop_stale(week)
                quota = self._quotas[apex] = ApexQuota(apex=apex, week_anchor=week)

            if quota.count >= self.limit:
                CERT_STORES.labels(result="rate_limited").inc()
                logger.warning("Certificate rate limit exceeded", key=key, apex=apex, limit=self.limit)
                raise RateLimitExceededError(apex, self.limit)

            try:
                await self.cache.put(key, data)
            except Exception:
                CERT_STORES.labels(result="error").inc()
                raise
            quota.count += 1
            CERT_STORES.labels(result="stored").inc()
            logger.info("Certificate stored", key=key, apex=apex, count=quota.count, limit=self.limit)
