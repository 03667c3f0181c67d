"""Certificate admission and storage for on-demand TLS.

An ACME certificate manager consumes two things from this package:

- ``HostPolicy``: called before issuing or renewing a certificate for a host;
  raises ``HostNotAllowedError`` unless ``_redirect.<host>`` holds a valid rule.
- ``RateLimitedCache``: the store it persists certificates, keys and http-01
  tokens through; limits each apex domain to a few certificates per week.

Usage:
    from redirectname.certs import DirCache, HostPolicy, RateLimitedCache

    cache = RateLimitedCache(DirCache("certs"))
    policy = HostPolicy(lookup)
"""

from redirectname.certs.cache import Cache, DirCache
from redirectname.certs.policy import HostPolicy
from redirectname.certs.ratelimit import (
    DEFAULT_CERTS_PER_WEEK,
    WEEK_SECONDS,
    ApexQuota,
    RateLimitedCache,
    apex_domain,
    week_bucket,
)

__all__ = [
    "Cache",
    "DirCache",
    "HostPolicy",
    "RateLimitedCache",
    "ApexQuota",
    "apex_domain",
    "week_bucket",
    "WEEK_SECONDS",
    "DEFAULT_CERTS_PER_WEEK",
]
