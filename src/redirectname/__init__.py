"""redirect.name - HTTP redirects configured through DNS TXT records.

Publish one or more TXT records at ``_redirect.<host>`` and point the host at
this service:

    _redirect.go.example.com  TXT  "Redirects from /docs/* to https://docs.example.com/*"
    _redirect.go.example.com  TXT  "Redirects permanently to https://example.com/"

Usage:
    from redirectname.rules import resolve

    redirect = resolve(records, "/docs/intro")
    redirect.location  # "https://docs.example.com/intro"
"""

from redirectname.errors import (
    CacheMiss,
    DenyReason,
    DNSLookupError,
    HostNotAllowedError,
    NoMatchError,
    RateLimitExceededError,
    RedirectNameError,
)
from redirectname.rules import Redirect, Rule, parse, resolve, translate

__version__ = "1.0.0"

__all__ = [
    "__version__",
    "Rule",
    "Redirect",
    "parse",
    "translate",
    "resolve",
    "RedirectNameError",
    "NoMatchError",
    "DNSLookupError",
    "HostNotAllowedError",
    "DenyReason",
    "RateLimitExceededError",
    "CacheMiss",
]
