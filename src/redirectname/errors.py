"""Exception types raised by redirectname.

Every failure a caller may need to react to has its own type so the HTTP
layer (fallback redirect) and the certificate layer (deny issuance) can tell
them apart. A TXT record that does not follow the rule grammar is not an
error: the parser simply returns ``None`` for it.
"""

from __future__ import annotations

from enum import Enum


class RedirectNameError(Exception):
    """Base class for all redirectname errors."""


class NoMatchError(RedirectNameError):
    """No rule in a hostname's records translated the request path."""

    def __init__(self, message: str = "No paths matched") -> None:
        super().__init__(message)


class DNSLookupError(RedirectNameError):
    """The TXT query itself failed (NXDOMAIN, SERVFAIL, timeout, ...)."""

    def __init__(self, name: str, cause: str) -> None:
        self.name = name
        self.cause = cause
        super().__init__(f"lookup {name}: {cause}")


class DenyReason(Enum):
    """Why certificate issuance was refused for a host."""

    DNS_FAILURE = "dns_failure"
    NO_VALID_RECORD = "no_valid_record"


class HostNotAllowedError(RedirectNameError):
    """Certificate issuance is not permitted for a host."""

    def __init__(self, host: str, reason: DenyReason, detail: str = "") -> None:
        self.host = host
        self.reason = reason
        self.detail = detail
        if reason is DenyReason.DNS_FAILURE:
            message = f"DNS lookup failed for _redirect.{host}"
        else:
            message = f"no valid redirect config in TXT records for _redirect.{host}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class RateLimitExceededError(RedirectNameError):
    """The weekly certificate quota for an apex domain is used up."""

    def __init__(self, apex: str, limit: int) -> None:
        self.apex = apex
        self.limit = limit
        super().__init__(
            f"rate limit exceeded: {limit} certs already issued for {apex} this week"
        )


class CacheMiss(RedirectNameError, KeyError):
    """Requested key is not present in the certificate cache."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(key)

    def __str__(self) -> str:
        return f"cache miss: {self.key}"
