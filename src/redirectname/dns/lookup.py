"""TXT lookups for ``_redirect.<host>`` names.

The lookup is an injectable capability: anything awaitable as
``lookup(name) -> list[str]`` that raises ``DNSLookupError`` on failure can be
handed to the server and the host policy. Tests pass stubs; production uses
``AiodnsTXTLookup``.

Lookups are never cached here. Every request asks the resolver again so a
changed record takes effect as soon as DNS serves it.
"""

from __future__ import annotations

import asyncio
import sys
from typing import Protocol

import aiodns
import structlog

from redirectname.errors import DNSLookupError

logger = structlog.get_logger()

RECORD_PREFIX = "_redirect"


def redirect_record_name(host: str) -> str:
    """Name of the TXT record set holding the rules for ``host``."""
    return f"{RECORD_PREFIX}.{host}"


class TXTLookup(Protocol):
    async def __call__(self, name: str) -> list[str]: ...


def _decode(text: str | bytes) -> str:
    if isinstance(text, bytes):
        return text.decode("utf-8", errors="replace")
    return text


class AiodnsTXTLookup:
    """TXT lookup backed by c-ares through aiodns."""

    def __init__(
        self,
        timeout: float | None = 5.0,
        nameservers: list[str] | None = None,
    ) -> None:
        """Initialize the lookup.

        Args:
            timeout: Seconds to wait for an answer. None waits indefinitely.
            nameservers: Resolver addresses; the system resolvers when empty.
        """
        self.timeout = timeout
        self.nameservers = list(nameservers or [])
        self._resolver: aiodns.DNSResolver | None = None

    def _get_resolver(self) -> aiodns.DNSResolver:
        """Get or create DNS resolver with proper event loop handling."""
        if self._resolver is None:
            kwargs = {"nameservers": self.nameservers} if self.nameservers else {}
            if sys.platform == "win32":
                try:
                    loop = asyncio.get_running_loop()
                except RuntimeError:
                    loop = asyncio.new_event_loop()
                self._resolver = aiodns.DNSResolver(loop=loop, **kwargs)
            else:
                self._resolver = aiodns.DNSResolver(**kwargs)
        return self._resolver

    async def __call__(self, name: str) -> list[str]:
        resolver = self._get_resolver()
        try:
            result = await asyncio.wait_for(resolver.query(name, "TXT"), self.timeout)
        except aiodns.error.DNSError as e:
            cause = e.args[1] if len(e.args) > 1 else str(e)
            logger.debug("TXT lookup failed", name=name, error=cause)
            raise DNSLookupError(name, str(cause)) from e
        except TimeoutError as e:
            logger.debug("TXT lookup timed out", name=name, timeout=self.timeout)
            raise DNSLookupError(name, "timed out") from e

        return [_decode(record.text) for record in result]
