"""Admission check run before a certificate is requested for a host.

A certificate is only issued for hosts that publish at least one valid
redirect rule at ``_redirect.<host>``. Whether the rule would ever match a
request is irrelevant here; the check only keeps the service from requesting
certificates for names nobody configured.
"""

from __future__ import annotations

import structlog

from redirectname.dns import TXTLookup, redirect_record_name
from redirectname.errors import DenyReason, DNSLookupError, HostNotAllowedError
from redirectname.observability.metrics import CERT_ADMISSIONS
from redirectname.rules import parse

logger = structlog.get_logger()


class HostPolicy:
    """Decides whether a certificate may be issued for a host.

    Example:
        policy = HostPolicy(AiodnsTXTLookup())
        await policy("go.example.com")  # raises HostNotAllowedError when denied
    """

    def __init__(self, lookup: TXTLookup) -> None:
        self.lookup = lookup

    async def __call__(self, host: str) -> None:
        """Allow ``host`` or raise.

        Raises:
            HostNotAllowedError: With ``DenyReason.DNS_FAILURE`` when the TXT
                lookup fails, ``DenyReason.NO_VALID_RECORD`` when none of the
                records is a redirect rule.
        """
        name = redirect_record_name(host)
        try:
            records = await self.lookup(name)
        except DNSLookupError as e:
            CERT_ADMISSIONS.labels(result=DenyReason.DNS_FAILURE.value).inc()
            logger.warning("Certificate denied", host=host, reason="dns_failure", error=str(e))
            raise HostNotAllowedError(host, DenyReason.DNS_FAILURE, detail=e.cause) from e

        if any(parse(record) is not None for record in records):
            CERT_ADMISSIONS.labels(result="allowed").inc()
            logger.debug("Certificate allowed", host=host)
            return

        CERT_ADMISSIONS.labels(result=DenyReason.NO_VALID_RECORD.value).inc()
        logger.warning("Certificate denied", host=host, reason="no_valid_record")
        raise HostNotAllowedError(host, DenyReason.NO_VALID_RECORD)

    async def is_allowed(self, host: str) -> bool:
        try:
            await self(host)
        except HostNotAllowedError:
            return False
        return True
