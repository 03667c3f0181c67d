"""DNS access for redirect rules."""

from redirectname.dns.lookup import (
    RECORD_PREFIX,
    AiodnsTXTLookup,
    TXTLookup,
    redirect_record_name,
)

__all__ = [
    "AiodnsTXTLookup",
    "TXTLookup",
    "RECORD_PREFIX",
    "redirect_record_name",
]
