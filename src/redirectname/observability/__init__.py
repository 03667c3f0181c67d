from redirectname.observability.metrics import (
    CERT_ADMISSIONS,
    CERT_STORES,
    FALLBACKS,
    REDIRECTS,
    generate_metrics,
    get_content_type,
)

__all__ = [
    "REDIRECTS",
    "FALLBACKS",
    "CERT_ADMISSIONS",
    "CERT_STORES",
    "generate_metrics",
    "get_content_type",
]
