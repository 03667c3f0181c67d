from prometheus_client import CONTENT_TYPE_LATEST, Counter, generate_latest

REDIRECTS = Counter(
    "redirectname_redirects_total",
    "Redirects served from TXT rules",
    ["status"],
)

FALLBACKS = Counter(
    "redirectname_fallbacks_total",
    "Requests sent to the fallback URL",
    ["reason"],  # reason: dns_failure/no_match
)

CERT_ADMISSIONS = Counter(
    "redirectname_cert_admissions_total",
    "Certificate admission decisions",
    ["result"],  # result: allowed/dns_failure/no_valid_record
)

CERT_STORES = Counter(
    "redirectname_cert_stores_total",
    "Writes to the certificate cache",
    ["result"],  # result: stored/unlimited/rate_limited/error
)


def generate_metrics() -> bytes:
    return generate_latest()


def get_content_type() -> str:
    return CONTENT_TYPE_LATEST
