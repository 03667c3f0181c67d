"""Redirect server: answers every request with a redirect read from DNS.

Routes:
    GET /healthz                              -> 200 "ok"
    GET /.well-known/acme-challenge/{token}   -> http-01 token from the cert cache
                                                 (only with certificates enabled)
    *   /{anything}                           -> redirect per _redirect.<host> TXT

Requests that can't be resolved are sent to the configured fallback URL with
the cause in a ``#reason=`` fragment.
"""

from __future__ import annotations

from urllib.parse import quote_plus

import structlog
from aiohttp import web

from redirectname.certs import DirCache, HostPolicy, RateLimitedCache
from redirectname.core.config import ServerConfig
from redirectname.dns import AiodnsTXTLookup, TXTLookup, redirect_record_name
from redirectname.errors import CacheMiss, DNSLookupError, HostNotAllowedError, NoMatchError
from redirectname.observability.metrics import (
    FALLBACKS,
    REDIRECTS,
    generate_metrics,
    get_content_type,
)
from redirectname.rules import resolve

logger = structlog.get_logger()

PERMANENT_CACHE_CONTROL = "max-age=86400"
ACME_CHALLENGE_PATH = "/.well-known/acme-challenge/{token}"


def http01_cache_key(token: str) -> str:
    """Cache key under which the ACME manager stores an http-01 response."""
    return f"{token}+http-01"


class RedirectServer:
    """HTTP front end for DNS-configured redirects."""

    def __init__(self, config: ServerConfig, lookup: TXTLookup | None = None) -> None:
        """Initialize the server.

        Args:
            config: Server configuration.
            lookup: TXT lookup to use; defaults to aiodns with the configured
                timeout and nameservers.
        """
        self.config = config
        self.lookup: TXTLookup = lookup or AiodnsTXTLookup(
            timeout=config.dns_timeout,
            nameservers=config.nameservers,
        )
        self.host_policy: HostPolicy | None = None
        self.cert_cache: RateLimitedCache | None = None
        if config.cert_dir:
            self.host_policy = HostPolicy(self.lookup)
            self.cert_cache = RateLimitedCache(
                DirCache(config.cert_dir),
                limit=config.certs_per_week,
            )
        self._http_runner: web.AppRunner | None = None
        self._metrics_runner: web.AppRunner | None = None

    def create_app(self) -> web.Application:
        app = web.Application()
        app.router.add_route("*", "/healthz", self._handle_health_check)
        if self.cert_cache is not None:
            app.router.add_get(ACME_CHALLENGE_PATH, self._handle_acme_challenge)
        app.router.add_route("*", "/{path:.*}", self._handle_redirect)
        return app

    def create_metrics_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/metrics", self._handle_metrics)
        return app

    def _parse_bind(self, bind: str) -> tuple[str, int]:
        """Parse bind address into host and port."""
        if ":" in bind:
            host, port = bind.rsplit(":", 1)
            return host.removeprefix("[").removesuffix("]"), int(port)
        return "0.0.0.0", int(bind)

    async def start(self) -> None:
        """Start listening for requests."""
        self._http_runner = web.AppRunner(
            self.create_app(),
            shutdown_timeout=self.config.shutdown_timeout,
        )
        await self._http_runner.setup()
        site = web.TCPSite(self._http_runner, self.config.host, self.config.port)
        await site.start()
        logger.info(
            "Redirect server listening",
            host=self.config.host,
            port=self.config.port,
            certificates=self.cert_cache is not None,
        )

        if self.config.metrics_bind:
            host, port = self._parse_bind(self.config.metrics_bind)
            self._metrics_runner = web.AppRunner(self.create_metrics_app())
            await self._metrics_runner.setup()
            await web.TCPSite(self._metrics_runner, host, port).start()
            logger.info("Metrics listening", host=host, port=port)

    async def stop(self) -> None:
        """Stop the server, giving in-flight requests the shutdown grace period."""
        logger.info("Stopping redirect server...")
        if self._http_runner:
            await self._http_runner.cleanup()
            self._http_runner = None
        if self._metrics_runner:
            await self._metrics_runner.cleanup()
            self._metrics_runner = None
        logger.info("Redirect server stopped")

    async def _handle_health_check(self, request: web.Request) -> web.Response:
        return web.Response(text="ok\n")

    async def _handle_metrics(self, request: web.Request) -> web.Response:
        return web.Response(
            body=generate_metrics(),
            headers={"Content-Type": get_content_type()},
        )

    def _fallback(self, reason: str, kind: str) -> web.Response:
        location = self.config.fallback_url
        if reason:
            location = f"{location}#reason={quote_plus(reason)}"
        FALLBACKS.labels(reason=kind).inc()
        return web.Response(status=302, headers={"Location": location})

    async def _handle_redirect(self, request: web.Request) -> web.Response:
        host = request.url.host or ""
        name = redirect_record_name(host)
        try:
            records = await self.lookup(name)
        except DNSLookupError as e:
            logger.info("Redirect lookup failed", host=host, error=str(e))
            return self._fallback(f"Could not resolve hostname ({e})", "dns_failure")

        path = request.raw_path
        try:
            redirect = resolve(records, path)
        except NoMatchError as e:
            logger.info("No redirect rule matched", host=host, path=path)
            return self._fallback(str(e), "no_match")

        headers = {"Location": redirect.location}
        if redirect.is_permanent:
            headers["Cache-Control"] = PERMANENT_CACHE_CONTROL
        REDIRECTS.labels(status=str(redirect.status)).inc()
        logger.debug(
            "Redirecting",
            host=host,
            path=path,
            location=redirect.location,
            status=redirect.status,
        )
        return web.Response(status=redirect.status, headers=headers)

    async def _handle_acme_challenge(self, request: web.Request) -> web.Response:
        """Serve an http-01 key authorization stored by the ACME manager."""
        host = request.url.host or ""
        token = request.match_info["token"]
        try:
            await self.host_policy(host)
        except HostNotAllowedError as e:
            return web.Response(status=403, text=f"{e}\n")

        try:
            body = await self.cert_cache.get(http01_cache_key(token))
        except (CacheMiss, ValueError):
            return web.Response(status=404, text="unknown challenge token\n")
        return web.Response(body=body, content_type="text/plain")
