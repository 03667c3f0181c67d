"""redirect.name server - Main entry point."""

import asyncio
import contextlib
import logging
import signal

import click
import structlog
from rich.console import Console

from redirectname import __version__
from redirectname.core.config import ServerConfig, flatten_config, load_config_from_file
from redirectname.server.app import RedirectServer

console = Console()

BANNER = """
 ┬─┐┌─┐┌┬┐┬┬─┐┌─┐┌─┐┌┬┐ ┌┐┌┌─┐┌┬┐┌─┐
 ├┬┘├┤  │││├┬┘├┤ │   │  │││├─┤│││├┤
 ┴└─└─┘─┴┘┴┴└─└─┘└─┘ ┴ o┘└┘┴ ┴┴ ┴└─┘
        redirects configured in DNS
"""


def configure_logging(level: str) -> None:
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
    )


@click.command()
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False),
    help="YAML or TOML configuration file",
)
@click.option("--host", help="HTTP listen address (default: 0.0.0.0)")
@click.option("--port", "-p", type=int, help="HTTP listen port (default: 8081, env: PORT)")
@click.option("--fallback-url", help="Redirect target when no rule applies (env: FALLBACK_URL)")
@click.option(
    "--cert-dir",
    type=click.Path(file_okay=False),
    help="Certificate cache directory; enables certificate support (env: CERT_DIR)",
)
@click.option("--metrics-bind", help="host:port for the Prometheus /metrics listener")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"]),
    help="Log level (default: info)",
)
@click.version_option(__version__, prog_name="redirectname")
def main(
    config_file: str | None,
    host: str | None,
    port: int | None,
    fallback_url: str | None,
    cert_dir: str | None,
    metrics_bind: str | None,
    log_level: str | None,
):
    """Run the redirect.name server."""
    settings = flatten_config(load_config_from_file(config_file)) if config_file else {}
    overrides = {
        "host": host,
        "port": port,
        "fallback_url": fallback_url,
        "cert_dir": cert_dir,
        "metrics_bind": metrics_bind,
        "log_level": log_level,
    }
    settings.update({key: value for key, value in overrides.items() if value is not None})

    try:
        config = ServerConfig(**settings)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e

    configure_logging(config.log_level)
    console.print(BANNER, style="cyan")
    console.print(f"HTTP: {config.host}:{config.port}", style="dim")
    console.print(f"Fallback: {config.fallback_url}", style="dim")
    if config.certificates_enabled:
        console.print(
            f"Certificates: {config.cert_dir} ({config.certs_per_week}/week per domain)",
            style="green",
        )
    else:
        console.print("Certificates: disabled (set --cert-dir or CERT_DIR to enable)", style="dim")
    if config.metrics_bind:
        console.print(f"Metrics: {config.metrics_bind}/metrics", style="dim")

    asyncio.run(run_server(config))


async def run_server(config: ServerConfig):
    """Run the redirect server until SIGINT or SIGTERM."""
    server = RedirectServer(config)
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop.set)

    try:
        await server.start()
        console.print("Server started, press Ctrl+C to stop", style="green")
        await stop.wait()
        console.print("\nShutting down...", style="yellow")
    finally:
        await server.stop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.remove_signal_handler(sig)


if __name__ == "__main__":
    main()
