"""Server configuration with environment variable support.

Settings are read from ``REDIRECT_*`` environment variables (and a ``.env``
file). The three variables the service has always used are still honoured
without the prefix:

    FALLBACK_URL   where unresolvable requests are sent
    CERT_DIR       certificate cache directory; enables certificate support
    PORT           HTTP listen port

A YAML or TOML file can supply the same keys; see ``load_config_from_file``.
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

import yaml
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def load_config_from_file(path: str | Path) -> dict[str, Any]:
    """Load configuration from a YAML or TOML file.

    Args:
        path: Path to the configuration file (.yaml, .yml, or .toml)

    Returns:
        Configuration dictionary

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ValueError: If the config file has encoding errors, invalid syntax, or unsupported format
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        content = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ValueError(f"Config file encoding error in {path}: {e}") from e

    try:
        if path.suffix in (".yaml", ".yml"):
            return yaml.safe_load(content) or {}
        elif path.suffix == ".toml":
            return tomllib.loads(content)
        else:
            raise ValueError(f"Unsupported config format: {path.suffix}")
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in {path}: {e}") from e


def flatten_config(config: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key, value in config.items():
        full_key = f"{prefix}_{key}" if prefix else key
        if isinstance(value, dict):
            result.update(flatten_config(value, full_key))
        else:
            result[full_key] = value
    return result


class ServerConfig(BaseSettings):
    """Redirect server configuration."""

    model_config = SettingsConfigDict(
        env_prefix="REDIRECT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    fallback_url: str = Field(
        default="http://redirect.name/",
        validation_alias=AliasChoices("REDIRECT_FALLBACK_URL", "FALLBACK_URL", "fallback_url"),
        description="Where requests without a usable rule are redirected.",
    )
    cert_dir: str | None = Field(
        default=None,
        validation_alias=AliasChoices("REDIRECT_CERT_DIR", "CERT_DIR", "cert_dir"),
        description="Certificate cache directory. Enables certificate admission and storage.",
    )
    host: str = Field(
        default="0.0.0.0",
        description="HTTP listen address.",
    )
    port: int = Field(
        default=8081,
        validation_alias=AliasChoices("REDIRECT_PORT", "PORT", "port"),
        description="HTTP listen port.",
    )
    dns_timeout: float | None = Field(
        default=5.0,
        description="Seconds to wait for a TXT lookup. None for indefinite.",
    )
    nameservers: list[str] = Field(
        default_factory=list,
        description="DNS resolvers to query. Empty uses the system resolvers.",
    )
    shutdown_timeout: float = Field(
        default=10.0,
        description="Grace period in seconds for in-flight requests on shutdown.",
    )
    certs_per_week: int = Field(
        default=2,
        ge=1,
        description="Certificates stored per apex domain per week bucket.",
    )
    metrics_bind: str | None = Field(
        default=None,
        description="host:port for the Prometheus /metrics listener. Disabled when unset.",
    )
    log_level: str = Field(
        default="info",
        description="Log level (debug, info, warning, error).",
    )

    @property
    def certificates_enabled(self) -> bool:
        return bool(self.cert_dir)
