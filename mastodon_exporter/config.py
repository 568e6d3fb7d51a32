"""
Configuration management for the exporter.
Centralizes all exporter configuration in one place.
"""
import os
from dataclasses import dataclass, fields
from typing import Optional, Dict, Any, Mapping

from .errors import ConfigError

API_VARIANT_NAMES = ("v1v2", "v2")
LOG_FORMATS = ("json", "console")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

ENV_PREFIX = "MASTODON_EXPORTER_"


@dataclass(frozen=True)
class ExporterConfig:
    """Immutable configuration, supplied once at start."""

    # Exposition endpoint
    port: int = 9876
    listen_address: str = ""
    path: str = "/metrics"

    # Target instance
    domain: str = "mastodon.example"
    scheme: str = "https"
    api_variant: str = "v1v2"

    # Outbound HTTP
    timeout: Optional[float] = None  # per request, None waits indefinitely
    scrape_timeout: Optional[float] = None  # whole scrape deadline
    verify_tls: bool = False
    check_status: bool = True

    # Logging Configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or console
    log_file: Optional[str] = None

    def __post_init__(self):
        """Normalize and validate values."""
        domain = self.domain.strip()
        for scheme in ("https://", "http://"):
            if domain.lower().startswith(scheme):
                object.__setattr__(self, "scheme", scheme[:-3])
                domain = domain[len(scheme):]
                break
        domain = domain.rstrip("/")
        object.__setattr__(self, "domain", domain)

        path = self.path if self.path.startswith("/") else "/" + self.path
        object.__setattr__(self, "path", path)
        object.__setattr__(self, "log_level", self.log_level.upper())

        errors = []
        if not domain:
            errors.append("domain must not be empty")
        if self.scheme not in ("http", "https"):
            errors.append(f"scheme must be http or https, got {self.scheme!r}")
        if not 0 <= int(self.port) <= 65535:
            errors.append(f"port must be between 0 and 65535, got {self.port}")
        if self.api_variant not in API_VARIANT_NAMES:
            errors.append(
                f"api_variant must be one of {', '.join(API_VARIANT_NAMES)}, "
                f"got {self.api_variant!r}"
            )
        for name in ("timeout", "scrape_timeout"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                errors.append(f"{name} must be > 0, got {value}")
        if self.log_level not in LOG_LEVELS:
            errors.append(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        if self.log_format not in LOG_FORMATS:
            errors.append(f"log_format must be json or console, got {self.log_format!r}")

        if errors:
            raise ConfigError("Configuration errors: " + "; ".join(errors))

    @property
    def base_url(self) -> str:
        """URL prefix every API path is appended to."""
        return f"{self.scheme}://{self.domain}"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None,
                 **overrides) -> 'ExporterConfig':
        """Create config from MASTODON_EXPORTER_* variables, then overrides."""
        environ = os.environ if environ is None else environ
        values: Dict[str, Any] = {}
        for field in fields(cls):
            raw = environ.get(ENV_PREFIX + field.name.upper())
            if raw is None or raw == "":
                continue
            values[field.name] = _coerce(field.name, raw)
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'ExporterConfig':
        """Create config from dictionary."""
        return cls(**config_dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return {field.name: getattr(self, field.name) for field in fields(self)}

    def get_base_labels(self) -> Dict[str, str]:
        """Get base context for logs."""
        from . import __version__

        return {
            'exporter': 'mastodon_exporter',
            'version': __version__,
            'domain': self.domain,
        }


_BOOL_FIELDS = {"verify_tls", "check_status"}
_FLOAT_FIELDS = {"timeout", "scrape_timeout"}


def _coerce(name: str, raw: str) -> Any:
    if name in _BOOL_FIELDS:
        return raw.strip().lower() in ("1", "true", "yes", "on")
    try:
        if name == "port":
            return int(raw)
        if name in _FLOAT_FIELDS:
            return float(raw)
    except ValueError:
        raise ConfigError(f"{ENV_PREFIX}{name.upper()} is not a number: {raw!r}")
    return raw
