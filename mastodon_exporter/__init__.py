"""
Mastodon Prometheus Exporter

Polls a Mastodon instance's public REST API on every scrape and exposes:
- Instance totals (users, statuses, known domains) and monthly active users
- The number of federated peers
- Weekly statuses and logins
- A ``mastodon_up`` gauge reporting whether the scrape succeeded
"""

__version__ = "1.0.0"

from .config import ExporterConfig
from .errors import ExporterError, FetchError, DeadlineExceeded, ParseError, ExtractError, ConfigError
from .logger import ExporterLogger, get_logger, configure_logging
from .fetcher import HttpFetcher
from .metrics import MetricSample
from .mappers import Mapper, FieldsMapper, ArrayLengthMapper, ActivityMapper, API_VARIANTS, build_mappers
from .collector import MastodonCollector, ScrapeResult, ScrapeState
from .server import ExporterServer, start_exporter_server

__all__ = [
    "ExporterConfig",
    "ExporterError",
    "FetchError",
    "DeadlineExceeded",
    "ParseError",
    "ExtractError",
    "ConfigError",
    "ExporterLogger",
    "get_logger",
    "configure_logging",
    "HttpFetcher",
    "MetricSample",
    "Mapper",
    "FieldsMapper",
    "ArrayLengthMapper",
    "ActivityMapper",
    "API_VARIANTS",
    "build_mappers",
    "MastodonCollector",
    "ScrapeResult",
    "ScrapeState",
    "ExporterServer",
    "start_exporter_server",
]
