"""
Command line entry point: ``mastodon-exporter --domain mastodon.social``.
"""
import argparse
import sys
from typing import List, Optional

from prometheus_client import CollectorRegistry

from . import __version__
from .collector import MastodonCollector
from .config import API_VARIANT_NAMES, LOG_FORMATS, LOG_LEVELS, ExporterConfig
from .errors import ConfigError
from .logger import configure_logging
from .server import ExporterServer


def build_parser(defaults: ExporterConfig) -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="mastodon-exporter",
        description="Expose Prometheus metrics for a Mastodon instance.",
        epilog="Every option can also be set with a MASTODON_EXPORTER_<OPTION> variable.",
    )
    ap.add_argument("--port", type=int, default=defaults.port,
                    help="the port on which to listen (default: %(default)s)")
    ap.add_argument("--listen-address", default=defaults.listen_address,
                    help="address to bind, all interfaces when empty")
    ap.add_argument("--path", default=defaults.path,
                    help="the path on which to expose metrics (default: %(default)s)")
    ap.add_argument("--domain", default=defaults.domain,
                    help="the domain on which mastodon is running (default: %(default)s)")
    ap.add_argument("--api-variant", choices=API_VARIANT_NAMES, default=defaults.api_variant,
                    help="v1v2: v1 stats plus v2 usage; v2: v2 instance only")
    ap.add_argument("--timeout", type=float, default=defaults.timeout,
                    help="per request timeout in seconds, none by default")
    ap.add_argument("--scrape-timeout", type=float, default=defaults.scrape_timeout,
                    help="deadline for a whole scrape in seconds, none by default")
    ap.add_argument("--verify-tls", action="store_true", default=defaults.verify_tls,
                    help="verify the instance's TLS certificate")
    ap.add_argument("--no-check-status", dest="check_status", action="store_false",
                    default=defaults.check_status,
                    help="hand non-2xx response bodies to the JSON decoder")
    ap.add_argument("--log-level", choices=LOG_LEVELS, type=str.upper,
                    default=defaults.log_level)
    ap.add_argument("--log-format", choices=LOG_FORMATS, default=defaults.log_format)
    ap.add_argument("--log-file", default=defaults.log_file,
                    help="also write JSON logs to this file")
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return ap


def parse_config(argv: Optional[List[str]] = None, environ=None) -> ExporterConfig:
    """Environment-aware defaults, overridden by command line flags."""
    defaults = ExporterConfig.from_env(environ)
    args = build_parser(defaults).parse_args(argv)
    values = vars(args)
    # The environment's scheme belongs to the environment's domain
    if values["domain"] == defaults.domain:
        values["scheme"] = defaults.scheme
    return ExporterConfig.from_dict(values)


def main(argv: Optional[List[str]] = None) -> int:
    try:
        config = parse_config(argv)
    except ConfigError as e:
        print(f"mastodon-exporter: {e}", file=sys.stderr)
        return 2

    logger = configure_logging(config).get_logger("main")

    registry = CollectorRegistry()
    registry.register(MastodonCollector(config))

    logger.info("exporting from", base_url=config.base_url, api_variant=config.api_variant)

    server = ExporterServer(config, registry)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        server.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
