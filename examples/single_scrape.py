"""
Example: run one scrape against an instance and print the exposition text.

    python examples/single_scrape.py mastodon.social
"""
import sys

from prometheus_client import CollectorRegistry, generate_latest

from mastodon_exporter import ExporterConfig, MastodonCollector, configure_logging


def scrape_once(domain: str):
    config = ExporterConfig(domain=domain, timeout=10.0, log_format="console")
    configure_logging(config)

    registry = CollectorRegistry()
    registry.register(MastodonCollector(config))

    # Each render is one full scrape
    sys.stdout.write(generate_latest(registry).decode())


if __name__ == "__main__":
    scrape_once(sys.argv[1] if len(sys.argv) > 1 else "mastodon.social")
