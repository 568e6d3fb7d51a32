"""
Collector: runs the mapper table on every scrape and reports ``mastodon_up``.
"""
import enum
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence

from prometheus_client.core import GaugeMetricFamily

from . import metrics
from .config import ExporterConfig
from .context import ScrapeContext
from .errors import ExporterError
from .fetcher import HttpFetcher
from .logger import get_logger
from .mappers import Mapper, build_mappers
from .metrics import MetricDescriptor, MetricSample


class ScrapeState(enum.Enum):
    PENDING = "pending"
    DONE = "done"
    UNHEALTHY = "unhealthy"


@dataclass
class ScrapeResult:
    """Everything one scrape produced; ``samples`` ends with ``mastodon_up``."""
    samples: List[MetricSample] = field(default_factory=list)
    state: ScrapeState = ScrapeState.PENDING
    failed_mapper: Optional[str] = None
    error: Optional[ExporterError] = None

    @property
    def up(self) -> bool:
        return self.state is ScrapeState.DONE

    def value(self, name: str, **labels: str) -> Optional[float]:
        """Value of the first sample matching ``name`` and ``labels``."""
        for sample in self.samples:
            if sample.name == name and sample.label_dict == labels:
                return sample.value
        return None


class MastodonCollector:
    """
    Custom Prometheus collector for one Mastodon instance.

    Mappers run strictly in table order. The first failing mapper ends the
    scrape: its samples are dropped, ``mastodon_up 0`` is emitted and the
    remaining mappers are not attempted. Samples from mappers that already
    succeeded are kept.
    """

    def __init__(self, config: ExporterConfig,
                 fetcher: Optional[HttpFetcher] = None,
                 mappers: Optional[Sequence[Mapper]] = None,
                 logger=None):
        self.config = config
        self.fetcher = fetcher or HttpFetcher(
            timeout=config.timeout,
            verify_tls=config.verify_tls,
            check_status=config.check_status,
        )
        self.mappers = list(mappers) if mappers is not None else build_mappers(config.api_variant)
        self.logger = logger or get_logger("collector")

    def scrape(self) -> ScrapeResult:
        """Run one full mapper sequence."""
        result = ScrapeResult()
        context = ScrapeContext(self.config.scrape_timeout, logger=self.logger)
        base_url = self.config.base_url

        for mapper in self.mappers:
            url = mapper.url(base_url)
            try:
                with context.mapper_operation(mapper, url):
                    timeout = context.fetch_timeout(url, getattr(self.fetcher, "timeout", None))
                    samples = mapper.run(self.fetcher, base_url, timeout=timeout)
            except ExporterError as e:
                result.state = ScrapeState.UNHEALTHY
                result.failed_mapper = mapper.name
                result.error = e
                result.samples.append(MetricSample.gauge(metrics.UP, 0))
                return result
            result.samples.extend(samples)

        result.state = ScrapeState.DONE
        result.samples.append(MetricSample.gauge(metrics.UP, 1))
        self.logger.info("collected metrics successfully",
                         samples=len(result.samples),
                         duration_seconds=context.elapsed())
        return result

    def descriptors(self) -> List[MetricDescriptor]:
        descriptors = [d for mapper in self.mappers for d in mapper.descriptors()]
        descriptors.append(MetricDescriptor(metrics.UP))
        return descriptors

    def collect(self) -> Iterator[GaugeMetricFamily]:
        """Called by the registry on every exposition request."""
        result = self.scrape()
        yield from metrics.build_families(result.samples, self.descriptors())

    def describe(self) -> Iterator[GaugeMetricFamily]:
        return metrics.describe_families(self.descriptors())
