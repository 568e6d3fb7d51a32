"""
Metric names, help texts and conversion to Prometheus metric families.
"""
from typing import Dict, Iterable, Iterator, List, NamedTuple, Optional, Sequence, Tuple

from prometheus_client.core import GaugeMetricFamily

NAMESPACE = "mastodon"


def build_fq_name(name: str) -> str:
    """Prefix ``name`` with the exporter namespace."""
    return f"{NAMESPACE}_{name}"


UP = build_fq_name("up")
USER_COUNT = build_fq_name("user_count")
STATUS_COUNT = build_fq_name("status_count")
DOMAIN_COUNT = build_fq_name("domain_count")
MONTHLY_ACTIVE_USERS = build_fq_name("monthly_active_users")
NUM_PEERS = build_fq_name("num_peers")
NUM_STATUSES = build_fq_name("num_statuses")
NUM_LOGINS = build_fq_name("num_logins")

HELP: Dict[str, str] = {
    UP: "was the last query successful",
    USER_COUNT: "number of users",
    STATUS_COUNT: "number of statuses",
    DOMAIN_COUNT: "number of domains",
    MONTHLY_ACTIVE_USERS: "how many users were active this month",
    NUM_PEERS: "the number of instances this instance is aware of",
    NUM_STATUSES: "the number of statuses that have been posted in the given week",
    NUM_LOGINS: "the number of logins the instance has seen in the given week",
}

Labels = Tuple[Tuple[str, str], ...]


class MetricSample(NamedTuple):
    """One gauge value produced by a scrape."""
    name: str
    labels: Labels
    value: float

    @classmethod
    def gauge(cls, name: str, value: float, **labels: str) -> 'MetricSample':
        return cls(name, tuple(labels.items()), float(value))

    @property
    def label_dict(self) -> Dict[str, str]:
        return dict(self.labels)


class MetricDescriptor(NamedTuple):
    name: str
    labelnames: Tuple[str, ...] = ()

    @property
    def documentation(self) -> str:
        return HELP.get(self.name, self.name)

    def family(self) -> GaugeMetricFamily:
        return GaugeMetricFamily(self.name, self.documentation,
                                 labels=list(self.labelnames))


def build_families(samples: Iterable[MetricSample],
                   descriptors: Optional[Sequence[MetricDescriptor]] = None
                   ) -> List[GaugeMetricFamily]:
    """
    Group samples into gauge families, in order of first appearance.

    Label names come from ``descriptors`` when one matches the sample name,
    otherwise from the first sample seen.
    """
    known = {d.name: d for d in descriptors or ()}
    families: Dict[str, Tuple[MetricDescriptor, GaugeMetricFamily]] = {}
    for sample in samples:
        if sample.name not in families:
            descriptor = known.get(sample.name) or MetricDescriptor(
                sample.name, tuple(label for label, _ in sample.labels))
            families[sample.name] = (descriptor, descriptor.family())
        descriptor, family = families[sample.name]
        labels = sample.label_dict
        family.add_metric([labels.get(name, "") for name in descriptor.labelnames],
                          sample.value)
    return [family for _, family in families.values()]


def describe_families(descriptors: Iterable[MetricDescriptor]) -> Iterator[GaugeMetricFamily]:
    """Empty families, used by the registry to check for name clashes."""
    seen = set()
    for descriptor in descriptors:
        if descriptor.name in seen:
            continue
        seen.add(descriptor.name)
        yield descriptor.family()
