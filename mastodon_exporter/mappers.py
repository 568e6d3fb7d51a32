"""
Mappers translate one Mastodon API endpoint into metric samples.

Endpoints and field paths are data: API_VARIANTS holds one mapper table
per API shape, and the collector only ever walks a table.
"""
from typing import Any, Dict, List, Optional, Sequence, Tuple

from . import metrics
from .extractor import (
    extract_array,
    extract_count,
    extract_number,
    extract_object,
    extract_string,
    parse,
)
from .errors import PathElement
from .metrics import MetricDescriptor, MetricSample

INSTANCE_V1_API = "/api/v1/instance"
INSTANCE_V2_API = "/api/v2/instance"
PEERS_API = "/api/v1/instance/peers"
ACTIVITY_API = "/api/v1/instance/activity"


class Mapper:
    """Base class: fetch one endpoint, parse it, map the tree to samples."""

    def __init__(self, name: str, endpoint: str):
        self.name = name
        self.endpoint = endpoint

    def url(self, base_url: str) -> str:
        return base_url + self.endpoint

    def run(self, fetcher, base_url: str, timeout: Optional[float] = None) -> List[MetricSample]:
        """Fetch, parse and map. Any ExporterError propagates unchanged."""
        raw = fetcher.fetch(self.url(base_url), timeout=timeout)
        return self.map(parse(raw))

    def map(self, tree: Any) -> List[MetricSample]:
        raise NotImplementedError

    def descriptors(self) -> List[MetricDescriptor]:
        raise NotImplementedError

    def __repr__(self):
        return f"{type(self).__name__}({self.name!r}, {self.endpoint!r})"


class FieldsMapper(Mapper):
    """
    Reads fixed numeric fields from an object response.

    ``fields`` pairs a metric name with the path of its value; all paths
    must resolve or nothing is emitted.
    """

    def __init__(self, name: str, endpoint: str,
                 fields: Sequence[Tuple[str, Sequence[PathElement]]],
                 required: Sequence[Sequence[PathElement]] = ()):
        super().__init__(name, endpoint)
        self.fields = [(metric, tuple(path)) for metric, path in fields]
        self.required = [tuple(path) for path in required]

    def map(self, tree):
        for path in self.required:
            extract_object(tree, *path)
        return [MetricSample.gauge(metric, extract_number(tree, *path))
                for metric, path in self.fields]

    def descriptors(self):
        return [MetricDescriptor(metric) for metric, _ in self.fields]


class ArrayLengthMapper(Mapper):
    """Counts the elements of an array response."""

    def __init__(self, name: str, endpoint: str, metric: str):
        super().__init__(name, endpoint)
        self.metric = metric

    def map(self, tree):
        return [MetricSample.gauge(self.metric, len(extract_array(tree)))]

    def descriptors(self):
        return [MetricDescriptor(self.metric)]


class ActivityMapper(Mapper):
    """
    Weekly activity: an array of objects with a ``week`` identifier and
    string-encoded counts.

    By default every week is emitted with a ``week`` label. With
    ``latest_only`` only the first entry (the API lists the current week
    first) is emitted, unlabeled.
    """

    def __init__(self, name: str, endpoint: str,
                 statuses_metric: str = metrics.NUM_STATUSES,
                 logins_metric: str = metrics.NUM_LOGINS,
                 week_key: str = "week",
                 statuses_key: str = "statuses",
                 logins_key: str = "logins",
                 latest_only: bool = False):
        super().__init__(name, endpoint)
        self.statuses_metric = statuses_metric
        self.logins_metric = logins_metric
        self.week_key = week_key
        self.statuses_key = statuses_key
        self.logins_key = logins_key
        self.latest_only = latest_only

    def weeks(self, tree) -> Dict[str, Tuple[int, int]]:
        """Map week identifier to (statuses, logins); later duplicates win."""
        entries = extract_array(tree)
        weeks: Dict[str, Tuple[int, int]] = {}
        for index in range(len(entries)):
            week = extract_string(entries, index, self.week_key)
            weeks[week] = (
                extract_count(entries, index, self.statuses_key),
                extract_count(entries, index, self.logins_key),
            )
        return weeks

    def map(self, tree):
        weeks = self.weeks(tree)
        if self.latest_only:
            if not weeks:
                return []
            statuses, logins = next(iter(weeks.values()))
            return [MetricSample.gauge(self.statuses_metric, statuses),
                    MetricSample.gauge(self.logins_metric, logins)]

        samples = [MetricSample.gauge(self.statuses_metric, statuses, week=week)
                   for week, (statuses, _) in weeks.items()]
        samples.extend(MetricSample.gauge(self.logins_metric, logins, week=week)
                       for week, (_, logins) in weeks.items())
        return samples

    def descriptors(self):
        labelnames = () if self.latest_only else ("week",)
        return [MetricDescriptor(self.statuses_metric, labelnames),
                MetricDescriptor(self.logins_metric, labelnames)]


def instance_profile_mapper() -> FieldsMapper:
    return FieldsMapper(
        "instance_profile", INSTANCE_V1_API,
        fields=[
            (metrics.USER_COUNT, ("stats", "user_count")),
            (metrics.STATUS_COUNT, ("stats", "status_count")),
            (metrics.DOMAIN_COUNT, ("stats", "domain_count")),
        ],
        required=[("stats",)],
    )


def instance_usage_mapper() -> FieldsMapper:
    return FieldsMapper(
        "instance_usage", INSTANCE_V2_API,
        fields=[(metrics.MONTHLY_ACTIVE_USERS, ("usage", "users", "active_month"))],
        required=[("usage",), ("usage", "users")],
    )


def peers_mapper() -> ArrayLengthMapper:
    return ArrayLengthMapper("peers", PEERS_API, metrics.NUM_PEERS)


def activity_mapper(latest_only: bool = False) -> ActivityMapper:
    return ActivityMapper("activity", ACTIVITY_API, latest_only=latest_only)


API_VARIANTS = {
    # v1 instance stats plus v2 usage, activity labelled per week
    "v1v2": lambda: [
        instance_profile_mapper(),
        instance_usage_mapper(),
        peers_mapper(),
        activity_mapper(),
    ],
    # v2 instance only, activity reduced to the current week
    "v2": lambda: [
        instance_usage_mapper(),
        peers_mapper(),
        activity_mapper(latest_only=True),
    ],
}


def build_mappers(api_variant: str) -> List[Mapper]:
    """Instantiate the mapper table for ``api_variant``."""
    try:
        factory = API_VARIANTS[api_variant]
    except KeyError:
        raise ValueError(f"unknown API variant {api_variant!r}") from None
    return factory()
