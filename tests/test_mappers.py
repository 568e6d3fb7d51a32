"""
Tests for the per-endpoint metric mappers.
"""

import pytest

from mastodon_exporter import metrics
from mastodon_exporter.errors import ExtractError, FetchError, ParseError
from mastodon_exporter.mappers import (
    API_VARIANTS,
    ActivityMapper,
    activity_mapper,
    build_mappers,
    instance_profile_mapper,
    instance_usage_mapper,
    peers_mapper,
)
from mastodon_exporter.metrics import MetricSample

from conftest import ACTIVITY_URL, BASE_URL, INSTANCE_V1_URL, PEERS_URL


def values(samples):
    return {(s.name, s.labels): s.value for s in samples}


class TestInstanceProfileMapper:

    def test_extracts_stats(self, instance_doc):
        samples = instance_profile_mapper().map(instance_doc)
        assert samples == [
            MetricSample(metrics.USER_COUNT, (), 5.0),
            MetricSample(metrics.STATUS_COUNT, (), 20.0),
            MetricSample(metrics.DOMAIN_COUNT, (), 3.0),
        ]

    def test_missing_stats_object(self):
        with pytest.raises(ExtractError) as excinfo:
            instance_profile_mapper().map({})
        assert excinfo.value.path == ("stats",)

    def test_stats_of_wrong_type(self):
        with pytest.raises(ExtractError):
            instance_profile_mapper().map({"stats": [5, 20, 3]})

    def test_missing_field_is_all_or_nothing(self):
        with pytest.raises(ExtractError) as excinfo:
            instance_profile_mapper().map({"stats": {"user_count": 5, "status_count": 20}})
        assert excinfo.value.path == ("stats", "domain_count")


class TestInstanceUsageMapper:

    def test_extracts_monthly_active_users(self, usage_doc):
        samples = instance_usage_mapper().map(usage_doc)
        assert samples == [MetricSample(metrics.MONTHLY_ACTIVE_USERS, (), 7.0)]

    @pytest.mark.parametrize("doc, path", [
        ({}, ("usage",)),
        ({"usage": {}}, ("usage", "users")),
        ({"usage": {"users": "many"}}, ("usage", "users")),
        ({"usage": {"users": {}}}, ("usage", "users", "active_month")),
    ])
    def test_shape_errors(self, doc, path):
        with pytest.raises(ExtractError) as excinfo:
            instance_usage_mapper().map(doc)
        assert excinfo.value.path == path


class TestPeersMapper:

    @pytest.mark.parametrize("count", [0, 1, 250])
    def test_counts_array(self, count):
        peers = [f"peer{i}.example" for i in range(count)]
        samples = peers_mapper().map(peers)
        assert samples == [MetricSample(metrics.NUM_PEERS, (), float(count))]

    def test_object_response_is_an_error(self):
        with pytest.raises(ExtractError):
            peers_mapper().map({})


class TestActivityMapper:

    def test_per_week_samples(self):
        doc = [
            {"week": "200", "statuses": "5", "logins": "2"},
            {"week": "100", "statuses": "12", "logins": "3"},
        ]
        samples = activity_mapper().map(doc)

        assert [s.name for s in samples] == [
            metrics.NUM_STATUSES, metrics.NUM_STATUSES,
            metrics.NUM_LOGINS, metrics.NUM_LOGINS,
        ]
        assert values(samples) == {
            (metrics.NUM_STATUSES, (("week", "200"),)): 5.0,
            (metrics.NUM_STATUSES, (("week", "100"),)): 12.0,
            (metrics.NUM_LOGINS, (("week", "200"),)): 2.0,
            (metrics.NUM_LOGINS, (("week", "100"),)): 3.0,
        }

    def test_invalid_counts_default_to_zero(self):
        doc = [{"week": "100", "statuses": "abc", "logins": "3"}]
        assert values(activity_mapper().map(doc)) == {
            (metrics.NUM_STATUSES, (("week", "100"),)): 0.0,
            (metrics.NUM_LOGINS, (("week", "100"),)): 3.0,
        }

    @pytest.mark.parametrize("entry, key", [
        ({"week": "100", "logins": "3"}, "statuses"),
        ({"week": "100", "statuses": "12"}, "logins"),
        ({"week": "100", "statuses": None, "logins": "3"}, "statuses"),
        ({"week": "100", "statuses": "12", "logins": {"count": 3}}, "logins"),
        ({"week": "100", "statuses": ["12"], "logins": "3"}, "statuses"),
        ({"week": "100", "statuses": True, "logins": "3"}, "statuses"),
    ])
    def test_missing_or_wrong_typed_count_is_an_error(self, entry, key):
        with pytest.raises(ExtractError) as excinfo:
            activity_mapper().map([entry])
        assert excinfo.value.path == (0, key)

    @pytest.mark.parametrize("statuses", ["9" * 400, "9" * 5000, "9223372036854775808"])
    def test_out_of_range_count_strings_default_to_zero(self, statuses):
        samples = activity_mapper().map([{"week": "100", "statuses": statuses, "logins": "3"}])
        assert [s.value for s in samples] == [0.0, 3.0]

    def test_out_of_range_integer_count_defaults_to_zero(self):
        samples = activity_mapper().map([{"week": "100", "statuses": 10 ** 400, "logins": 3}])
        assert [s.value for s in samples] == [0.0, 3.0]

    def test_integer_counts_are_accepted(self):
        samples = activity_mapper().map([{"week": "100", "statuses": 4, "logins": 1}])
        assert [s.value for s in samples] == [4.0, 1.0]

    def test_duplicate_week_last_entry_wins(self):
        doc = [
            {"week": "100", "statuses": "1", "logins": "1"},
            {"week": "100", "statuses": "9", "logins": "8"},
        ]
        assert [s.value for s in activity_mapper().map(doc)] == [9.0, 8.0]

    def test_empty_array_emits_nothing(self):
        assert activity_mapper().map([]) == []

    def test_not_an_array(self):
        with pytest.raises(ExtractError):
            activity_mapper().map({"week": "100"})

    @pytest.mark.parametrize("doc", [
        ["100"],
        [{"statuses": "1", "logins": "1"}],
        [{"week": 100, "statuses": "1", "logins": "1"}],
    ])
    def test_malformed_entry(self, doc):
        with pytest.raises(ExtractError) as excinfo:
            activity_mapper().map(doc)
        assert excinfo.value.path[0] == 0

    def test_latest_only_emits_first_week_unlabeled(self):
        doc = [
            {"week": "200", "statuses": "5", "logins": "2"},
            {"week": "100", "statuses": "12", "logins": "3"},
        ]
        samples = activity_mapper(latest_only=True).map(doc)
        assert samples == [
            MetricSample(metrics.NUM_STATUSES, (), 5.0),
            MetricSample(metrics.NUM_LOGINS, (), 2.0),
        ]

    def test_custom_keys(self):
        mapper = ActivityMapper("activity", "/activity", week_key="period",
                                statuses_key="posts", logins_key="sessions")
        samples = mapper.map([{"period": "1", "posts": "2", "sessions": "3"}])
        assert values(samples) == {
            (metrics.NUM_STATUSES, (("week", "1"),)): 2.0,
            (metrics.NUM_LOGINS, (("week", "1"),)): 3.0,
        }

    def test_descriptors_follow_shape(self):
        assert [d.labelnames for d in activity_mapper().descriptors()] == [("week",), ("week",)]
        assert [d.labelnames for d in activity_mapper(latest_only=True).descriptors()] == [(), ()]


class TestMapperRun:
    """Fetch, parse and map through a fetcher."""

    def test_run_builds_url_and_passes_timeout(self, make_fetcher, instance_doc):
        fetcher = make_fetcher({INSTANCE_V1_URL: instance_doc})
        samples = instance_profile_mapper().run(fetcher, BASE_URL, timeout=2.0)

        assert len(samples) == 3
        assert fetcher.calls == [(INSTANCE_V1_URL, 2.0)]

    def test_fetch_error_propagates(self, make_fetcher):
        with pytest.raises(FetchError):
            peers_mapper().run(make_fetcher({}), BASE_URL)

    def test_parse_error_propagates(self, make_fetcher):
        fetcher = make_fetcher({ACTIVITY_URL: b"<html>oops</html>"})
        with pytest.raises(ParseError):
            activity_mapper().run(fetcher, BASE_URL)

    def test_extract_error_propagates(self, make_fetcher):
        fetcher = make_fetcher({PEERS_URL: {}})
        with pytest.raises(ExtractError):
            peers_mapper().run(fetcher, BASE_URL)


class TestMapperTables:

    def test_v1v2_order(self):
        assert [m.name for m in build_mappers("v1v2")] == [
            "instance_profile", "instance_usage", "peers", "activity",
        ]

    def test_v2_order(self):
        mappers = build_mappers("v2")
        assert [m.name for m in mappers] == ["instance_usage", "peers", "activity"]
        assert mappers[-1].latest_only is True

    def test_tables_build_fresh_mappers(self):
        assert build_mappers("v1v2")[0] is not build_mappers("v1v2")[0]
        assert set(API_VARIANTS) == {"v1v2", "v2"}

    def test_unknown_variant(self):
        with pytest.raises(ValueError):
            build_mappers("v3")
