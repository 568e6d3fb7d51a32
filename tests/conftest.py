"""Pytest configuration and shared fixtures."""

import json

import pytest

from mastodon_exporter import ExporterConfig, FetchError

BASE_URL = "https://mastodon.example"

INSTANCE_V1_URL = BASE_URL + "/api/v1/instance"
INSTANCE_V2_URL = BASE_URL + "/api/v2/instance"
PEERS_URL = BASE_URL + "/api/v1/instance/peers"
ACTIVITY_URL = BASE_URL + "/api/v1/instance/activity"


class FakeFetcher:
    """Serves canned bodies by URL and records every request."""

    def __init__(self, responses, timeout=None):
        self.responses = dict(responses)
        self.timeout = timeout
        self.calls = []

    def fetch(self, url, timeout=None):
        self.calls.append((url, timeout))
        response = self.responses.get(url)
        if response is None:
            raise FetchError(url, "connection refused")
        if isinstance(response, Exception):
            raise response
        if isinstance(response, bytes):
            return response
        return json.dumps(response).encode()

    @property
    def urls(self):
        return [url for url, _ in self.calls]


@pytest.fixture
def instance_doc():
    return {"stats": {"user_count": 5, "status_count": 20, "domain_count": 3}}


@pytest.fixture
def usage_doc():
    return {"usage": {"users": {"active_month": 7}}}


@pytest.fixture
def peers_doc():
    return ["a.example", "b.example"]


@pytest.fixture
def activity_doc():
    return [{"week": "100", "statuses": "12", "logins": "3"}]


@pytest.fixture
def responses(instance_doc, usage_doc, peers_doc, activity_doc):
    """URL -> document for a healthy instance."""
    return {
        INSTANCE_V1_URL: instance_doc,
        INSTANCE_V2_URL: usage_doc,
        PEERS_URL: peers_doc,
        ACTIVITY_URL: activity_doc,
    }


@pytest.fixture
def make_fetcher():
    return FakeFetcher


@pytest.fixture
def config():
    return ExporterConfig(domain="mastodon.example")
