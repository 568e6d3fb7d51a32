"""
Tests for the HTTP fetcher.
"""

from unittest.mock import MagicMock

import pytest
import requests

from mastodon_exporter.errors import FetchError
from mastodon_exporter.fetcher import HttpFetcher

URL = "https://mastodon.example/api/v1/instance"


def make_session(status_code=200, content=b"{}", error=None):
    """Session whose GET returns a context-managed fake response."""
    session = MagicMock(spec=requests.Session)
    if error is not None:
        session.get.side_effect = error
        return session, None

    response = MagicMock()
    response.status_code = status_code
    response.content = content
    response.__enter__.return_value = response
    response.__exit__.return_value = False
    session.get.return_value = response
    return session, response


class TestHttpFetcher:
    """Test single GET requests."""

    def test_returns_body_and_releases_response(self):
        session, response = make_session(content=b'{"stats": {}}')
        fetcher = HttpFetcher(session=session)

        assert fetcher.fetch(URL) == b'{"stats": {}}'
        session.get.assert_called_once_with(URL, timeout=None, verify=False)
        response.__exit__.assert_called_once()

    def test_no_timeout_unless_configured(self):
        session, _ = make_session()
        HttpFetcher(session=session).fetch(URL)
        assert session.get.call_args.kwargs["timeout"] is None

    def test_configured_timeout_and_per_call_override(self):
        session, _ = make_session()
        fetcher = HttpFetcher(session=session, timeout=5.0)

        fetcher.fetch(URL)
        assert session.get.call_args.kwargs["timeout"] == 5.0

        fetcher.fetch(URL, timeout=1.5)
        assert session.get.call_args.kwargs["timeout"] == 1.5

    def test_verify_tls_is_passed_through(self):
        session, _ = make_session()
        HttpFetcher(session=session, verify_tls=True).fetch(URL)
        assert session.get.call_args.kwargs["verify"] is True

    def test_non_2xx_status_raises_and_releases_response(self):
        session, response = make_session(status_code=503, content=b"<html>down</html>")
        fetcher = HttpFetcher(session=session)

        with pytest.raises(FetchError) as excinfo:
            fetcher.fetch(URL)

        assert excinfo.value.status_code == 503
        assert excinfo.value.url == URL
        assert "HTTP 503" in str(excinfo.value)
        response.__exit__.assert_called_once()

    def test_status_check_can_be_disabled(self):
        session, _ = make_session(status_code=404, content=b'{"error": "nope"}')
        fetcher = HttpFetcher(session=session, check_status=False)
        assert fetcher.fetch(URL) == b'{"error": "nope"}'

    @pytest.mark.parametrize("error", [
        requests.exceptions.ConnectionError("refused"),
        requests.exceptions.ReadTimeout("slow"),
        requests.exceptions.SSLError("bad handshake"),
        requests.exceptions.InvalidURL("no host"),
    ])
    def test_transport_errors_become_fetch_errors(self, error):
        session, _ = make_session(error=error)
        fetcher = HttpFetcher(session=session)

        with pytest.raises(FetchError) as excinfo:
            fetcher.fetch(URL)

        assert excinfo.value.__cause__ is error
        assert excinfo.value.status_code is None
        assert type(error).__name__ in str(excinfo.value)

    def test_close_closes_session(self):
        session, _ = make_session()
        HttpFetcher(session=session).close()
        session.close.assert_called_once()
