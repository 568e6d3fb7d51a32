"""
HTTP fetcher for the Mastodon REST API.
"""
from typing import Optional

import requests
import urllib3

from .errors import FetchError
from .logger import get_logger


class HttpFetcher:
    """
    Issues single, unauthenticated GET requests and returns the raw body.

    One fetcher (and its ``requests.Session``) is shared by every scrape.
    Certificate verification is off unless ``verify_tls`` is set, since the
    monitored instance is trusted even when its chain is incomplete.
    """

    def __init__(self, session: Optional[requests.Session] = None,
                 timeout: Optional[float] = None,
                 verify_tls: bool = False,
                 check_status: bool = True):
        self.session = session or requests.Session()
        self.timeout = timeout
        self.verify_tls = verify_tls
        self.check_status = check_status
        self.logger = get_logger("fetcher")

        if not verify_tls:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    def fetch(self, url: str, timeout: Optional[float] = None) -> bytes:
        """
        GET ``url`` and return the response body.

        Args:
            url: Fully-qualified URL
            timeout: Overrides the fetcher's timeout for this request

        Raises:
            FetchError: on transport failure, timeout or, when status
                checking is on, a non-2xx response
        """
        if timeout is None:
            timeout = self.timeout

        self.logger.debug("HTTP request started", url=url, timeout=timeout)
        try:
            with self.session.get(url, timeout=timeout, verify=self.verify_tls) as response:
                if self.check_status and not 200 <= response.status_code < 300:
                    raise FetchError(url, f"HTTP {response.status_code}",
                                     status_code=response.status_code)
                body = response.content
        except requests.exceptions.RequestException as e:
            raise FetchError(url, f"{type(e).__name__}: {e}") from e

        self.logger.debug("HTTP request completed", url=url,
                          status_code=response.status_code, size=len(body))
        return body

    def close(self):
        """Release pooled connections."""
        self.session.close()
