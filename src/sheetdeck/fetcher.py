"""HTTP fetcher backed by requests."""

import logging
from typing import Optional

import requests

from .interfaces import HttpResponse

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    'User-Agent': 'sheetdeck-updater',
    'Accept': 'text/plain, text/csv, application/json, */*',
}


class RequestsFetcher:
    """Single-attempt GET with a timeout; retrying is the caller's job.

    Transport errors (DNS, connection, timeout) propagate as
    ``requests.RequestException``. Any HTTP status is returned as-is.
    """

    def __init__(self, session: Optional[requests.Session] = None):
        self.session = session or requests.Session()
        self.session.headers.update(DEFAULT_HEADERS)

    def fetch(self, url: str, timeout: float = 30) -> HttpResponse:
        logger.debug(f"GET {url}")
        response = self.session.get(url, timeout=timeout, allow_redirects=True)
        return HttpResponse(status=response.status_code, text=response.text)
