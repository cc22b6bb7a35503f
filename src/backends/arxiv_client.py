"""
arXiv API Client
================
Fetches search result feeds from the arXiv API and hands them to
`ArxivBackend.parse_buffer`.

API Documentation: https://info.arxiv.org/help/api/user-manual.html
"""

from typing import List, Optional

import httpx
from loguru import logger
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from src.backends.arxiv import ArxivBackend
from src.backends.arxiv_records import ArxivRecord
from src.config import ARXIV, get_timeout


class ArxivTransportError(RuntimeError):
    pass


class ArxivClient:
    """Sync client for the arXiv query API.

    Usage:
        client = ArxivClient()
        for record in client.search("ti:attention AND cat:cs.CL"):
            print(record.identifier, record.title)
    """

    def __init__(
        self,
        backend: Optional[ArxivBackend] = None,
        *,
        max_results: Optional[int] = None,
        timeout: Optional[httpx.Timeout] = None,
    ):
        self.backend = backend or ArxivBackend()
        self.max_results = ARXIV.MAX_RESULTS if max_results is None else max_results
        self.timeout = timeout or httpx.Timeout(
            float(get_timeout("external")),
            connect=float(get_timeout("connect")),
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.HTTPStatusError)),
        reraise=True,
    )
    def _get(self, url: str) -> httpx.Response:
        with httpx.Client(timeout=self.timeout, follow_redirects=True) as client:
            resp = client.get(url, params={"max_results": self.max_results})
        if resp.status_code >= 500:
            resp.raise_for_status()
        return resp

    def fetch(self, query: str) -> str:
        """Fetch the raw feed body for `query`."""
        url = self.backend.url(query)
        logger.debug(f"arXiv request: {url}")
        try:
            resp = self._get(url)
        except httpx.HTTPError as e:
            raise ArxivTransportError(f"arXiv request failed: {e}")
        if resp.status_code >= 400:
            raise ArxivTransportError(f"arXiv returned HTTP {resp.status_code}")
        return resp.text

    def search(self, query: str) -> List[ArxivRecord]:
        """Fetch and parse the results for `query`.

        Raises:
            ArxivTransportError: On network or HTTP errors.
            MalformedResponse: If the body is not a well-formed feed.
        """
        records = self.backend.parse_buffer(self.fetch(query))
        logger.info(f"arXiv returned {len(records)} results for {query!r}")
        return records
