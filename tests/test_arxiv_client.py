"""Unit tests for the arXiv API client."""

from __future__ import annotations

from unittest.mock import patch

import httpx
import pytest

from src.backends.arxiv import ArxivBackend
from src.backends.arxiv_client import ArxivClient, ArxivTransportError
from src.backends.arxiv_feed import MalformedResponse


API_URL = "http://export.arxiv.org/api/query"

FEED = """<feed xmlns="http://www.w3.org/2005/Atom" xmlns:arxiv="http://arxiv.org/schemas/atom">
  <title>ArXiv Query: search_query=ti:attention</title>
  <entry>
    <id>http://arxiv.org/abs/1706.03762</id>
    <published>2017-06-12T17:57:34Z</published>
    <title>Attention Is All You Need</title>
    <author><name>Ashish Vaswani</name></author>
    <arxiv:primary_category term="cs.CL"/>
  </entry>
</feed>
"""


def _response(status_code: int = 200, text: str = FEED) -> httpx.Response:
    request = httpx.Request("GET", f"{API_URL}?search_query=ti%3Aattention")
    return httpx.Response(status_code=status_code, text=text, request=request)


@pytest.fixture
def client() -> ArxivClient:
    return ArxivClient(ArxivBackend(api_url=API_URL), max_results=5)


@pytest.mark.unit
def test_search_returns_records(client):
    with patch.object(httpx.Client, "get", return_value=_response()) as mock_get:
        records = client.search("ti:attention")

    assert len(records) == 1
    assert records[0].identifier == "1706.03762"
    assert records[0].year == "2017"
    assert mock_get.call_args[0][0] == f"{API_URL}?search_query=ti%3Aattention"
    assert mock_get.call_args[1]["params"] == {"max_results": 5}


@pytest.mark.unit
def test_fetch_client_error_raises_transport_error(client):
    with patch.object(httpx.Client, "get", return_value=_response(status_code=400, text="bad query")):
        with pytest.raises(ArxivTransportError):
            client.fetch("ti:")


@pytest.mark.unit
def test_fetch_network_error_raises_transport_error(client):
    request = httpx.Request("GET", API_URL)
    with patch.object(httpx.Client, "get", side_effect=httpx.ConnectError("refused", request=request)):
        with pytest.raises(ArxivTransportError):
            client.fetch("ti:attention")


@pytest.mark.unit
def test_search_malformed_body_raises(client):
    with patch.object(httpx.Client, "get", return_value=_response(text="<feed><entry>")):
        with pytest.raises(MalformedResponse):
            client.search("ti:attention")


@pytest.mark.unit
def test_default_backend_and_page_size():
    c = ArxivClient()
    assert isinstance(c.backend, ArxivBackend)
    assert c.max_results > 0


@pytest.mark.unit
def test_explicit_zero_page_size_is_sent_as_given():
    c = ArxivClient(ArxivBackend(api_url=API_URL), max_results=0)
    assert c.max_results == 0

    with patch.object(httpx.Client, "get", return_value=_response()) as mock_get:
        c.fetch("ti:attention")

    assert mock_get.call_args[1]["params"] == {"max_results": 0}
