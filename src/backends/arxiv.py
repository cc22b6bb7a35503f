"""
arXiv Backend
=============
Catalog backend for the arXiv API (http://export.arxiv.org/api/query).

Search results come back as an Atom feed; each entry is normalized into an
`ArxivRecord`. BibTeX for a record comes from its DOI when arXiv lists one
(the published version is authoritative), otherwise it is generated locally
as an @online entry with archivePrefix/eprint/primaryClass fields.

Usage:
    backend = ArxivBackend()
    url = backend.url("all:transformer attention")
    records = backend.parse_buffer(body)
    backend.forward_bibtex(records[0], print)
"""

from __future__ import annotations

from typing import Callable, List, Optional, Union
from urllib.parse import quote

from loguru import logger

from src.backends.arxiv_bibtex import render_arxiv_bibtex
from src.backends.arxiv_feed import parse_feed
from src.backends.arxiv_records import ArxivRecord, normalize_entry
from src.backends.base import BackendRegistry, CatalogBackend, Sink
from src.citations.doi import forward_doi_bibtex
from src.config import ARXIV


BACKEND_NAME = "arXiv"
BACKEND_PROMPT = "arXiv query: "

# Resolver contract: (doi, sink) -> None, calls sink once or raises
Resolver = Callable[[str, Sink], None]
Renderer = Callable[[ArxivRecord], str]


def forward_arxiv_bibtex(
    record: ArxivRecord,
    forward_to: Sink,
    *,
    resolver: Resolver,
    render: Renderer,
) -> None:
    """Send BibTeX for `record` to `forward_to`.

    Records with a DOI go to `resolver`, which owns the sink call from then
    on; `render` is not used for them. Resolver errors propagate.
    """
    if record.has_cross_ref:
        logger.debug(f"Forwarding {record.identifier} to DOI resolver ({record.cross_ref_id})")
        resolver(record.cross_ref_id.strip(), forward_to)
        return
    forward_to(render(record))


class ArxivBackend(CatalogBackend):
    """arXiv catalog backend."""

    def __init__(
        self,
        *,
        api_url: Optional[str] = None,
        bibtex_header: Optional[str] = None,
        resolver: Optional[Resolver] = None,
        notify: Optional[Callable[[str], None]] = None,
    ):
        """
        Args:
            api_url: Query endpoint (default: ARXIV.API_URL)
            bibtex_header: Entry type for local entries (default: ARXIV.BIBTEX_HEADER)
            resolver: DOI resolver (default: forward_doi_bibtex)
            notify: Receives the render notification (default: log at INFO)
        """
        self.api_url = api_url or ARXIV.API_URL
        self.bibtex_header = bibtex_header or ARXIV.BIBTEX_HEADER
        self.resolver = resolver or forward_doi_bibtex
        self.notify = notify

    def name(self) -> str:
        return BACKEND_NAME

    def prompt(self) -> str:
        return BACKEND_PROMPT

    def url(self, query: str) -> str:
        return f"{self.api_url}?search_query={quote(query, safe='')}"

    def parse_buffer(self, body: Union[str, bytes]) -> List[ArxivRecord]:
        """Records for every entry in `body`, in feed order.

        Raises:
            MalformedResponse: If `body` is not well-formed XML.
        """
        return [normalize_entry(entry) for entry in parse_feed(body)]

    def render(self, record: ArxivRecord) -> str:
        return render_arxiv_bibtex(record, header=self.bibtex_header, notify=self.notify)

    def forward_bibtex(self, record: ArxivRecord, forward_to: Sink) -> None:
        forward_arxiv_bibtex(record, forward_to, resolver=self.resolver, render=self.render)


def default_registry() -> BackendRegistry:
    """A registry with the arXiv backend already registered."""
    registry = BackendRegistry()
    ArxivBackend().register(registry)
    return registry
