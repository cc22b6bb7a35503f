"""Catalog backends package.

Backend interface, registry, and the arXiv backend.
"""

from .base import (
    BackendNotFoundError,
    BackendRegistry,
    CatalogBackend,
    Sink,
    UnknownBackendCommand,
)

from .arxiv_feed import MalformedResponse, parse_feed

from .arxiv_records import (
    ArxivRecord,
    arxiv_pdf_url,
    extract_identifier,
    extract_year,
    format_author,
    normalize_entry,
)

from .arxiv_bibtex import render_arxiv_bibtex

from .arxiv import ArxivBackend, default_registry, forward_arxiv_bibtex

__all__ = [
    "BackendNotFoundError",
    "BackendRegistry",
    "CatalogBackend",
    "Sink",
    "UnknownBackendCommand",

    "MalformedResponse",
    "parse_feed",

    "ArxivRecord",
    "arxiv_pdf_url",
    "extract_identifier",
    "extract_year",
    "format_author",
    "normalize_entry",

    "render_arxiv_bibtex",

    "ArxivBackend",
    "default_registry",
    "forward_arxiv_bibtex",
]
