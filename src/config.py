"""
Centralized Configuration
=========================
Centralized configuration values and constants for biblio-arxiv.

This module provides:
- Timeout configuration for catalog and DOI lookups
- arXiv backend settings (endpoint, BibTeX entry-type label)
- BibTeX formatter settings
- Environment variable defaults
"""

import os
from dataclasses import dataclass
from typing import Optional


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


@dataclass(frozen=True)
class TimeoutConfig:
    """Centralized timeout configuration in seconds."""

    # Catalog and resolver requests
    EXTERNAL_API: int = int(os.getenv("BIBLIO_EXTERNAL_TIMEOUT", "30"))
    CONNECT: int = 10  # Connection timeout


@dataclass(frozen=True)
class ArxivConfig:
    """arXiv backend configuration."""

    # Query endpoint; the percent-encoded query is appended as search_query
    API_URL: str = os.getenv("BIBLIO_ARXIV_API_URL", "http://export.arxiv.org/api/query")

    # Entry type of locally generated BibTeX entries (@online, @misc, ...)
    BIBTEX_HEADER: str = os.getenv("BIBLIO_ARXIV_BIBTEX_HEADER", "online")

    # Page size used by the transport client, not by the query URL
    MAX_RESULTS: int = int(os.getenv("BIBLIO_ARXIV_MAX_RESULTS", "10"))


@dataclass(frozen=True)
class BibtexConfig:
    """BibTeX formatter configuration."""

    # Replace placeholder keys with <LastName><year> keys
    AUTOKEY: bool = _env_flag("BIBLIO_BIBTEX_AUTOKEY", "false")

    # Pad field names so that '=' signs line up
    ALIGN: bool = _env_flag("BIBLIO_BIBTEX_ALIGN", "false")


@dataclass(frozen=True)
class DoiConfig:
    """DOI resolver configuration."""

    RESOLVER_URL: str = "https://doi.org"
    CROSSREF_API_BASE: str = "https://api.crossref.org"
    USER_AGENT: str = "biblio-arxiv/0.1"

    # Crossref polite pool
    MAILTO: Optional[str] = os.getenv("BIBLIO_MAILTO") or None


# Global singleton instances
TIMEOUTS = TimeoutConfig()
ARXIV = ArxivConfig()
BIBTEX = BibtexConfig()
DOI = DoiConfig()


def get_timeout(operation: str) -> int:
    """Get timeout for a specific operation type.

    Args:
        operation: One of 'external', 'connect'

    Returns:
        Timeout in seconds
    """
    mapping = {
        "external": TIMEOUTS.EXTERNAL_API,
        "connect": TIMEOUTS.CONNECT,
    }
    return mapping.get(operation, TIMEOUTS.EXTERNAL_API)
