"""Citations package.

BibTeX formatting and authoritative DOI resolution.
"""

from .bibtex import (
    FIELD_ORDER,
    PLACEHOLDER_KEY,
    BibtexFormatError,
    bibtex_entry,
    field_text,
    format_bibtex,
    mint_citation_key,
    parse_bibtex_entry,
    split_authors,
)

from .doi import (
    DoiClient,
    DoiClientConfig,
    DoiNotFoundError,
    DoiResolutionError,
    crossref_work_to_bibtex,
    forward_doi_bibtex,
    normalize_doi,
    resolve_doi_bibtex,
)

__all__ = [
    "FIELD_ORDER",
    "PLACEHOLDER_KEY",
    "BibtexFormatError",
    "bibtex_entry",
    "field_text",
    "format_bibtex",
    "mint_citation_key",
    "parse_bibtex_entry",
    "split_authors",

    "DoiClient",
    "DoiClientConfig",
    "DoiNotFoundError",
    "DoiResolutionError",
    "crossref_work_to_bibtex",
    "forward_doi_bibtex",
    "normalize_doi",
    "resolve_doi_bibtex",
]
