"""Local BibTeX rendering for arXiv records without a DOI."""

from __future__ import annotations

from typing import Callable, List, Optional

from loguru import logger

from src.backends.arxiv_records import ArxivRecord
from src.citations.bibtex import PLACEHOLDER_KEY, format_bibtex
from src.config import ARXIV


AUTHOR_SEPARATOR = " AND "
ARCHIVE_PREFIX = "arXiv"


def _notify(message: str) -> None:
    logger.info(message)


def escape_value(value: Optional[str]) -> str:
    """Field text safe to place inside braces; unmatched braces are dropped."""
    if not value:
        return ""

    unmatched = set()
    opened: List[int] = []
    for i, ch in enumerate(value):
        if ch == "{":
            opened.append(i)
        elif ch == "}":
            if opened:
                opened.pop()
            else:
                unmatched.add(i)
    unmatched.update(opened)

    if not unmatched:
        return value
    return "".join(ch for i, ch in enumerate(value) if i not in unmatched)


def build_raw_bibtex(record: ArxivRecord, header: Optional[str] = None) -> str:
    """Unformatted entry text; the key is the placeholder."""
    authors = AUTHOR_SEPARATOR.join(escape_value(a) for a in record.authors)
    return (
        f"@{header or ARXIV.BIBTEX_HEADER}{{{PLACEHOLDER_KEY},\n"
        f"author = {{{authors}}},\n"
        f"title = {{{{{escape_value(record.title)}}}}},\n"
        f"year = {{{escape_value(record.year)}}},\n"
        f"archivePrefix = {{{ARCHIVE_PREFIX}}},\n"
        f"eprint = {{{escape_value(record.identifier)}}},\n"
        f"primaryClass = {{{escape_value(record.category)}}}}}"
    )


def render_arxiv_bibtex(
    record: ArxivRecord,
    *,
    header: Optional[str] = None,
    notify: Optional[Callable[[str], None]] = None,
    formatter: Optional[Callable[[str], str]] = None,
) -> str:
    """Render `record` as a formatted BibTeX entry.

    Args:
        record: Normalized arXiv record.
        header: Entry type (default: ARXIV.BIBTEX_HEADER, "online").
        notify: Receives an informational message naming the record.
        formatter: Reformats the raw entry (default: format_bibtex).
    """
    (notify or _notify)(f"Auto-generated bibtex entry for {record.id!r}.")
    return (formatter or format_bibtex)(build_raw_bibtex(record, header))
