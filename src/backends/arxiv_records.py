"""arXiv record normalization.

Maps one Atom `<entry>` to an `ArxivRecord`. Missing sub-fields become None
(or an empty author tuple); normalization never fails on an entry.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
import re
from typing import Any, Dict, List, Optional, Tuple
import xml.etree.ElementTree as ET

from src.backends.arxiv_feed import AUTHOR_TAG, child_attr, child_text


ABS_URL_PREFIX = "http://arxiv.org/abs/"
RECORD_TYPE = "eprint"

# YYYY-MM-DDThh:mm:ss with an optional ±hh:mm offset or a Z designator
_PUBLISHED_RE = re.compile(
    r"([0-9]{4})-[0-9]{2}-[0-9]{2}T[0-9]{2}:[0-9]{2}:[0-9]{2}(?:[-+][0-9]{2}:[0-9]{2}|Z)?"
)


@dataclass(frozen=True)
class ArxivRecord:
    """One normalized search result."""

    id: Optional[str]
    identifier: Optional[str]
    title: Optional[str]
    authors: Tuple[str, ...]
    year: Optional[str]
    container: Optional[str]
    category: Optional[str]
    cross_ref_id: Optional[str]
    type: str
    url: Optional[str]

    def __getitem__(self, key: str) -> Any:
        if key not in self.__dataclass_fields__:
            raise KeyError(key)
        return getattr(self, key)

    def keys(self) -> List[str]:
        return list(self.__dataclass_fields__)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a plain dictionary with all ten keys."""
        data = asdict(self)
        data["authors"] = list(self.authors)
        return data

    @property
    def has_cross_ref(self) -> bool:
        return bool(self.cross_ref_id and self.cross_ref_id.strip())


def extract_identifier(raw_id: Optional[str]) -> Optional[str]:
    """Short arXiv id from an abstract page URL; other strings pass through."""
    if raw_id is None:
        return None
    if raw_id.startswith(ABS_URL_PREFIX):
        return raw_id[len(ABS_URL_PREFIX) :]
    return raw_id


def extract_year(published: Optional[str]) -> Optional[str]:
    if not published:
        return None
    m = _PUBLISHED_RE.fullmatch(published)
    return m.group(1) if m else None


def format_author(node: ET.Element) -> Optional[str]:
    """'Name (Affiliation)' for an author node, None for any other node."""
    if node.tag != AUTHOR_TAG:
        return None
    name = child_text(node, "atom:name") or ""
    affiliation = child_text(node, "arxiv:affiliation")
    if affiliation:
        return f"{name} ({affiliation})"
    return name


def entry_authors(entry: ET.Element) -> Tuple[str, ...]:
    formatted = (format_author(node) for node in entry)
    return tuple(a for a in formatted if a is not None)


def arxiv_pdf_url(record: ArxivRecord) -> Optional[str]:
    if not record.identifier:
        return None
    return f"https://arxiv.org/pdf/{record.identifier}.pdf"


def normalize_entry(entry: ET.Element) -> ArxivRecord:
    raw_id = child_text(entry, "atom:id")
    return ArxivRecord(
        id=raw_id,
        identifier=extract_identifier(raw_id),
        title=child_text(entry, "atom:title"),
        authors=entry_authors(entry),
        year=extract_year(child_text(entry, "atom:published")),
        container=child_text(entry, "arxiv:journal_ref"),
        category=child_attr(entry, "arxiv:primary_category", "term"),
        cross_ref_id=child_text(entry, "arxiv:doi"),
        type=RECORD_TYPE,
        url=child_attr(entry, "atom:link", "href"),
    )
