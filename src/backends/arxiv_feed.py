"""arXiv Atom feed parsing.

`parse_feed` turns a complete API response body into the list of `<entry>`
elements it contains; everything else at the top level (feed title, links,
OpenSearch pagination) is dropped. The accessor helpers read optional
sub-fields from an entry and return None when a path is missing.
"""

from __future__ import annotations

from typing import List, Optional, Union
import xml.etree.ElementTree as ET

from loguru import logger


ATOM_NS = "http://www.w3.org/2005/Atom"
ARXIV_NS = "http://arxiv.org/schemas/atom"

NAMESPACES = {
    "atom": ATOM_NS,
    "arxiv": ARXIV_NS,
}

ENTRY_TAG = f"{{{ATOM_NS}}}entry"
AUTHOR_TAG = f"{{{ATOM_NS}}}author"


class MalformedResponse(ValueError):
    pass


def parse_feed(body: Union[str, bytes]) -> List[ET.Element]:
    """Parse a feed document and return its entries in document order.

    Raises:
        MalformedResponse: If `body` is not well-formed XML.
    """
    if body is None:
        raise MalformedResponse("Empty response body")
    try:
        root = ET.fromstring(body)
    except ET.ParseError as e:
        raise MalformedResponse(f"Feed is not well-formed XML: {e}")

    entries = [node for node in root if node.tag == ENTRY_TAG]
    logger.debug(f"Parsed feed with {len(entries)} entries")
    return entries


def child(node: ET.Element, path: str) -> Optional[ET.Element]:
    """First sub-element at a prefixed path such as 'arxiv:doi'."""
    return node.find(path, NAMESPACES)


def children(node: ET.Element, path: str) -> List[ET.Element]:
    return node.findall(path, NAMESPACES)


def child_text(node: ET.Element, path: str) -> Optional[str]:
    """Stripped text of the sub-element at `path`, None if missing or empty."""
    el = child(node, path)
    if el is None or el.text is None:
        return None
    text = el.text.strip()
    return text or None


def child_attr(node: ET.Element, path: str, attr: str) -> Optional[str]:
    el = child(node, path)
    if el is None:
        return None
    return el.get(attr)
