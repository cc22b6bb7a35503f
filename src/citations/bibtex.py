"""BibTeX entry formatting.

Reads a single raw BibTeX entry with bibtexparser and writes it back in a
fixed layout:

    @type{key,
      field = {value},
      ...
    }

Key generation is optional: placeholder keys (see `PLACEHOLDER_KEY`) are kept
unless `autokey` is requested, in which case a stable `<LastName><year>` key
is minted.

This module is offline and deterministic: no timestamps, no network.
"""

from __future__ import annotations

import hashlib
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import bibtexparser
from bibtexparser.bibdatabase import BibDatabase, UndefinedString, as_text
from bibtexparser.bibtexexpression import BibtexExpression
from bibtexparser.bparser import BibTexParser
from bibtexparser.bwriter import BibTexWriter

from src.config import BIBTEX


PLACEHOLDER_KEY = "NO_KEY"

# Fields written first, in this order; any other field follows alphabetically.
FIELD_ORDER: Tuple[str, ...] = (
    "author",
    "editor",
    "title",
    "journal",
    "booktitle",
    "series",
    "howpublished",
    "institution",
    "year",
    "month",
    "volume",
    "number",
    "pages",
    "publisher",
    "doi",
    "url",
    "archivePrefix",
    "eprint",
    "primaryClass",
)

# bibtexparser lowercases field names; these keep their usual spelling.
_FIELD_NAMES = {
    "archiveprefix": "archivePrefix",
    "primaryclass": "primaryClass",
}

_ENTRY_META = ("ENTRYTYPE", "ID")

_AFFILIATION_RE = re.compile(r"\s*\([^()]*\)\s*$")
_AUTHOR_SEP_RE = re.compile(r"\s+and\s+", re.IGNORECASE)


class BibtexFormatError(ValueError):
    pass


def _parser() -> BibTexParser:
    # Month macros stay macros (`month = jun`) instead of being expanded.
    return BibTexParser(
        ignore_nonstandard_types=False,
        common_strings=True,
        interpolate_strings=False,
    )


def _writer(order: Sequence[str], align: bool) -> BibTexWriter:
    writer = BibTexWriter()
    writer.contents = ["entries"]
    writer.indent = "  "
    writer.order_entries_by = None
    writer.display_order = list(order)
    writer.align_values = align
    return writer


def parse_bibtex_entry(raw: str) -> Dict[str, Any]:
    """Parse one BibTeX entry into a bibtexparser entry dict.

    The dict carries `ENTRYTYPE` and `ID` plus one item per field. Plain
    values are strings without their outer delimiters; macro values stay
    bibtexparser string expressions.

    Raises:
        BibtexFormatError: If the text does not hold exactly one entry.
    """
    if not isinstance(raw, str):
        raise BibtexFormatError("BibTeX entry must be a string")

    try:
        database = bibtexparser.loads(raw, parser=_parser())
    except BibtexExpression.ParseException as e:
        raise BibtexFormatError(f"Could not parse BibTeX entry: {e}") from e

    if len(database.entries) != 1:
        raise BibtexFormatError(f"Expected one BibTeX entry, found {len(database.entries)}")

    entry = database.entries[0]
    return {_FIELD_NAMES.get(name, name): value for name, value in entry.items()}


def field_text(entry: Dict[str, Any], name: str) -> Optional[str]:
    """Plain text of a parsed field, macros expanded; None when absent."""
    if name not in entry:
        return None
    try:
        return as_text(entry[name])
    except UndefinedString as e:
        raise BibtexFormatError(f"Undefined macro in field {name!r}: {e}") from e


def _is_blank(value: str) -> bool:
    return not value.replace("{", "").replace("}", "").strip()


def _clean_fields(entry: Dict[str, Any]) -> Dict[str, Any]:
    """Fold whitespace in plain values and drop empty ones."""
    fields: Dict[str, Any] = {}
    for name, value in entry.items():
        if name in _ENTRY_META:
            continue
        if isinstance(value, str):
            value = " ".join(value.split())
            if _is_blank(value):
                continue
        fields[name] = value
    return fields


def _write_entry(
    entry_type: str,
    key: str,
    fields: Dict[str, Any],
    *,
    order: Sequence[str],
    align: bool,
) -> str:
    if not fields:
        return f"@{entry_type}{{{key},\n}}"

    database = BibDatabase()
    database.entries = [dict(fields, ENTRYTYPE=entry_type, ID=key)]
    return bibtexparser.dumps(database, writer=_writer(order, align)).rstrip("\n")


def _nesting_depth(text: str) -> int:
    return text.count("(") + text.count("{") - text.count(")") - text.count("}")


def _author_last_name(author: str) -> str:
    a = _AFFILIATION_RE.sub("", author).strip().strip("{}")
    if "," in a:
        return a.split(",", 1)[0].strip()
    parts = a.split()
    return parts[-1] if parts else ""


def split_authors(value: Optional[str]) -> List[str]:
    """Split a BibTeX author field on its `and` separators.

    Separators inside parentheses or braces (affiliations, corporate names)
    do not split.
    """
    if not value or not value.strip():
        return []

    text = value.strip()
    parts: List[str] = []
    start = 0
    for m in _AUTHOR_SEP_RE.finditer(text):
        if _nesting_depth(text[: m.start()]) > 0:
            continue
        parts.append(text[start : m.start()])
        start = m.end()
    parts.append(text[start:])
    return [a.strip() for a in parts if a.strip()]


def mint_citation_key(
    *,
    authors: List[str],
    year: Optional[str],
    title: str,
    existing_keys: Iterable[str] = (),
) -> str:
    """Mint a stable citation key.

    Strategy:
        - Base: <first-author-lastname><year>
        - If collision, append alphabetic suffixes: a..z, aa..az, ba.. etc.
        - If the first author is missing, incorporate a stable short hash of
          the title into the base key to reduce collisions.
    """

    def _index_to_suffix(index: int) -> str:
        """Convert 0-based index to suffix: 0 -> a, 25 -> z, 26 -> aa."""
        n = index + 1
        chars: List[str] = []
        while n > 0:
            n -= 1
            n, rem = divmod(n, 26)
            chars.append(chr(ord("a") + rem))
        return "".join(reversed(chars))

    first_author = authors[0] if authors and isinstance(authors[0], str) else ""
    last_name = _author_last_name(first_author)

    base = "".join(ch for ch in last_name if ch.isalnum())
    if not base:
        base = "Unknown"

    base_key = f"{base}{(year or '').strip()}"

    # Keep it alphanumeric for compatibility with downstream citation key parsing.
    if base == "Unknown":
        normalized_title = (title or "").replace("{", "").replace("}", "").strip().lower().encode("utf-8")
        if normalized_title:
            digest = hashlib.sha1(normalized_title).hexdigest()[:6]
            base_key = f"{base_key}{digest}"

    taken = {k for k in existing_keys if isinstance(k, str) and k.strip()}
    if base_key not in taken:
        return base_key

    suffix_index = 0
    while True:
        key = f"{base_key}{_index_to_suffix(suffix_index)}"
        if key not in taken:
            return key
        suffix_index += 1


def bibtex_entry(
    entry_type: str,
    key: str,
    fields: Iterable[Tuple[str, Optional[str]]],
    *,
    align: bool = False,
) -> str:
    """Write an entry from plain field values, in the given field order.

    Values are wrapped in braces by the writer; None and empty values are
    skipped.
    """
    cleaned = _clean_fields({name: str(value) for name, value in fields if value is not None})
    return _write_entry(entry_type, key, cleaned, order=list(cleaned), align=align)


def format_bibtex(
    raw: str,
    *,
    autokey: Optional[bool] = None,
    align: Optional[bool] = None,
    existing_keys: Iterable[str] = (),
) -> str:
    """Reformat a raw BibTeX entry.

    Args:
        raw: One BibTeX entry, in any whitespace layout.
        autokey: Replace the key with a minted one (default: BIBTEX.AUTOKEY).
            Keys other than the placeholder are replaced too.
        align: Line up '=' signs (default: BIBTEX.ALIGN).
        existing_keys: Keys to avoid when minting.

    Raises:
        BibtexFormatError: If `raw` is not a single well-formed entry.
    """
    use_autokey = BIBTEX.AUTOKEY if autokey is None else autokey
    use_align = BIBTEX.ALIGN if align is None else align

    entry = parse_bibtex_entry(raw)
    key = entry.get("ID") or PLACEHOLDER_KEY
    if use_autokey:
        key = mint_citation_key(
            authors=split_authors(field_text(entry, "author")),
            year=field_text(entry, "year"),
            title=field_text(entry, "title") or "",
            existing_keys=existing_keys,
        )

    return _write_entry(
        entry["ENTRYTYPE"],
        key,
        _clean_fields(entry),
        order=FIELD_ORDER,
        align=use_align,
    )
