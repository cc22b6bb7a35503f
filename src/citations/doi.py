"""DOI metadata resolver.

Authoritative BibTeX for records that carry a DOI:
- Primary: doi.org content negotiation (Accept: application/x-bibtex)
- Fallback: Crossref REST `works/<doi>`, converted to BibTeX locally

The resolved entry is reformatted with `src.citations.bibtex.format_bibtex`
and handed to a caller-supplied sink exactly once. Failures surface as
`DoiResolutionError`; the sink is not called in that case.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import quote

import httpx
from loguru import logger
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from src.citations.bibtex import PLACEHOLDER_KEY, BibtexFormatError, bibtex_entry, format_bibtex
from src.config import DOI, TIMEOUTS


BIBTEX_MIME = "application/x-bibtex"


class DoiResolutionError(RuntimeError):
    pass


class DoiNotFoundError(DoiResolutionError):
    pass


def normalize_doi(doi: str) -> str:
    """Normalize a DOI string.

    Accepts bare DOIs and common URL forms like https://doi.org/<doi>.
    """
    if not isinstance(doi, str):
        raise ValueError("doi must be a string")
    value = doi.strip()
    if not value:
        raise ValueError("doi must be non-empty")

    lower = value.lower()
    for prefix in (
        "https://doi.org/",
        "http://doi.org/",
        "https://dx.doi.org/",
        "http://dx.doi.org/",
        "doi:",
    ):
        if lower.startswith(prefix):
            value = value[len(prefix) :].strip()
            break

    return value.strip()


@dataclass(frozen=True)
class DoiClientConfig:
    """Configuration for the DOI client."""

    resolver_url: str = DOI.RESOLVER_URL
    crossref_base_url: str = DOI.CROSSREF_API_BASE
    mailto: Optional[str] = DOI.MAILTO
    user_agent: str = DOI.USER_AGENT


class DoiClient:
    """Small sync client for doi.org and Crossref."""

    def __init__(self, config: Optional[DoiClientConfig] = None):
        self.config = config or DoiClientConfig()
        self._timeout = httpx.Timeout(
            timeout=float(TIMEOUTS.EXTERNAL_API),
            connect=float(TIMEOUTS.CONNECT),
        )

    def _headers(self, accept: str) -> Dict[str, str]:
        ua = self.config.user_agent
        if self.config.mailto:
            ua = f"{ua} (mailto:{self.config.mailto})"
        return {"User-Agent": ua, "Accept": accept}

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type(httpx.TimeoutException),
        reraise=True,
    )
    def _get(self, url: str, accept: str) -> httpx.Response:
        with httpx.Client(
            timeout=self._timeout,
            headers=self._headers(accept),
            follow_redirects=True,
        ) as client:
            return client.get(url)

    def _request(self, url: str, accept: str, *, source: str, doi: str) -> httpx.Response:
        try:
            resp = self._get(url, accept)
        except httpx.HTTPError as e:
            raise DoiResolutionError(f"{source} request failed: {e}")

        if resp.status_code == 404:
            raise DoiNotFoundError(f"DOI not found in {source}: {doi}")
        if resp.status_code >= 400:
            raise DoiResolutionError(f"{source} returned HTTP {resp.status_code}")
        return resp

    def fetch_bibtex(self, doi: str) -> str:
        """Fetch a BibTeX entry for a DOI through doi.org content negotiation."""
        normalized = normalize_doi(doi)
        url = f"{self.config.resolver_url}/{quote(normalized, safe='/')}"
        logger.debug(f"Resolving DOI via {url}")

        resp = self._request(url, BIBTEX_MIME, source="doi.org", doi=normalized)
        text = resp.text.strip()
        if not text.startswith("@"):
            raise DoiResolutionError(f"doi.org did not return BibTeX for {normalized}")
        return text

    def fetch_work_by_doi(self, doi: str) -> Dict[str, Any]:
        """Fetch a Crossref work payload by DOI.

        Returns the `message` object from Crossref.
        """
        normalized = normalize_doi(doi)
        url = f"{self.config.crossref_base_url}/works/{quote(normalized, safe='')}"
        logger.debug(f"Resolving DOI via {url}")

        resp = self._request(url, "application/json", source="Crossref", doi=normalized)
        try:
            data = resp.json()
        except ValueError as e:
            raise DoiResolutionError(f"Failed to parse Crossref response as JSON: {e}")
        message = data.get("message") if isinstance(data, dict) else None
        if not isinstance(message, dict):
            raise DoiResolutionError("Crossref response missing 'message' object")
        return message


def _pick_first_str(values: Any) -> Optional[str]:
    if isinstance(values, list) and values:
        first = values[0]
        if isinstance(first, str) and first.strip():
            return first.strip()
    if isinstance(values, str) and values.strip():
        return values.strip()
    return None


def _format_authors(work: Dict[str, Any]) -> List[str]:
    authors_raw = work.get("author")
    if not isinstance(authors_raw, list):
        return []

    authors: List[str] = []
    for a in authors_raw:
        if not isinstance(a, dict):
            continue
        given = a.get("given")
        family = a.get("family")
        if isinstance(given, str) and isinstance(family, str) and given.strip() and family.strip():
            authors.append(f"{family.strip()}, {given.strip()}")
        elif isinstance(family, str) and family.strip():
            authors.append(family.strip())
        elif isinstance(a.get("name"), str) and a["name"].strip():
            authors.append("{" + a["name"].strip() + "}")
    return authors


def _extract_year(work: Dict[str, Any]) -> Optional[int]:
    for key in ("published-print", "published-online", "issued", "created"):
        part = work.get(key)
        if not isinstance(part, dict):
            continue
        date_parts = part.get("date-parts")
        if isinstance(date_parts, list) and date_parts:
            first = date_parts[0]
            if isinstance(first, list) and first:
                year = first[0]
                if isinstance(year, int):
                    return year
    return None


def _coerce_scalar_str(value: Any) -> Optional[str]:
    if isinstance(value, str):
        s = value.strip()
        return s or None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return None


def _extract_issue(work: Dict[str, Any]) -> Optional[str]:
    direct = _coerce_scalar_str(work.get("issue"))
    if direct:
        return direct

    journal_issue = work.get("journal-issue")
    if isinstance(journal_issue, dict):
        return _coerce_scalar_str(journal_issue.get("issue"))
    return None


def _entry_type_from_crossref_work_type(work: Dict[str, Any]) -> Tuple[str, str]:
    """Map a Crossref work type to a BibTeX entry type and container field.

    Returns:
        (entry type, name of the field that holds container-title)
    """
    work_type = work.get("type")
    t = work_type.strip().lower() if isinstance(work_type, str) else ""

    if t == "journal-article":
        return "article", "journal"
    if t == "proceedings-article":
        return "inproceedings", "booktitle"
    if t in ("book-chapter", "book-section", "book-part"):
        return "incollection", "booktitle"
    if t in ("book", "monograph", "edited-book"):
        return "book", "series"
    if t in ("report", "working-paper"):
        return "techreport", "institution"
    return "misc", "howpublished"


def crossref_work_to_bibtex(work: Dict[str, Any], *, key: str = PLACEHOLDER_KEY) -> str:
    """Convert a Crossref work object into a BibTeX entry string."""
    entry_type, container_field = _entry_type_from_crossref_work_type(work)

    year = _extract_year(work)
    doi = work.get("DOI")
    fields: List[Tuple[str, Optional[str]]] = [
        ("author", " and ".join(_format_authors(work))),
        ("title", _pick_first_str(work.get("title"))),
        (container_field, _pick_first_str(work.get("container-title"))),
        ("year", str(year) if year is not None else None),
        ("volume", _coerce_scalar_str(work.get("volume"))),
        ("number", _extract_issue(work)),
        ("pages", _coerce_scalar_str(work.get("page"))),
        ("publisher", _coerce_scalar_str(work.get("publisher"))),
        ("doi", normalize_doi(doi) if isinstance(doi, str) and doi.strip() else None),
        ("url", _coerce_scalar_str(work.get("URL"))),
    ]
    return bibtex_entry(entry_type, key, [(name, value) for name, value in fields if value])


def resolve_doi_bibtex(doi: str, *, client: Optional[DoiClient] = None) -> str:
    """Resolve a DOI to a raw BibTeX entry, doi.org first, Crossref second."""
    c = client or DoiClient()
    try:
        return c.fetch_bibtex(doi)
    except DoiResolutionError as e:
        logger.warning(f"doi.org lookup failed for {doi} ({e}); falling back to Crossref")

    work = c.fetch_work_by_doi(doi)
    return crossref_work_to_bibtex(work)


def forward_doi_bibtex(
    doi: str,
    forward_to: Callable[[str], None],
    *,
    client: Optional[DoiClient] = None,
    formatter: Callable[[str], str] = format_bibtex,
) -> None:
    """Resolve `doi` and pass the formatted BibTeX entry to `forward_to`."""
    raw = resolve_doi_bibtex(doi, client=client)
    try:
        entry = formatter(raw)
    except BibtexFormatError as e:
        logger.warning(f"Could not reformat BibTeX for {doi}: {e}")
        entry = raw
    forward_to(entry)
