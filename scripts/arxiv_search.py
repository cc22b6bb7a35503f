"""Search arXiv and print BibTeX for a hit.

Examples:
    python scripts/arxiv_search.py "ti:attention AND cat:cs.CL"
    python scripts/arxiv_search.py "ti:attention" --pick 1
    python scripts/arxiv_search.py "ti:attention" --pick 1 --output refs.bib
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path


def main() -> int:
    parser = argparse.ArgumentParser(description="Search arXiv and generate BibTeX entries")
    parser.add_argument("query", help="arXiv search query (e.g. 'ti:attention AND au:vaswani')")
    parser.add_argument("--pick", type=int, default=None, help="1-based index of the hit to cite")
    parser.add_argument("--output", default=None, help="Append the entry to this file instead of printing")
    parser.add_argument("--header", default=None, help="Entry type for locally generated entries (default: online)")
    parser.add_argument("--max-results", type=int, default=None, help="Number of hits to request")
    args = parser.parse_args()

    # Allow running this script directly without requiring installation.
    repo_root = Path(__file__).resolve().parents[1]
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))

    from loguru import logger

    from src.backends import ArxivBackend, MalformedResponse
    from src.backends.arxiv_client import ArxivClient, ArxivTransportError
    from src.citations import DoiResolutionError

    client = ArxivClient(ArxivBackend(bibtex_header=args.header), max_results=args.max_results)

    try:
        records = client.search(args.query)
    except (ArxivTransportError, MalformedResponse) as e:
        logger.error(f"Search failed: {e}")
        return 2

    if args.pick is None:
        for i, record in enumerate(records, start=1):
            authors = ", ".join(record.authors[:3]) + (" et al." if len(record.authors) > 3 else "")
            print(f"{i:>3}. [{record.identifier}] {record.title} ({record.year or 'n.d.'})")
            print(f"     {authors}")
        return 0

    if not 1 <= args.pick <= len(records):
        print(f"--pick must be between 1 and {len(records)}")
        return 2

    def to_file(entry: str) -> None:
        with open(args.output, "a", encoding="utf-8") as f:
            f.write(entry + "\n\n")

    sink = to_file if args.output else print

    try:
        client.backend.forward_bibtex(records[args.pick - 1], sink)
    except DoiResolutionError as e:
        logger.error(f"DOI resolution failed: {e}")
        return 2

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
