"""Unit tests for arXiv record normalization."""

from __future__ import annotations

import xml.etree.ElementTree as ET

import pytest

from src.backends.arxiv_feed import parse_feed
from src.backends.arxiv_records import (
    RECORD_TYPE,
    ArxivRecord,
    arxiv_pdf_url,
    entry_authors,
    extract_identifier,
    extract_year,
    format_author,
    normalize_entry,
)


RECORD_KEYS = {
    "id",
    "identifier",
    "title",
    "authors",
    "year",
    "container",
    "category",
    "cross_ref_id",
    "type",
    "url",
}

ATOM = 'xmlns="http://www.w3.org/2005/Atom" xmlns:arxiv="http://arxiv.org/schemas/atom"'


def _entry(inner: str) -> ET.Element:
    return ET.fromstring(f"<entry {ATOM}>{inner}</entry>")


def _node(xml: str) -> ET.Element:
    return ET.fromstring(xml)


@pytest.mark.unit
def test_extract_identifier_strips_abs_prefix():
    assert extract_identifier("http://arxiv.org/abs/1234.5678") == "1234.5678"
    assert extract_identifier("http://arxiv.org/abs/hep-th/9901001v2") == "hep-th/9901001v2"


@pytest.mark.unit
def test_extract_identifier_without_prefix_is_unchanged():
    assert extract_identifier("1234.5678") == "1234.5678"
    assert extract_identifier("https://arxiv.org/abs/1234.5678") == "https://arxiv.org/abs/1234.5678"
    assert extract_identifier(None) is None


@pytest.mark.unit
@pytest.mark.parametrize(
    "value,expected",
    [
        ("2016-05-03T12:00:00", "2016"),
        ("2016-05-03T12:00:00-04:00", "2016"),
        ("2016-05-03T12:00:00+01:00", "2016"),
        ("2017-06-12T17:57:34Z", "2017"),
        ("May 2016", None),
        ("2016-05-03", None),
        ("published 2016-05-03T12:00:00", None),
        ("2016-05-03T12:00:00 extra", None),
        ("", None),
        (None, None),
    ],
)
def test_extract_year(value, expected):
    assert extract_year(value) == expected


@pytest.mark.unit
def test_format_author_with_affiliation():
    node = _node(
        f"<author {ATOM}><name>A. Turing</name>"
        "<arxiv:affiliation>Bletchley</arxiv:affiliation></author>"
    )
    assert format_author(node) == "A. Turing (Bletchley)"


@pytest.mark.unit
def test_format_author_without_affiliation():
    assert format_author(_node(f"<author {ATOM}><name>A. Turing</name></author>")) == "A. Turing"

    empty_aff = _node(
        f"<author {ATOM}><name>A. Turing</name><arxiv:affiliation> </arxiv:affiliation></author>"
    )
    assert format_author(empty_aff) == "A. Turing"


@pytest.mark.unit
def test_format_author_returns_none_for_other_nodes():
    assert format_author(_node(f"<title {ATOM}>A. Turing</title>")) is None
    # Un-namespaced author is not an Atom author
    assert format_author(_node("<author><name>A. Turing</name></author>")) is None


@pytest.mark.unit
def test_entry_authors_skips_non_author_children():
    entry = _entry(
        "<title>T</title>"
        "<author><name>A. Turing</name></author>"
        "<link href='http://arxiv.org/abs/1'/>"
        "<author><name>A. Church</name><arxiv:affiliation>Princeton</arxiv:affiliation></author>"
        "<summary>S</summary>"
    )
    assert entry_authors(entry) == ("A. Turing", "A. Church (Princeton)")


@pytest.mark.unit
def test_normalize_entry_end_to_end_scenario():
    entry = _entry(
        "<id>http://arxiv.org/abs/1706.03762</id>"
        "<updated>2017-12-06T03:30:32Z</updated>"
        "<published>2017-06-12T17:57:34Z</published>"
        "<title>Attention Is All You Need</title>"
        "<summary>The dominant sequence transduction models...</summary>"
        "<author><name>Ashish Vaswani</name></author>"
        "<author><name>Noam Shazeer</name></author>"
        "<link href='http://arxiv.org/abs/1706.03762' rel='alternate' type='text/html'/>"
        "<link title='pdf' href='http://arxiv.org/pdf/1706.03762' rel='related' type='application/pdf'/>"
        "<arxiv:primary_category term='cs.CL' scheme='http://arxiv.org/schemas/atom'/>"
        "<category term='cs.LG' scheme='http://arxiv.org/schemas/atom'/>"
    )

    record = normalize_entry(entry)

    assert record.id == "http://arxiv.org/abs/1706.03762"
    assert record.identifier == "1706.03762"
    assert record.title == "Attention Is All You Need"
    assert record.authors == ("Ashish Vaswani", "Noam Shazeer")
    assert record.year == "2017"
    assert record.category == "cs.CL"
    assert record.cross_ref_id is None
    assert record.container is None
    assert record.type == RECORD_TYPE == "eprint"
    assert record.url == "http://arxiv.org/abs/1706.03762"
    assert not record.has_cross_ref


@pytest.mark.unit
def test_normalize_entry_optional_fields():
    entry = _entry(
        "<id>http://arxiv.org/abs/1512.03385</id>"
        "<published>2015-12-10T19:51:55Z</published>"
        "<title>Deep Residual Learning for Image Recognition</title>"
        "<arxiv:doi>10.1109/CVPR.2016.90</arxiv:doi>"
        "<arxiv:journal_ref>CVPR 2016</arxiv:journal_ref>"
    )

    record = normalize_entry(entry)

    assert record.cross_ref_id == "10.1109/CVPR.2016.90"
    assert record.container == "CVPR 2016"
    assert record.has_cross_ref


@pytest.mark.unit
def test_normalize_empty_entry_never_fails_and_has_all_keys():
    record = normalize_entry(_entry(""))

    assert set(record.to_dict()) == RECORD_KEYS
    assert record.authors == ()
    assert record.to_dict()["authors"] == []
    for key in RECORD_KEYS - {"authors", "type"}:
        assert record[key] is None
    assert record["type"] == "eprint"


@pytest.mark.unit
def test_record_is_immutable_and_indexable():
    record = normalize_entry(_entry("<id>http://arxiv.org/abs/1</id>"))

    assert set(record.keys()) == RECORD_KEYS
    assert record["identifier"] == "1"
    with pytest.raises(KeyError):
        record["doi"]
    with pytest.raises(AttributeError):
        record.title = "changed"  # type: ignore[misc]


@pytest.mark.unit
def test_normalize_feed_preserves_order_and_count():
    feed = (
        f"<feed {ATOM}>"
        "<title>q</title>"
        "<entry><id>http://arxiv.org/abs/a</id></entry>"
        "<link href='x'/>"
        "<entry><id>http://arxiv.org/abs/b</id></entry>"
        "<entry><id>http://arxiv.org/abs/c</id></entry>"
        "</feed>"
    )
    records = [normalize_entry(e) for e in parse_feed(feed)]
    assert [r.identifier for r in records] == ["a", "b", "c"]


@pytest.mark.unit
def test_arxiv_pdf_url():
    record = ArxivRecord(
        id="http://arxiv.org/abs/1706.03762",
        identifier="1706.03762",
        title=None,
        authors=(),
        year=None,
        container=None,
        category=None,
        cross_ref_id=None,
        type=RECORD_TYPE,
        url=None,
    )
    assert arxiv_pdf_url(record) == "https://arxiv.org/pdf/1706.03762.pdf"
    assert arxiv_pdf_url(normalize_entry(_entry(""))) is None
