from datetime import datetime, timezone, timedelta
from urllib.parse import urljoin

from sitemap_stream.sitemap.parser import DocumentKind, Page, RecordPhase, SitemapExtractor
from sitemap_stream.sitemap.tokenizer import XmlTokenizer

from fakes import sitemapindex, urlset

BASE = "https://example.com/sitemaps/pages.xml"


def extract(xml: str, base_url: str = BASE, stop_after: int = 0):
    pages = []

    def emit(page: Page) -> bool:
        pages.append(page)
        return not (stop_after and len(pages) >= stop_after)

    extractor = SitemapExtractor(base_url, emit)
    tokenizer = XmlTokenizer(base_url)
    for token in list(tokenizer.feed(xml.encode("utf-8"))) + list(tokenizer.close()):
        extractor.process(token)
    return extractor, pages


def test_urlset_pages_in_document_order():
    extractor, pages = extract(urlset(
        ("https://example.com/a", "2019-06-21T21:14:47+02:00"),
        "https://example.com/b",
        ("https://example.com/c", "2019-06-22"),
    ))
    assert extractor.kind is DocumentKind.PAGE_SET
    assert pages == [
        Page("https://example.com/a", "2019-06-21T21:14:47+02:00", BASE),
        Page("https://example.com/b", "", BASE),
        Page("https://example.com/c", "2019-06-22", BASE),
    ]
    assert extractor.sitemaps == []


def test_relative_loc_resolves_against_document_url():
    _, pages = extract(urlset("/top", "sibling.html", "../up/", "//cdn.example.org/x"))
    assert [p.url for p in pages] == [
        urljoin(BASE, "/top"),
        urljoin(BASE, "sibling.html"),
        urljoin(BASE, "../up/"),
        urljoin(BASE, "//cdn.example.org/x"),
    ]
    assert pages[1].url == "https://example.com/sitemaps/sibling.html"


def test_index_collects_child_sitemaps_only():
    extractor, pages = extract(sitemapindex("/sitemap1.xml", "https://other.example.com/sitemap2.xml"))
    assert extractor.kind is DocumentKind.INDEX
    assert pages == []
    assert extractor.sitemaps == [
        "https://example.com/sitemap1.xml",
        "https://other.example.com/sitemap2.xml",
    ]


def test_index_lastmod_is_not_a_location():
    xml = (
        "<sitemapindex><sitemap><loc>/a.xml</loc><lastmod>2024-01-01</lastmod></sitemap>"
        "<sitemap><lastmod>2024-01-02</lastmod><loc>/b.xml</loc></sitemap></sitemapindex>"
    )
    extractor, _ = extract(xml)
    assert extractor.sitemaps == ["https://example.com/a.xml", "https://example.com/b.xml"]


def test_loc_outside_record_is_ignored():
    _, pages = extract("<urlset><loc>/stray</loc><url><loc>/kept</loc></url></urlset>")
    assert [p.url for p in pages] == ["https://example.com/kept"]


def test_record_without_loc_yields_empty_url():
    _, pages = extract("<urlset><url><lastmod>2024-01-01</lastmod></url><url><loc></loc></url></urlset>")
    assert [(p.url, p.last_modified) for p in pages] == [("", "2024-01-01"), ("", "")]


def test_fields_reset_between_records():
    _, pages = extract(
        "<urlset><url><loc>/a</loc><lastmod>2024-01-01</lastmod></url><url><loc>/b</loc></url></urlset>"
    )
    assert pages[1] == Page("https://example.com/b", "", BASE)


def test_index_record_with_empty_loc_is_skipped():
    extractor, _ = extract("<sitemapindex><sitemap><loc> </loc></sitemap><sitemap><loc>/a.xml</loc></sitemap></sitemapindex>")
    assert extractor.sitemaps == ["https://example.com/a.xml"]


def test_document_kind_comes_from_root_element_only():
    extractor, pages = extract("<html><urlset><url><loc>/a</loc></url></urlset></html>")
    assert extractor.kind is DocumentKind.UNKNOWN
    assert pages == []

    extractor, pages = extract("<urlset><sitemap><loc>/a.xml</loc></sitemap></urlset>")
    assert extractor.kind is DocumentKind.PAGE_SET
    assert extractor.sitemaps == []
    assert pages == []


def test_extension_locations_do_not_replace_page_url():
    xml = (
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9" '
        'xmlns:image="http://www.google.com/schemas/sitemap-image/1.1">'
        "<url><loc>https://example.com/page</loc>"
        "<image:image><image:loc>https://example.com/photo.jpg</image:loc></image:image>"
        "</url></urlset>"
    )
    _, pages = extract(xml)
    assert [p.url for p in pages] == ["https://example.com/page"]


def test_uppercase_tags_are_recognised():
    _, pages = extract("<URLSET><URL><LOC>/a</LOC><LASTMOD>x</LASTMOD></URL></URLSET>")
    assert pages == [Page("https://example.com/a", "x", BASE)]


def test_stop_enters_ended_state_and_ignores_the_rest():
    extractor, pages = extract(urlset("/1", "/2", "/3"), stop_after=1)
    assert [p.url for p in pages] == ["https://example.com/1"]
    assert extractor.ended
    assert extractor.phase is RecordPhase.ENDED
    assert extractor.records_seen == 1


def test_last_modified_datetime():
    page = Page("https://example.com/a", "2019-06-21T21:14:47+02:00", BASE)
    assert page.last_modified_datetime == datetime(2019, 6, 21, 21, 14, 47, tzinfo=timezone(timedelta(hours=2)))
    assert Page("https://example.com/a").last_modified_datetime is None
    assert Page("https://example.com/a", "not a date").last_modified_datetime is None
