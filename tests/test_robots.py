from sitemap_stream.sitemap.robots import extract_sitemap_directives


def test_directives_in_file_order():
    robots = "User-agent: *\nSitemap: http://a/sitemap1.xml\nDisallow: /private\nSitemap: http://a/sitemap2.xml\n"
    assert extract_sitemap_directives(robots) == ["http://a/sitemap1.xml", "http://a/sitemap2.xml"]


def test_directive_name_is_case_insensitive():
    robots = "sitemap: http://a/lower.xml\r\nSITEMAP:http://a/upper.xml\r\n  SiteMap:   http://a/mixed.xml  \r\n"
    assert extract_sitemap_directives(robots) == [
        "http://a/lower.xml",
        "http://a/upper.xml",
        "http://a/mixed.xml",
    ]


def test_duplicates_are_kept_and_values_not_validated():
    robots = "Sitemap: /relative.xml\nSitemap: /relative.xml\nSitemap: not-a-url\n"
    assert extract_sitemap_directives(robots) == ["/relative.xml", "/relative.xml", "not-a-url"]


def test_non_directive_lines_are_ignored():
    robots = "# Sitemap: http://a/commented.xml\nSitemap:\nSitemap: two words\nAllow: /sitemap: x\n"
    assert extract_sitemap_directives(robots) == []


def test_empty_text():
    assert extract_sitemap_directives("") == []
