from linkcrawler.crawler.parser import ContentParser


HTML = """
<html>
  <head><title>
    Example   Domain
  </title></head>
  <body>
    <a href="/about">About</a>
    <a href="contact.html">Contact</a>
    <a href="https://other.example.org/page">Other</a>
    <a href="//cdn.example.net/lib">Protocol relative</a>
    <a href="#top">Top</a>
    <a href="">Empty</a>
    <a href="mailto:someone@example.com">Mail</a>
    <a href="javascript:void(0)">Script</a>
    <a>No href</a>
  </body>
</html>
"""


def test_parse_extracts_clean_title():
    page = ContentParser().parse("http://example.com/docs/", HTML)
    assert page.title == "Example Domain"


def test_parse_resolves_links_against_page_url():
    page = ContentParser().parse("http://example.com/docs/", HTML)
    assert page.links == {
        "http://example.com/about",
        "http://example.com/docs/contact.html",
        "https://other.example.org/page",
        "http://cdn.example.net/lib",
    }


def test_parse_keeps_addresses_as_written():
    html = '<a href="http://Example.com/a/">x</a><a href="http://example.com/a">y</a>'
    page = ContentParser().parse("http://example.com/", html)
    assert page.links == {"http://Example.com/a/", "http://example.com/a"}


def test_parse_without_title_or_links():
    page = ContentParser().parse("http://example.com/", "<html><body><p>plain</p></body></html>")
    assert page.title == ""
    assert page.links == set()
    assert page.url == "http://example.com/"
