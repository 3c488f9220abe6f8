from __future__ import annotations

from conftest import FakeFetcher, response

from sitebot.crawler import Page, Request, Robots


ARTICLE = """\
<html>
  <head><title> Example Home </title></head>
  <body>
    <nav>
      <a href="/about">About</a>
      <a href="https://www.example.com/contact/">Contact</a>
      <a href="/about#team">Team</a>
      <a href="https://other.org/">Elsewhere</a>
      <a href="/login" rel="nofollow">Login</a>
      <a href="mailto:info@example.com">Mail</a>
      <a href="#main">Skip</a>
    </nav>
    <map><area href="/map-target" alt="target"></map>
    <article>
      <h1>Welcome</h1>
      <p>Example is a small company that builds careful crawlers for public websites.</p>
      <p>This paragraph exists so the main text extractor has something to keep.</p>
    </article>
  </body>
</html>
"""


def _shared_robots() -> Robots:
    return Robots.from_text(Request.from_url("https://example.com/"), "User-agent: *\nAllow: /\n")


def test_retrieve_extracts_title_and_internal_links():
    url = "https://example.com/"
    fetcher = FakeFetcher({url: response(url, ARTICLE)})
    page = Page(url, fetcher, _shared_robots())

    assert page.init().ok
    result = page.retrieve()

    assert result.ok
    assert page.title == "Example Home"
    assert [href.raw for href in page.internal_hrefs] == [
        "/about",
        "https://www.example.com/contact/",
        "/about#team",
        "/map-target",
    ]
    assert isinstance(page.text, str)


def test_nofollow_links_can_be_included():
    url = "https://example.com/"
    fetcher = FakeFetcher({url: response(url, ARTICLE)})
    page = Page(url, fetcher, _shared_robots(), include_nofollow_links=True)

    page.retrieve()

    assert "/login" in [href.raw for href in page.internal_hrefs]


def test_title_falls_back_to_heading():
    url = "https://example.com/untitled"
    fetcher = FakeFetcher({url: response(url, "<html><body><h1>Heading Only</h1></body></html>")})
    page = Page(url, fetcher, _shared_robots())

    assert page.retrieve().ok
    assert page.title == "Heading Only"


def test_shared_robots_is_not_refetched():
    fetcher = FakeFetcher()
    robots = _shared_robots()
    page = Page("https://example.com/a", fetcher, robots)

    assert page.init().ok
    assert page.robots is robots
    assert not page.owns_robots
    assert fetcher.calls == []


def test_init_fetches_robots_when_none_is_shared():
    fetcher = FakeFetcher()
    fetcher.add("https://example.com/robots.txt", "User-agent: *\nCrawl-delay: 4\n", content_type="text/plain")
    page = Page("https://example.com/a", fetcher)

    assert page.init().ok
    assert page.owns_robots
    assert page.robots is not None
    assert page.robots.crawl_delay == 4
    assert fetcher.calls == ["https://example.com/robots.txt"]


def test_init_fails_for_invalid_url():
    fetcher = FakeFetcher()
    page = Page("example.com/a", fetcher)

    result = page.init()

    assert not result.ok
    assert result.error == "Invalid URL: example.com/a"
    assert fetcher.calls == []


def test_init_fails_when_robots_cannot_be_retrieved():
    fetcher = FakeFetcher()
    fetcher.add("https://example.com/robots.txt", "", status=500)

    result = Page("https://example.com/a", fetcher).init()

    assert not result.ok
    assert result.error == "Failed to retrieve robots.txt: HTTP status 500"


def test_retrieve_rejects_non_html_content():
    url = "https://example.com/report.pdf"
    fetcher = FakeFetcher({url: response(url, b"%PDF-1.7", content_type="application/pdf")})
    page = Page(url, fetcher, _shared_robots())

    result = page.retrieve()

    assert not result.ok
    assert result.error == "Unsupported content kind: binary"


def test_retrieve_reports_http_failure():
    fetcher = FakeFetcher()
    page = Page("https://example.com/missing", fetcher, _shared_robots())

    result = page.retrieve()

    assert not result.ok
    assert result.error == "HTTP status 404"
    assert page.fetch_result is not None


def test_to_record():
    url = "https://www.example.com/"
    fetcher = FakeFetcher({url: response(url, ARTICLE)})
    page = Page(url, fetcher, _shared_robots())
    page.retrieve()

    record = page.to_record().to_json()

    assert record["url"] == url
    assert record["domain"] == "example.com"
    assert record["status_code"] == 200
    assert record["title"] == "Example Home"
    assert record["internal_links"] == [
        "https://www.example.com/about",
        "https://www.example.com/contact",
        "https://www.example.com/about",
        "https://www.example.com/map-target",
    ]
    assert record["crawl_time"]
