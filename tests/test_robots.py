from __future__ import annotations

from conftest import FakeFetcher, network_error, response

from sitebot.crawler import HrefType, Request, Robots


ROBOTS_TXT = """\
User-agent: *
Crawl-delay: 2
Disallow: /private
Sitemap: https://example.com/sitemap.xml
Sitemap: https://example.com/news-sitemap.xml
Sitemap: https://example.com/sitemap.xml
"""


def _request() -> Request:
    return Request.from_url("https://example.com/some/page")


def test_from_text_parses_delay_sitemaps_and_rules():
    robots = Robots.from_text(_request(), ROBOTS_TXT)

    assert robots.retrieved
    assert robots.url == "https://example.com/robots.txt"
    assert robots.crawl_delay == 2
    assert [href.raw for href in robots.sitemap_hrefs] == [
        "https://example.com/sitemap.xml",
        "https://example.com/news-sitemap.xml",
    ]
    assert all(href.type == HrefType.SITEMAP for href in robots.sitemap_hrefs)
    assert not robots.can_fetch("https://example.com/private/report")
    assert robots.can_fetch("https://example.com/public")


def test_new_policy_is_empty_and_allows_everything():
    robots = Robots(_request())

    assert not robots.retrieved
    assert robots.crawl_delay == 0
    assert robots.sitemap_hrefs == []
    assert robots.can_fetch("https://example.com/anything")


def test_non_integer_crawl_delay_means_no_delay():
    robots = Robots.from_text(_request(), "User-agent: *\nCrawl-delay: 1.5\n")

    assert robots.crawl_delay == 0


def test_retrieve_reads_robots_from_site_root():
    url = "https://example.com/robots.txt"
    fetcher = FakeFetcher({url: response(url, ROBOTS_TXT, content_type="text/plain")})
    robots = Robots(_request())

    result = robots.retrieve(fetcher)

    assert result.ok
    assert fetcher.calls == ["https://example.com/robots.txt"]
    assert robots.crawl_delay == 2


def test_missing_robots_is_an_allow_all_policy():
    fetcher = FakeFetcher()
    robots = Robots(_request())

    result = robots.retrieve(fetcher)

    assert result.ok
    assert robots.retrieved
    assert robots.crawl_delay == 0
    assert robots.can_fetch("https://example.com/private")


def test_server_error_fails():
    url = "https://example.com/robots.txt"
    fetcher = FakeFetcher({url: response(url, "oops", status=503)})

    result = Robots(_request()).retrieve(fetcher)

    assert not result.ok
    assert result.error == "Failed to retrieve robots.txt: HTTP status 503"


def test_network_error_fails():
    url = "https://example.com/robots.txt"
    fetcher = FakeFetcher({url: network_error(url)})

    result = Robots(_request()).retrieve(fetcher)

    assert not result.ok
    assert "ConnectionError" in result.error


def test_invalid_request_fails_without_fetching():
    fetcher = FakeFetcher()

    result = Robots(Request.from_url("nope")).retrieve(fetcher)

    assert not result.ok
    assert fetcher.calls == []


def test_unparseable_url_is_disallowed(monkeypatch, caplog):
    robots = Robots.from_text(_request(), ROBOTS_TXT)

    def broken(user_agent, url):
        raise ValueError("bad url")

    monkeypatch.setattr(robots._parser, "can_fetch", broken)

    assert not robots.can_fetch("https://example.com/public")
    assert "robots.txt check failed for https://example.com/public: bad url" in caplog.messages
