from __future__ import annotations

from sitebot.crawler import StatsCollector


def test_failure_reasons_group_by_message_prefix():
    stats = StatsCollector()

    stats.record_page(False, "Failed to retrieve page: HTTP status 404 (https://example.com/a)")
    stats.record_page(False, "Failed to retrieve page: HTTP status 500 (https://example.com/b)")
    stats.record_sitemap(False, "Sitemap already processed in this crawl: https://example.com/s.xml")
    stats.record_page(False)
    stats.record_page(True)

    payload = stats.to_json()

    assert payload["pages_ok"] == 1
    assert payload["pages_failed"] == 3
    assert payload["sitemaps_failed"] == 1
    assert payload["failure_reasons"] == {
        "page: Failed to retrieve page": 2,
        "page: Unknown": 1,
        "sitemap: Sitemap already processed in this crawl": 1,
    }


def test_crawl_delay_and_custom_counters():
    stats = StatsCollector()

    stats.record_crawl_delay(0)
    stats.record_crawl_delay(5)
    stats.increment("retries")
    stats.increment("retries", 2)
    stats.increment("")
    stats.finish()

    payload = stats.to_json()

    assert payload["crawl_delay_waits"] == 1
    assert payload["crawl_delay_seconds"] == 5
    assert payload["custom_counters"] == {"retries": 3}
    assert payload["finished_at"] is not None
    assert payload["duration_seconds"] >= 0
