from __future__ import annotations

import json

import pytest

from conftest import XML, FakeFetcher, html_page, response

from sitebot.crawler import BotConfig, JSONDataProvider, Page, Request, Robots, Sitemap, create_provider


def _retrieved_page(url: str, *links: str) -> Page:
    fetcher = FakeFetcher({url: response(url, html_page("Title", *links))})
    robots = Robots.from_text(Request.from_url(url), "")
    page = Page(url, fetcher, robots)
    assert page.retrieve().ok
    return page


def _read_jsonl(path):
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]


def test_init_creates_layout(tmp_path):
    provider = JSONDataProvider(tmp_path / "out")

    result = provider.init()

    assert result.ok
    assert (tmp_path / "out").is_dir()
    assert (tmp_path / "out" / "manifests").is_dir()
    assert provider.known_pages() == set()


def test_init_failure_is_reported(tmp_path):
    blocker = tmp_path / "out"
    blocker.write_text("not a directory", encoding="utf-8")

    result = JSONDataProvider(blocker).init()

    assert not result.ok
    assert result.error.startswith("Failed to initialize JSON data provider at")


def test_add_page_appends_row_and_updates_oracle(tmp_path):
    provider = JSONDataProvider(tmp_path)
    provider.init()
    assert provider.retrieve_page("https://example.com/a")

    provider.add_page(_retrieved_page("https://example.com/a", "/b"))

    rows = _read_jsonl(provider.pages_path)
    assert len(rows) == 1
    assert rows[0]["url"] == "https://example.com/a"
    assert rows[0]["internal_links"] == ["https://example.com/b"]
    assert not provider.retrieve_page("https://example.com/a")
    assert not provider.retrieve_page("https://example.com/a/#intro")
    assert provider.retrieve_page("https://example.com/b")


def test_records_are_reloaded_by_a_new_provider(tmp_path):
    first = JSONDataProvider(tmp_path)
    first.init()
    first.add_page(_retrieved_page("https://example.com/a"))

    url = "https://example.com/sitemap.xml"
    body = b'<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9"><url><loc>https://example.com/a</loc></url></urlset>'
    sitemap = Sitemap(url, FakeFetcher({url: response(url, body, content_type=XML)}))
    assert sitemap.retrieve().ok
    first.add_sitemap(sitemap)

    second = JSONDataProvider(tmp_path)
    assert second.init().ok

    assert second.known_pages() == {"https://example.com/a"}
    assert not second.retrieve_page("https://example.com/a")
    assert _read_jsonl(second.sitemaps_path)[0]["page_urls"] == ["https://example.com/a"]


def test_revisit_window_makes_old_pages_eligible(tmp_path):
    pages_path = tmp_path / "pages.jsonl"
    rows = [
        {"url": "https://example.com/old", "crawl_time": "2020-01-01T00:00:00+00:00"},
        {"url": "https://example.com/fresh", "crawl_time": "2999-01-01T00:00:00+00:00"},
        {"url": "https://example.com/undated"},
    ]
    pages_path.write_text(
        "\n".join(json.dumps(row) for row in rows) + "\nnot json\n",
        encoding="utf-8",
    )

    never = JSONDataProvider(tmp_path)
    never.init()
    revisiting = JSONDataProvider(tmp_path, revisit_after_seconds=3600)
    revisiting.init()

    assert not never.retrieve_page("https://example.com/old")
    assert revisiting.retrieve_page("https://example.com/old")
    assert not revisiting.retrieve_page("https://example.com/fresh")
    assert revisiting.retrieve_page("https://example.com/undated")


def test_pages_added_this_run_are_not_revisited(tmp_path):
    pages_path = tmp_path / "pages.jsonl"
    pages_path.write_text(
        json.dumps({"url": "https://example.com/a", "crawl_time": "2020-01-01T00:00:00+00:00"}) + "\n",
        encoding="utf-8",
    )
    provider = JSONDataProvider(tmp_path, revisit_after_seconds=0)
    provider.init()
    assert provider.retrieve_page("https://example.com/a")

    provider.add_page(_retrieved_page("https://example.com/a"))
    provider.add_page(_retrieved_page("https://example.com/b"))

    assert not provider.retrieve_page("https://example.com/a")
    assert not provider.retrieve_page("https://example.com/b")


def test_manifests_are_written(tmp_path):
    provider = JSONDataProvider(tmp_path)
    provider.init()

    provider.save_crawl_config({"seed_url": "https://example.com/"})
    provider.save_crawl_stats({"pages_ok": 3})
    provider.save_crawl_stats({"pages_ok": 4})

    assert json.loads(provider.crawl_config_path.read_text(encoding="utf-8")) == {"seed_url": "https://example.com/"}
    assert json.loads(provider.crawl_stats_path.read_text(encoding="utf-8")) == {"pages_ok": 4}
    # Atomic writes leave no temporary files behind.
    assert sorted(path.name for path in provider.manifests_dir.iterdir()) == [
        "crawl_config.json",
        "crawl_stats.json",
    ]


def test_create_provider_from_config(tmp_path):
    config = BotConfig(output_dir=str(tmp_path / "data"), revisit_after_seconds=60)

    provider = create_provider("JSON", config)

    assert isinstance(provider, JSONDataProvider)
    assert provider.output_dir == tmp_path / "data"
    assert provider.revisit_after_seconds == 60


def test_create_provider_rejects_unknown_names():
    with pytest.raises(ValueError, match="Unsupported data provider: 'mysql'. Supported: json"):
        create_provider("mysql")
