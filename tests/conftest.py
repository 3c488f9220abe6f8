from __future__ import annotations

import logging
from typing import Any, Mapping

import pytest

from sitebot.crawler import BotConfig, DataProvider, FetchResult, Page, Result, Sitemap


HTML = "text/html; charset=utf-8"
XML = "application/xml"
TEXT = "text/plain"


def response(
    url: str,
    body: str | bytes = "",
    *,
    status: int = 200,
    content_type: str | None = HTML,
    final_url: str | None = None,
) -> FetchResult:
    payload = body.encode("utf-8") if isinstance(body, str) else body
    return FetchResult(
        requested_url=url,
        final_url=final_url or url,
        status_code=status,
        content_type=content_type,
        body=payload,
    )


def network_error(url: str, message: str = "ConnectionError: boom") -> FetchResult:
    return FetchResult(
        requested_url=url,
        final_url=None,
        status_code=None,
        content_type=None,
        body=None,
        error=message,
    )


def html_page(title: str, *links: str) -> str:
    anchors = "".join(f'<a href="{link}">{link}</a>' for link in links)
    return (
        f"<html><head><title>{title}</title></head>"
        f"<body><h1>{title}</h1><p>Some text about {title}.</p>{anchors}</body></html>"
    )


class FakeFetcher:
    """Serves canned results by URL; anything unknown is a 404."""

    def __init__(self, routes: Mapping[str, FetchResult] | None = None, config: BotConfig | None = None):
        self.config = config or BotConfig()
        self.routes: dict[str, FetchResult] = dict(routes or {})
        self.calls: list[str] = []
        self.closed = False

    def add(self, url: str, body: str | bytes = "", **kwargs: Any) -> None:
        self.routes[url] = response(url, body, **kwargs)

    def fetch(self, url: str, *, timeout: float | None = None) -> FetchResult:
        self.calls.append(url)
        if url in self.routes:
            return self.routes[url]
        return response(url, "", status=404)

    def close(self) -> None:
        self.closed = True


class MemoryDataProvider(DataProvider):
    name = "memory"

    def __init__(self, *, known: set[str] | None = None, init_error: str | None = None) -> None:
        self.known = set(known or ())
        self.init_error = init_error
        self.pages: list[str] = []
        self.sitemaps: list[str] = []
        self.checked: list[str] = []

    def init(self) -> Result[None]:
        if self.init_error:
            return Result.failure(self.init_error)
        return Result.success()

    def retrieve_page(self, url: str) -> bool:
        self.checked.append(url)
        return url not in self.known

    def add_page(self, page: Page) -> None:
        self.pages.append(page.request.url)
        self.known.add(page.request.url)

    def add_sitemap(self, sitemap: Sitemap) -> None:
        self.sitemaps.append(sitemap.request.url)


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def provider() -> MemoryDataProvider:
    return MemoryDataProvider()


@pytest.fixture
def restore_logging():
    """Drop the stdout and file handlers the CLI installs on the root logger."""

    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        # Exact types only: pytest's capture handlers subclass StreamHandler.
        if type(handler) in (logging.StreamHandler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
