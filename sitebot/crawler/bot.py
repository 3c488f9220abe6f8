"""Crawl orchestration: seed handling, throttling, page and sitemap traversal."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Iterable

from .config import BotConfig
from .fetcher import Fetcher
from .page import Page
from .providers import DataProvider
from .robots import Robots
from .sitemap import Sitemap
from .stats import StatsCollector
from .types import CrawlStats, HrefType, Result
from .url import Href, Request, normalize_url


logger = logging.getLogger(__name__)

PROVIDER_INVALID_MESSAGE = "Data provider is not valid"


@dataclass(slots=True)
class CrawlSession:
    """State shared by every recursive call below one seed.

    `robots` is filled in by the first page or sitemap that fetches a policy and
    is handed unchanged to everything discovered beneath it.
    """

    provider: DataProvider
    robots: Robots | None = None
    sitemaps_seen: set[str] = field(default_factory=set)


class Bot:
    """Polite single-seed crawler.

    Pages are walked breadth-first from the seed up to `config.max_page_depth`
    link hops; sitemaps declared in robots.txt are walked recursively with a
    visited set and a depth limit. Every step reports a `Result` and failures
    are logged here instead of being raised.
    """

    def __init__(
        self,
        config: BotConfig,
        provider: DataProvider | None,
        *,
        fetcher: Fetcher | None = None,
        stats: StatsCollector | None = None,
    ) -> None:
        self.config = config
        self.provider = provider
        self.fetcher = fetcher or Fetcher(config)
        self.stats = stats or StatsCollector()

        self._owns_fetcher = fetcher is None

    def init(self) -> Result[None]:
        """Initialize the data provider; on failure the bot stops accepting work."""

        if self.provider is None:
            return Result.failure(PROVIDER_INVALID_MESSAGE)

        result = self.provider.init()
        if not result.ok:
            self.provider = None
        return result

    def close(self) -> None:
        if self.provider is not None:
            self.provider.close()
        if self._owns_fetcher:
            self.fetcher.close()

    def __enter__(self) -> "Bot":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def new_session(self, robots: Robots | None = None) -> CrawlSession | None:
        if self.provider is None:
            return None
        return CrawlSession(provider=self.provider, robots=robots)

    def check_hrefs(
        self,
        href_type: HrefType,
        base: Request | str,
        hrefs: Iterable[Href],
    ) -> list[str]:
        """Resolve hrefs against `base` and keep the ones worth following.

        `base` is the document the hrefs came from; pass `Page.base` for pages
        so that relative links follow the post-redirect URL.

        Page URLs are kept only when the data provider says they should be
        retrieved. Sitemap URLs are all kept. Order is preserved and a URL that
        several hrefs resolve to appears once.
        """

        candidates = list(hrefs)
        urls: list[str] = []
        for href in candidates:
            url = href.get_url(base)
            if url is None or url in urls:
                continue

            if href_type == HrefType.PAGE:
                if self.provider is not None and self.provider.retrieve_page(url):
                    urls.append(url)
            else:
                urls.append(url)

        self.stats.record_hrefs(len(candidates), len(urls))
        return urls

    def start(self, url: str | None) -> CrawlStats | None:
        """Crawl one seed: its page tree first, then the sitemaps its robots.txt declares."""

        if not url:
            return None

        session = self.new_session()
        result = self.progress_page(url, deep=True, session=session)
        if result.ok and result.value is not None:
            page = result.value
            robots = page.robots
            if robots is not None:
                sitemap_urls = self.check_hrefs(HrefType.SITEMAP, robots.url, robots.sitemap_hrefs)
                for sitemap_url in sitemap_urls:
                    sitemap_result = self.progress_sitemap(sitemap_url, robots, session=session)
                    if not sitemap_result.ok:
                        logger.warning(sitemap_result.error)
        else:
            logger.warning(result.error)

        self.stats.finish()
        return self.stats.core()

    def progress_page(
        self,
        url: str,
        deep: bool = False,
        robots: Robots | None = None,
        *,
        session: CrawlSession | None = None,
    ) -> Result[Page]:
        """Retrieve and record one page, expanding its links when `deep` is set."""

        if session is None:
            session = self.new_session(robots)

        result = self._fetch_page(session, url, robots)
        if not result.ok or not deep or session is None:
            return result

        root = result.value
        self._expand_pages(session, root, root.robots)
        return result

    def _fetch_page(
        self,
        session: CrawlSession | None,
        url: str,
        robots: Robots | None,
    ) -> Result[Page]:
        logger.info("Processing page %s", url)

        if self.provider is None or session is None:
            return self._page_failure(PROVIDER_INVALID_MESSAGE)

        page = Page(
            url,
            self.fetcher,
            robots if robots is not None else session.robots,
            user_agent=self.config.user_agent,
        )
        request = page.request

        if not self.config.allows_extension(request.extension):
            self.stats.record_page_filtered()
            return Result.failure(
                f"Extension {request.extension!r} of {url} is not one of the required "
                f"extensions: {', '.join(self.config.domain_extensions)}"
            )

        init_result = page.init()
        if not init_result.ok:
            return self._page_failure(f"Failed to init page: {init_result.error} ({url})")

        page_robots = page.robots
        if session.robots is None:
            session.robots = page_robots

        if (
            self.config.respect_robots
            and page_robots is not None
            and not page_robots.can_fetch(request.url)
        ):
            return self._page_failure(f"Blocked by robots.txt: {url}")

        if page_robots is not None:
            self._apply_crawl_delay(page_robots)

        retrieve_result = page.retrieve()
        if not retrieve_result.ok:
            return self._page_failure(f"Failed to retrieve page: {retrieve_result.error} ({url})")

        try:
            session.provider.add_page(page)
        except OSError as exc:
            return self._page_failure(f"Failed to store page: {exc} ({url})")
        self.stats.record_page(True)
        return Result.success(page)

    def _expand_pages(self, session: CrawlSession, root: Page, robots: Robots | None) -> None:
        # Level n+1 is built only from pages fetched successfully at level n.
        level: list[Page] = [root]
        for depth in range(1, self.config.max_page_depth + 1):
            next_level: list[Page] = []
            for parent in level:
                urls = self.check_hrefs(HrefType.PAGE, parent.base, parent.internal_hrefs)
                for child_url in urls:
                    child = self._fetch_page(session, child_url, robots)
                    if not child.ok:
                        logger.warning(child.error)
                        continue
                    next_level.append(child.value)

            logger.debug("Depth %d: %d pages retrieved", depth, len(next_level))
            if not next_level:
                return
            level = next_level

    def progress_sitemap(
        self,
        url: str,
        robots: Robots | None = None,
        *,
        session: CrawlSession | None = None,
        depth: int = 0,
    ) -> Result[Sitemap]:
        """Retrieve and record one sitemap, then every sitemap it nests."""

        logger.info("Processing sitemap %s", url)

        if session is None:
            session = self.new_session(robots)
        if self.provider is None or session is None:
            return self._sitemap_failure(PROVIDER_INVALID_MESSAGE)

        key = normalize_url(url) or url
        if key in session.sitemaps_seen:
            return self._sitemap_failure(f"Sitemap already processed in this crawl: {url}")
        if depth > self.config.max_sitemap_depth:
            return self._sitemap_failure(
                f"Sitemap depth limit ({self.config.max_sitemap_depth}) reached: {url}"
            )
        session.sitemaps_seen.add(key)

        sitemap = Sitemap(url, self.fetcher)

        if robots is None:
            robots = session.robots
        if robots is None:
            robots = Robots(sitemap.request, user_agent=self.config.user_agent)
            robots_result = robots.retrieve(self.fetcher)
            if not robots_result.ok:
                return self._sitemap_failure(f"Failed to retrieve sitemap: {robots_result.error} ({url})")
            session.robots = robots

        self._apply_crawl_delay(robots)

        retrieve_result = sitemap.retrieve()
        if not retrieve_result.ok:
            return self._sitemap_failure(f"Failed to retrieve sitemap: {retrieve_result.error} ({url})")

        try:
            session.provider.add_sitemap(sitemap)
        except OSError as exc:
            return self._sitemap_failure(f"Failed to store sitemap: {exc} ({url})")
        self.stats.record_sitemap(True)
        self.stats.increment("sitemap_page_urls", len(sitemap.page_hrefs))

        nested_urls = self.check_hrefs(HrefType.SITEMAP, sitemap.request, sitemap.sitemap_hrefs)
        for nested_url in nested_urls:
            nested = self.progress_sitemap(nested_url, robots, session=session, depth=depth + 1)
            if not nested.ok:
                logger.warning(nested.error)

        return Result.success(sitemap)

    def _apply_crawl_delay(self, robots: Robots) -> None:
        delay = robots.crawl_delay
        if delay <= 0:
            return
        logger.info("Crawl-delay found. Sleep for %d seconds", delay)
        self.stats.record_crawl_delay(delay)
        time.sleep(delay)

    def _page_failure(self, message: str) -> Result[Page]:
        self.stats.record_page(False, message)
        return Result.failure(message)

    def _sitemap_failure(self, message: str) -> Result[Sitemap]:
        self.stats.record_sitemap(False, message)
        return Result.failure(message)


__all__ = [
    "Bot",
    "CrawlSession",
    "PROVIDER_INVALID_MESSAGE",
]
