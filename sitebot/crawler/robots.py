"""robots.txt policy for one site: crawl-delay, sitemaps, and access rules."""

from __future__ import annotations

import logging
from urllib.robotparser import RobotFileParser

from .constants import DEFAULT_ROBOTS_TIMEOUT_SECONDS, DEFAULT_USER_AGENT
from .fetcher import Fetcher
from .types import HrefType, Result
from .url import Href, Request, unique_hrefs


logger = logging.getLogger(__name__)


class Robots:
    """Parsed robots.txt for the site a `Request` belongs to.

    One instance is fetched per crawl tree and then shared, unchanged, by every
    page and sitemap below it.
    """

    def __init__(self, request: Request, *, user_agent: str = DEFAULT_USER_AGENT) -> None:
        self.request = request
        self.url = request.robots_url
        self.user_agent = user_agent or "*"

        self._parser = RobotFileParser()
        self._parser.set_url(self.url)
        self._parser.parse([])
        self._retrieved = False

    @classmethod
    def from_text(
        cls,
        request: Request,
        text: str,
        *,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> "Robots":
        """Build a policy from robots.txt content without touching the network."""

        robots = cls(request, user_agent=user_agent)
        robots._load_lines(text.splitlines())
        return robots

    @property
    def retrieved(self) -> bool:
        return self._retrieved

    def retrieve(self, fetcher: Fetcher) -> Result[None]:
        """Fetch and parse robots.txt.

        A missing robots.txt (any 4xx) leaves an empty, allow-all policy. Server
        errors and network failures are reported as a failed result.
        """

        if not self.request.valid:
            return Result.failure(f"Invalid URL: {self.request.raw_url}")

        fetched = fetcher.fetch(
            self.url,
            timeout=min(DEFAULT_ROBOTS_TIMEOUT_SECONDS, fetcher.config.timeout_seconds),
        )
        if fetched.error is not None or fetched.status_code is None:
            return Result.failure(f"Failed to retrieve robots.txt: {fetched.describe_failure()}")

        if 400 <= fetched.status_code < 500:
            self._load_lines([])
            return Result.success()

        if not fetched.ok:
            return Result.failure(f"Failed to retrieve robots.txt: {fetched.describe_failure()}")

        text = (fetched.body or b"").decode("utf-8", errors="replace")
        self._load_lines(text.splitlines())
        return Result.success()

    def _load_lines(self, lines: list[str]) -> None:
        parser = RobotFileParser()
        parser.set_url(self.url)
        parser.parse(lines)
        self._parser = parser
        self._retrieved = True

    @property
    def crawl_delay(self) -> int:
        """Seconds to wait before each fetch; 0 disables throttling."""

        delay = self._parser.crawl_delay(self.user_agent)
        if delay is None:
            return 0
        try:
            return max(0, int(delay))
        except (TypeError, ValueError):
            return 0

    @property
    def sitemap_hrefs(self) -> list[Href]:
        """Declared `Sitemap:` entries, in file order without repeats."""

        return unique_hrefs(
            Href(raw=url, type=HrefType.SITEMAP) for url in (self._parser.site_maps() or [])
        )

    def can_fetch(self, url: str) -> bool:
        """Return True if the configured user agent may fetch `url`.

        A URL the parser cannot evaluate is treated as disallowed.
        """

        try:
            return self._parser.can_fetch(self.user_agent, url)
        except (TypeError, ValueError) as exc:
            logger.warning("robots.txt check failed for %s: %s", url, exc)
            return False


__all__ = ["Robots"]
