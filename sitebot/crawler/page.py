"""HTML page: fetch, title/text extraction, and internal link discovery."""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup
import trafilatura

from .constants import DEFAULT_USER_AGENT
from .fetcher import Fetcher
from .robots import Robots
from .types import ContentKind, FetchResult, HrefType, PageRecord, Result
from .url import Href, Request, host_from_url, unique_hrefs


logger = logging.getLogger(__name__)

ACCEPTED_CONTENT_KINDS = {ContentKind.HTML, ContentKind.UNKNOWN}


class Page:
    """One crawled document.

    A page either owns its `Robots` (fetched during `init` because the caller
    supplied none) or shares the instance handed down by its crawl tree.
    """

    def __init__(
        self,
        url: str,
        fetcher: Fetcher,
        robots: Robots | None = None,
        *,
        user_agent: str = DEFAULT_USER_AGENT,
        include_nofollow_links: bool = False,
    ) -> None:
        self.url = url
        self.request = Request.from_url(url)
        self.fetcher = fetcher
        self.user_agent = user_agent
        self.include_nofollow_links = include_nofollow_links

        self._robots = robots
        self._owns_robots = robots is None

        self.fetch_result: FetchResult | None = None
        self.title: str | None = None
        self.text: str = ""
        self._internal_hrefs: list[Href] = []

    @property
    def robots(self) -> Robots | None:
        return self._robots

    @property
    def owns_robots(self) -> bool:
        return self._owns_robots

    @property
    def base(self) -> Request | str:
        """URL relative links resolve against: the post-redirect URL once fetched."""

        if self.fetch_result is not None and self.fetch_result.final_url:
            return self.fetch_result.final_url
        return self.request

    @property
    def internal_hrefs(self) -> list[Href]:
        """Same-site links in document order without repeats."""

        return list(self._internal_hrefs)

    def init(self) -> Result[None]:
        """Validate the request and obtain a robots policy if none was shared."""

        if not self.request.valid:
            return Result.failure(f"Invalid URL: {self.url}")

        if self._robots is not None:
            return Result.success()

        robots = Robots(self.request, user_agent=self.user_agent)
        result = robots.retrieve(self.fetcher)
        if not result.ok:
            return result

        self._robots = robots
        return Result.success()

    def retrieve(self) -> Result[None]:
        """Fetch the document and extract its title, text, and internal links."""

        fetched = self.fetcher.fetch(self.request.url)
        self.fetch_result = fetched
        if not fetched.ok:
            return Result.failure(fetched.describe_failure())

        content_kind = fetched.normalized_content_kind
        if content_kind not in ACCEPTED_CONTENT_KINDS:
            return Result.failure(f"Unsupported content kind: {content_kind.value}")

        html_text = (fetched.body or b"").decode("utf-8", errors="replace")
        soup = BeautifulSoup(html_text, "lxml")

        self.title = self._extract_title(soup)
        self._internal_hrefs = self._extract_internal_hrefs(soup)
        self.text = self._extract_text(html_text)
        return Result.success()

    def _extract_internal_hrefs(self, soup: BeautifulSoup) -> list[Href]:
        hrefs: list[Href] = []
        for element in soup.find_all(["a", "area"]):
            raw = element.get("href")
            if not raw:
                continue

            rel_values = {value.lower() for value in (element.get("rel") or [])}
            if not self.include_nofollow_links and "nofollow" in rel_values:
                continue

            href = Href(raw=raw.strip(), type=HrefType.PAGE)
            resolved = href.get_url(self.base)
            if resolved is None or not self.request.same_site(resolved):
                continue
            hrefs.append(href)

        return unique_hrefs(hrefs)

    @staticmethod
    def _extract_text(html_text: str) -> str:
        try:
            extracted = trafilatura.extract(
                html_text,
                output_format="txt",
                include_comments=False,
                include_tables=True,
                include_images=False,
                deduplicate=True,
            )
        except Exception as exc:
            logger.debug("Text extraction failed: %s: %s", exc.__class__.__name__, exc)
            return ""
        return (extracted or "").strip()

    @staticmethod
    def _extract_title(soup: BeautifulSoup) -> str | None:
        if soup.title and soup.title.get_text(strip=True):
            return soup.title.get_text(" ", strip=True)
        heading = soup.find(["h1", "h2"])
        if heading:
            text = heading.get_text(" ", strip=True)
            if text:
                return text
        return None

    def to_record(self) -> PageRecord:
        fetched = self.fetch_result
        return PageRecord(
            url=self.request.url or self.url,
            final_url=None if fetched is None else fetched.final_url,
            domain=host_from_url(self.request.url),
            status_code=None if fetched is None else fetched.status_code,
            content_type=None if fetched is None else fetched.content_type,
            title=self.title,
            text=self.text,
            internal_links=[
                url for url in (href.get_url(self.base) for href in self._internal_hrefs) if url
            ],
        )


__all__ = ["Page"]
