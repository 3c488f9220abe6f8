"""Sitemap documents: sitemap indexes, url sets, and plain-text lists."""

from __future__ import annotations

import gzip
import zlib

from lxml import etree

from .fetcher import Fetcher
from .types import ContentKind, HrefType, Result, SitemapRecord
from .url import Href, Request, host_from_url, unique_hrefs


GZIP_MAGIC = b"\x1f\x8b"


def _local_name(element) -> str:
    tag = element.tag
    if not isinstance(tag, str):
        return ""
    return etree.QName(tag).localname.lower()


def parse_sitemap_xml(body: bytes) -> tuple[list[str], list[str]]:
    """Return `(nested_sitemap_urls, page_urls)` declared in a sitemap body.

    Raises `etree.XMLSyntaxError` for malformed XML and `ValueError` when the
    root element is neither `sitemapindex` nor `urlset`.
    """

    parser = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=False)
    root = etree.fromstring(body, parser=parser)

    sitemaps: list[str] = []
    pages: list[str] = []

    root_name = _local_name(root)
    if root_name not in {"sitemapindex", "urlset"}:
        raise ValueError(f"Unexpected sitemap root element <{root_name}>")

    for element in root:
        name = _local_name(element)
        if name not in {"sitemap", "url"}:
            continue
        for child in element:
            if _local_name(child) != "loc" or not child.text:
                continue
            loc = child.text.strip()
            if not loc:
                continue
            if name == "sitemap":
                sitemaps.append(loc)
            else:
                pages.append(loc)

    return sitemaps, pages


class Sitemap:
    """A fetched sitemap and the hrefs it declares."""

    def __init__(self, url: str, fetcher: Fetcher) -> None:
        self.url = url
        self.request = Request.from_url(url)
        self.fetcher = fetcher

        self._sitemap_hrefs: list[Href] = []
        self._page_hrefs: list[Href] = []

    @property
    def sitemap_hrefs(self) -> list[Href]:
        """Nested sitemaps from a sitemap index."""

        return list(self._sitemap_hrefs)

    @property
    def page_hrefs(self) -> list[Href]:
        """Page locations from a url set."""

        return list(self._page_hrefs)

    def retrieve(self) -> Result[None]:
        """Fetch and parse the sitemap body."""

        if not self.request.valid:
            return Result.failure(f"Invalid URL: {self.url}")

        fetched = self.fetcher.fetch(self.request.url)
        if not fetched.ok:
            return Result.failure(fetched.describe_failure())

        body = fetched.body or b""
        if body[:2] == GZIP_MAGIC:
            try:
                body = gzip.decompress(body)
            except (OSError, EOFError, zlib.error) as exc:
                return Result.failure(f"Invalid gzip sitemap: {exc}")

        if not body.strip():
            return Result.failure("Empty sitemap document")

        if fetched.normalized_content_kind == ContentKind.TEXT and not body.lstrip().startswith(b"<"):
            lines = body.decode("utf-8", errors="replace").splitlines()
            self._page_hrefs = unique_hrefs(
                Href(raw=line.strip(), type=HrefType.PAGE) for line in lines if line.strip()
            )
            return Result.success()

        try:
            sitemap_urls, page_urls = parse_sitemap_xml(body)
        except (etree.XMLSyntaxError, ValueError) as exc:
            return Result.failure(f"Invalid sitemap XML: {exc}")

        self._sitemap_hrefs = unique_hrefs(Href(raw=url, type=HrefType.SITEMAP) for url in sitemap_urls)
        self._page_hrefs = unique_hrefs(Href(raw=url, type=HrefType.PAGE) for url in page_urls)
        return Result.success()

    def to_record(self) -> SitemapRecord:
        base = self.request
        return SitemapRecord(
            url=self.request.url or self.url,
            domain=host_from_url(self.request.url),
            sitemap_urls=[url for url in (href.get_url(base) for href in self._sitemap_hrefs) if url],
            page_urls=[url for url in (href.get_url(base) for href in self._page_hrefs) if url],
        )


__all__ = [
    "Sitemap",
    "parse_sitemap_xml",
]
