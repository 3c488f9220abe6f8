"""Value types shared by the bot, its collaborators, and the data providers.

Nothing here imports other sitebot modules.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Generic, TypeVar


class ContentKind(str, Enum):
    """Normalized content categories used across fetch/parse/storage."""

    HTML = "html"
    XML = "xml"
    TEXT = "text"
    BINARY = "binary"
    UNKNOWN = "unknown"


class HrefType(str, Enum):
    """What a discovered href points at, which decides how it is filtered."""

    PAGE = "page"
    SITEMAP = "sitemap"


JSONPrimitive = str | int | float | bool | None
JSONValue = JSONPrimitive | list["JSONValue"] | dict[str, "JSONValue"]
JSONDict = dict[str, JSONValue]

T = TypeVar("T")


def utc_now_iso() -> str:
    """Return an RFC3339-like UTC timestamp string for manifests/JSONL."""

    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def parse_utc_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp as UTC; naive values are taken to be UTC."""

    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def infer_content_kind(content_type: str | None, url: str) -> ContentKind:
    """Infer coarse content kind from HTTP content type and URL."""

    normalized = (content_type or "").split(";", maxsplit=1)[0].strip().lower()
    lower_url = url.lower().split("?", maxsplit=1)[0]

    if "html" in normalized:
        return ContentKind.HTML
    if "xml" in normalized or lower_url.endswith((".xml", ".xml.gz")):
        return ContentKind.XML
    if normalized.startswith("text/"):
        return ContentKind.TEXT
    if normalized:
        return ContentKind.BINARY
    return ContentKind.UNKNOWN


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a fallible crawl step: either a value or an error message."""

    value: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T | None = None) -> "Result[T]":
        return cls(value=value, error=None)

    @classmethod
    def failure(cls, message: str) -> "Result[T]":
        return cls(value=None, error=message or "Unknown failure")


@dataclass(slots=True)
class FetchResult:
    """Result of attempting to download one URL."""

    requested_url: str
    final_url: str | None
    status_code: int | None
    content_type: str | None
    body: bytes | None
    fetched_at: str = field(default_factory=utc_now_iso)
    elapsed_ms: int | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return (
            self.error is None
            and self.status_code is not None
            and 200 <= self.status_code < 300
            and self.body is not None
        )

    @property
    def content_length(self) -> int | None:
        return None if self.body is None else len(self.body)

    @property
    def normalized_content_kind(self) -> ContentKind:
        return infer_content_kind(self.content_type, self.final_url or self.requested_url)

    def describe_failure(self) -> str:
        """Human-readable reason this fetch did not succeed."""

        if self.error:
            return self.error
        if self.status_code is not None and not 200 <= self.status_code < 300:
            return f"HTTP status {self.status_code}"
        if self.body is None:
            return "Empty response body"
        return "Unknown fetch failure"


@dataclass(frozen=True, slots=True)
class PageRecord:
    """One page row written by data providers."""

    url: str
    final_url: str | None
    domain: str
    status_code: int | None
    content_type: str | None
    title: str | None
    text: str
    internal_links: list[str] = field(default_factory=list)
    crawl_time: str = field(default_factory=utc_now_iso)

    def to_json(self) -> JSONDict:
        return {
            "url": self.url,
            "final_url": self.final_url,
            "domain": self.domain,
            "status_code": self.status_code,
            "content_type": self.content_type,
            "title": self.title,
            "text": self.text,
            "internal_links": list(self.internal_links),
            "crawl_time": self.crawl_time,
        }


@dataclass(frozen=True, slots=True)
class SitemapRecord:
    """One sitemap row written by data providers."""

    url: str
    domain: str
    sitemap_urls: list[str] = field(default_factory=list)
    page_urls: list[str] = field(default_factory=list)
    crawl_time: str = field(default_factory=utc_now_iso)

    def to_json(self) -> JSONDict:
        return {
            "url": self.url,
            "domain": self.domain,
            "sitemap_urls": list(self.sitemap_urls),
            "page_urls": list(self.page_urls),
            "crawl_time": self.crawl_time,
        }


@dataclass(slots=True)
class CrawlStats:
    """Simple mutable counters used for crawl summary reporting."""

    pages_ok: int = 0
    pages_failed: int = 0
    pages_filtered: int = 0
    sitemaps_ok: int = 0
    sitemaps_failed: int = 0
    hrefs_checked: int = 0
    hrefs_retained: int = 0
    crawl_delay_waits: int = 0
    crawl_delay_seconds: int = 0

    started_at: str = field(default_factory=utc_now_iso)
    finished_at: str | None = None

    def finish(self) -> None:
        self.finished_at = utc_now_iso()

    def to_json(self) -> JSONDict:
        return {
            "pages_ok": self.pages_ok,
            "pages_failed": self.pages_failed,
            "pages_filtered": self.pages_filtered,
            "sitemaps_ok": self.sitemaps_ok,
            "sitemaps_failed": self.sitemaps_failed,
            "hrefs_checked": self.hrefs_checked,
            "hrefs_retained": self.hrefs_retained,
            "crawl_delay_waits": self.crawl_delay_waits,
            "crawl_delay_seconds": self.crawl_delay_seconds,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
        }


__all__ = [
    "ContentKind",
    "CrawlStats",
    "FetchResult",
    "HrefType",
    "JSONDict",
    "JSONPrimitive",
    "JSONValue",
    "PageRecord",
    "Result",
    "SitemapRecord",
    "infer_content_kind",
    "parse_utc_timestamp",
    "utc_now_iso",
]
