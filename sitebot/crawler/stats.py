"""Crawl statistics aggregation."""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timezone
from typing import Any

from .types import CrawlStats, parse_utc_timestamp


class StatsCollector:
    """Collect and summarize counters for one bot run."""

    def __init__(self, base: CrawlStats | None = None) -> None:
        self._core = base or CrawlStats()
        self._failure_reasons: dict[str, int] = defaultdict(int)
        self._custom_counters: dict[str, int] = defaultdict(int)

    def record_page(self, ok: bool, error: str | None = None) -> None:
        if ok:
            self._core.pages_ok += 1
            return
        self._core.pages_failed += 1
        self._record_reason("page", error)

    def record_page_filtered(self) -> None:
        self._core.pages_filtered += 1

    def record_sitemap(self, ok: bool, error: str | None = None) -> None:
        if ok:
            self._core.sitemaps_ok += 1
            return
        self._core.sitemaps_failed += 1
        self._record_reason("sitemap", error)

    def record_hrefs(self, checked: int, retained: int) -> None:
        self._core.hrefs_checked += checked
        self._core.hrefs_retained += retained

    def record_crawl_delay(self, seconds: int) -> None:
        if seconds <= 0:
            return
        self._core.crawl_delay_waits += 1
        self._core.crawl_delay_seconds += seconds

    def increment(self, name: str, value: int = 1) -> None:
        """Increment a custom counter for ad-hoc instrumentation."""

        if not name or value == 0:
            return
        self._custom_counters[name] += value

    def _record_reason(self, kind: str, error: str | None) -> None:
        # Keep the prefix before the first ':' so per-URL details do not explode the map.
        reason = (error or "Unknown").split(":", maxsplit=1)[0].strip() or "Unknown"
        self._failure_reasons[f"{kind}: {reason}"] += 1

    def finish(self) -> None:
        """Mark crawl as finished."""

        self._core.finish()

    def core(self) -> CrawlStats:
        """Return the live core `CrawlStats` record."""

        return self._core

    def to_json(self) -> dict[str, Any]:
        """Return a JSON-serializable summary payload."""

        now = datetime.now(timezone.utc)
        start = parse_utc_timestamp(self._core.started_at) or now
        end = parse_utc_timestamp(self._core.finished_at) or now
        duration_seconds = max(0.0, (end - start).total_seconds())

        return {
            **self._core.to_json(),
            "duration_seconds": duration_seconds,
            "failure_reasons": dict(self._failure_reasons),
            "custom_counters": dict(self._custom_counters),
        }


__all__ = ["StatsCollector"]
