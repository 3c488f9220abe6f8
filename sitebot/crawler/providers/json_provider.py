"""Filesystem-backed JSON Lines data provider.

The provider owns the on-disk layout under `output_dir`:

- `pages.jsonl`: one row per retrieved page
- `sitemaps.jsonl`: one row per retrieved sitemap
- `manifests/crawl_config.json` and `manifests/crawl_stats.json`
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

from ..config import BotConfig
from ..constants import DEFAULT_OUTPUT_DIR
from ..page import Page
from ..sitemap import Sitemap
from ..types import Result, parse_utc_timestamp
from ..url import normalize_url
from .base import DataProvider


logger = logging.getLogger(__name__)


class JSONDataProvider(DataProvider):
    """Persist pages and sitemaps as JSON Lines under one directory."""

    name = "json"

    def __init__(
        self,
        output_dir: str | Path = DEFAULT_OUTPUT_DIR,
        *,
        revisit_after_seconds: float | None = None,
    ) -> None:
        self.output_dir = Path(output_dir)
        self.revisit_after_seconds = revisit_after_seconds

        self.pages_path = self.output_dir / "pages.jsonl"
        self.sitemaps_path = self.output_dir / "sitemaps.jsonl"
        self.manifests_dir = self.output_dir / "manifests"
        self.crawl_config_path = self.manifests_dir / "crawl_config.json"
        self.crawl_stats_path = self.manifests_dir / "crawl_stats.json"

        # Pages from earlier runs carry their crawl time for the revisit window;
        # pages added during this run are never eligible again.
        self._page_times: dict[str, datetime | None] = {}
        self._added_pages: set[str] = set()

    @classmethod
    def from_config(cls, config: BotConfig) -> "JSONDataProvider":
        return cls(config.output_dir, revisit_after_seconds=config.revisit_after_seconds)

    @property
    def paths(self) -> dict[str, str]:
        """Return important output paths for logging/CLI status messages."""

        return {
            "output_dir": str(self.output_dir),
            "pages": str(self.pages_path),
            "sitemaps": str(self.sitemaps_path),
            "crawl_config": str(self.crawl_config_path),
            "crawl_stats": str(self.crawl_stats_path),
        }

    def init(self) -> Result[None]:
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            self.manifests_dir.mkdir(parents=True, exist_ok=True)
            self._load_pages()
        except OSError as exc:
            return Result.failure(
                f"Failed to initialize JSON data provider at {self.output_dir}: {exc}"
            )

        logger.debug(
            "JSON data provider ready at %s (%d known pages)",
            self.output_dir,
            len(self._page_times),
        )
        return Result.success()

    def _load_pages(self) -> None:
        for payload in self._iter_jsonl(self.pages_path):
            crawl_time = parse_utc_timestamp(payload.get("crawl_time"))
            for key in ("url", "final_url"):
                url = payload.get(key)
                if isinstance(url, str) and url:
                    self._remember_page(url, crawl_time)

    @staticmethod
    def _iter_jsonl(path: Path):
        if not path.exists():
            return
        with path.open("r", encoding="utf-8") as handle:
            for line in handle:
                line = line.strip()
                if not line:
                    continue
                try:
                    payload = json.loads(line)
                except json.JSONDecodeError:
                    continue
                if isinstance(payload, dict):
                    yield payload

    def _remember_page(self, url: str, crawl_time: datetime | None) -> None:
        key = normalize_url(url) or url
        previous = self._page_times.get(key)
        if previous is None or (crawl_time is not None and crawl_time > previous):
            self._page_times[key] = crawl_time

    def retrieve_page(self, url: str) -> bool:
        """Unknown pages, and pages from earlier runs older than the revisit window, are eligible."""

        key = normalize_url(url) or url
        if key in self._added_pages:
            return False
        if key not in self._page_times:
            return True

        if self.revisit_after_seconds is None:
            return False

        crawl_time = self._page_times[key]
        if crawl_time is None:
            return True
        age = (datetime.now(timezone.utc) - crawl_time).total_seconds()
        return age >= self.revisit_after_seconds

    def known_pages(self) -> set[str]:
        """Return snapshot copy of recorded page URLs."""

        return set(self._page_times) | self._added_pages

    def add_page(self, page: Page) -> None:
        record = page.to_record()
        payload = record.to_json()
        self._append_jsonl(self.pages_path, payload)

        crawl_time = parse_utc_timestamp(record.crawl_time)
        for url in (record.url, record.final_url):
            if url:
                self._remember_page(url, crawl_time)
                self._added_pages.add(normalize_url(url) or url)

    def add_sitemap(self, sitemap: Sitemap) -> None:
        self._append_jsonl(self.sitemaps_path, sitemap.to_record().to_json())

    def save_crawl_config(self, config: Mapping[str, Any]) -> None:
        self._atomic_write_json(self.crawl_config_path, dict(config))

    def save_crawl_stats(self, stats: Mapping[str, Any]) -> None:
        self._atomic_write_json(self.crawl_stats_path, dict(stats))

    def _append_jsonl(self, path: Path, payload: Mapping[str, Any]) -> None:
        line = json.dumps(payload, ensure_ascii=False, sort_keys=True)
        with path.open("a", encoding="utf-8") as handle:
            handle.write(line + "\n")

    @staticmethod
    def _atomic_write_json(path: Path, payload: Mapping[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        content = json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True) + "\n"
        tmp_fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent),
            prefix=path.name + ".",
            suffix=".tmp",
        )
        try:
            with os.fdopen(tmp_fd, "w", encoding="utf-8") as handle:
                handle.write(content)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, path)
        except Exception:
            try:
                os.unlink(tmp_path)
            except FileNotFoundError:
                pass
            raise


__all__ = ["JSONDataProvider"]
