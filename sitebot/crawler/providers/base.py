"""Data provider interface: persistence plus the page eligibility oracle."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping

from ..config import BotConfig
from ..page import Page
from ..sitemap import Sitemap
from ..types import Result


class DataProvider(ABC):
    """Pluggable store for crawled pages and sitemaps.

    The bot consults `retrieve_page` for every discovered page URL and only
    follows URLs for which it returns True.
    """

    name: str = ""

    @classmethod
    def from_config(cls, config: BotConfig) -> "DataProvider":
        """Build the provider from bot settings."""

        return cls()

    @abstractmethod
    def init(self) -> Result[None]:
        """Prepare storage. A failed result disables the bot."""

    @abstractmethod
    def retrieve_page(self, url: str) -> bool:
        """Return True when `url` should be retrieved."""

    @abstractmethod
    def add_page(self, page: Page) -> None:
        """Record a successfully retrieved page."""

    @abstractmethod
    def add_sitemap(self, sitemap: Sitemap) -> None:
        """Record a successfully retrieved sitemap."""

    def save_crawl_config(self, config: Mapping[str, Any]) -> None:
        """Persist the configuration a run was started with."""

    def save_crawl_stats(self, stats: Mapping[str, Any]) -> None:
        """Persist the summary of a finished run."""

    def close(self) -> None:
        """Release provider resources."""


__all__ = ["DataProvider"]
