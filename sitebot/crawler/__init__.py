"""Crawler package: config, shared types, collaborators, and the bot."""

from .bot import Bot, CrawlSession
from .config import BotConfig, load_config, save_config
from .fetcher import Fetcher
from .page import Page
from .providers import PROVIDERS, DataProvider, JSONDataProvider, create_provider
from .robots import Robots
from .sitemap import Sitemap, parse_sitemap_xml
from .stats import StatsCollector
from .types import (
    ContentKind,
    CrawlStats,
    FetchResult,
    HrefType,
    PageRecord,
    Result,
    SitemapRecord,
    infer_content_kind,
    utc_now_iso,
)
from .url import Href, Request, host_from_url, normalize_url, parse_extension_list, resolve_url

__all__ = [
    "Bot",
    "BotConfig",
    "ContentKind",
    "CrawlSession",
    "CrawlStats",
    "DataProvider",
    "FetchResult",
    "Fetcher",
    "Href",
    "HrefType",
    "JSONDataProvider",
    "PROVIDERS",
    "Page",
    "PageRecord",
    "Request",
    "Result",
    "Robots",
    "Sitemap",
    "SitemapRecord",
    "StatsCollector",
    "create_provider",
    "host_from_url",
    "infer_content_kind",
    "load_config",
    "normalize_url",
    "parse_extension_list",
    "parse_sitemap_xml",
    "resolve_url",
    "save_config",
    "utc_now_iso",
]
