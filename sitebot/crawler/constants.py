"""Default values shared by config, fetcher, and CLI."""

from __future__ import annotations

DEFAULT_DATA_PROVIDER = "json"
DEFAULT_OUTPUT_DIR = "crawled_output"

DEFAULT_MAX_PAGE_DEPTH = 2
DEFAULT_MAX_SITEMAP_DEPTH = 10

DEFAULT_TIMEOUT_SECONDS = 20.0
DEFAULT_RETRIES = 2
DEFAULT_RETRY_BACKOFF_SECONDS = 1.0
DEFAULT_ROBOTS_TIMEOUT_SECONDS = 10.0

DEFAULT_RESPECT_ROBOTS = True
DEFAULT_REVISIT_AFTER_SECONDS: float | None = None

DEFAULT_USER_AGENT = "sitebot/0.1 (+https://github.com/openhappen/sitebot)"
DEFAULT_HTTP_HEADERS: dict[str, str] = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.8",
}

SUPPORTED_CONFIG_SUFFIXES = (".json", ".yaml", ".yml")
JSON_INDENT = 2

__all__ = [
    "DEFAULT_DATA_PROVIDER",
    "DEFAULT_HTTP_HEADERS",
    "DEFAULT_MAX_PAGE_DEPTH",
    "DEFAULT_MAX_SITEMAP_DEPTH",
    "DEFAULT_OUTPUT_DIR",
    "DEFAULT_RESPECT_ROBOTS",
    "DEFAULT_RETRIES",
    "DEFAULT_RETRY_BACKOFF_SECONDS",
    "DEFAULT_REVISIT_AFTER_SECONDS",
    "DEFAULT_ROBOTS_TIMEOUT_SECONDS",
    "DEFAULT_TIMEOUT_SECONDS",
    "DEFAULT_USER_AGENT",
    "JSON_INDENT",
    "SUPPORTED_CONFIG_SUFFIXES",
]
