"""HTTP fetch collaborator: one `requests` session, retries for transient failures."""

from __future__ import annotations

import logging
import time

import requests

from .config import BotConfig
from .types import FetchResult
from .url import normalize_url


logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({408, 429})


def _failed(url: str, error: str, elapsed_ms: int | None = None) -> FetchResult:
    return FetchResult(
        requested_url=url,
        final_url=None,
        status_code=None,
        content_type=None,
        body=None,
        elapsed_ms=elapsed_ms,
        error=error,
    )


def is_retryable(result: FetchResult) -> bool:
    """Network errors, 408/429 and 5xx responses are worth another attempt."""

    if result.error is not None or result.status_code is None:
        return True
    return result.status_code in RETRYABLE_STATUS_CODES or result.status_code >= 500


class Fetcher:
    """Download URLs with the configured headers, timeout and retry budget.

    Crawl-delay is not applied here; the bot sleeps before asking for a
    resource so that throttling follows the robots policy of the crawl tree.
    """

    def __init__(self, config: BotConfig, *, session: requests.Session | None = None) -> None:
        self.config = config
        self._session = session
        self._owns_session = session is None
        self._closed = False

    def fetch(self, url: str, *, timeout: float | None = None) -> FetchResult:
        normalized = normalize_url(url)
        if normalized is None:
            return _failed(url, "Invalid or unsupported URL")
        if self._closed:
            return _failed(normalized, "Fetcher is closed")

        timeout = timeout or self.config.timeout_seconds
        attempts = self.config.retries + 1
        attempt = 1
        result = self._get(normalized, timeout)
        while is_retryable(result) and attempt < attempts:
            logger.debug(
                "Fetch attempt %d/%d for %s failed: %s",
                attempt,
                attempts,
                normalized,
                result.describe_failure(),
            )
            if self.config.retry_backoff_seconds > 0:
                time.sleep(self.config.retry_backoff_seconds * attempt)
            attempt += 1
            result = self._get(normalized, timeout)
        return result

    def close(self) -> None:
        """Release the underlying HTTP session if this fetcher created it."""

        self._closed = True
        if self._session is not None and self._owns_session:
            self._session.close()
        self._session = None

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _get(self, url: str, timeout: float) -> FetchResult:
        if self._session is None:
            self._session = requests.Session()

        started = time.perf_counter()
        try:
            response = self._session.get(
                url,
                headers=self.config.headers(),
                timeout=timeout,
                allow_redirects=True,
            )
        except requests.RequestException as exc:
            elapsed_ms = int((time.perf_counter() - started) * 1000)
            return _failed(url, f"{exc.__class__.__name__}: {exc}", elapsed_ms)

        return FetchResult(
            requested_url=url,
            final_url=response.url or url,
            status_code=response.status_code,
            content_type=response.headers.get("Content-Type"),
            body=response.content or b"",
            elapsed_ms=int((time.perf_counter() - started) * 1000),
        )


__all__ = ["Fetcher", "is_retryable"]
