"""Typed bot configuration with JSON/YAML load/save helpers."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml  # type: ignore

from .constants import (
    DEFAULT_DATA_PROVIDER,
    DEFAULT_HTTP_HEADERS,
    DEFAULT_MAX_PAGE_DEPTH,
    DEFAULT_MAX_SITEMAP_DEPTH,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_RESPECT_ROBOTS,
    DEFAULT_RETRIES,
    DEFAULT_RETRY_BACKOFF_SECONDS,
    DEFAULT_REVISIT_AFTER_SECONDS,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
    JSON_INDENT,
    SUPPORTED_CONFIG_SUFFIXES,
)
from .types import JSONDict
from .url import parse_extension_list


def _as_float(value: Any, key: str) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid float for '{key}': {value!r}") from exc


def _as_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    raise ValueError(f"Invalid bool for '{key}': {value!r}")


@dataclass(slots=True)
class BotConfig:
    """Top-level settings consumed by the bot, fetcher, and data provider."""

    seed_url: str | None = None
    data_provider: str = DEFAULT_DATA_PROVIDER
    output_dir: str = DEFAULT_OUTPUT_DIR
    domain_extensions: list[str] = field(default_factory=list)

    max_page_depth: int = DEFAULT_MAX_PAGE_DEPTH
    max_sitemap_depth: int = DEFAULT_MAX_SITEMAP_DEPTH

    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    retries: int = DEFAULT_RETRIES
    retry_backoff_seconds: float = DEFAULT_RETRY_BACKOFF_SECONDS

    user_agent: str = DEFAULT_USER_AGENT
    default_headers: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_HTTP_HEADERS))
    respect_robots: bool = DEFAULT_RESPECT_ROBOTS
    revisit_after_seconds: float | None = DEFAULT_REVISIT_AFTER_SECONDS

    def __post_init__(self) -> None:
        if self.seed_url is not None:
            self.seed_url = self.seed_url.strip() or None

        self.data_provider = (self.data_provider or "").strip().lower()
        if not self.data_provider:
            raise ValueError("data_provider must not be empty")

        self.domain_extensions = parse_extension_list(self.domain_extensions)

        if self.max_page_depth < 0:
            raise ValueError("max_page_depth must be >= 0")
        if self.max_sitemap_depth < 0:
            raise ValueError("max_sitemap_depth must be >= 0")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")
        if self.retries < 0:
            raise ValueError("retries must be >= 0")
        if self.retry_backoff_seconds < 0:
            raise ValueError("retry_backoff_seconds must be >= 0")
        if self.revisit_after_seconds is not None and self.revisit_after_seconds < 0:
            raise ValueError("revisit_after_seconds must be >= 0 when set")

    @property
    def domain_extension_check(self) -> bool:
        """Whether an extension allow-list is active."""

        return bool(self.domain_extensions)

    def allows_extension(self, extension: str) -> bool:
        """Return True if a request extension passes the allow-list."""

        if not self.domain_extension_check:
            return True
        return extension.lower() in self.domain_extensions

    def headers(self) -> dict[str, str]:
        """Return request headers with the configured User-Agent applied."""

        merged: dict[str, str] = dict(self.default_headers)
        merged.setdefault("User-Agent", self.user_agent)
        return merged

    def to_dict(self) -> JSONDict:
        """Serialize config for manifests and reproducibility."""

        return {
            "seed_url": self.seed_url,
            "data_provider": self.data_provider,
            "output_dir": self.output_dir,
            "domain_extensions": list(self.domain_extensions),
            "max_page_depth": self.max_page_depth,
            "max_sitemap_depth": self.max_sitemap_depth,
            "timeout_seconds": self.timeout_seconds,
            "retries": self.retries,
            "retry_backoff_seconds": self.retry_backoff_seconds,
            "user_agent": self.user_agent,
            "default_headers": dict(self.default_headers),
            "respect_robots": self.respect_robots,
            "revisit_after_seconds": self.revisit_after_seconds,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "BotConfig":
        """Build config from a parsed dictionary."""

        seed_url = payload.get("seed_url", payload.get("url"))
        return cls(
            seed_url=None if seed_url is None else str(seed_url),
            data_provider=str(payload.get("data_provider", DEFAULT_DATA_PROVIDER)),
            output_dir=str(payload.get("output_dir", DEFAULT_OUTPUT_DIR)),
            domain_extensions=parse_extension_list(payload.get("domain_extensions")),
            max_page_depth=int(payload.get("max_page_depth", DEFAULT_MAX_PAGE_DEPTH)),
            max_sitemap_depth=int(payload.get("max_sitemap_depth", DEFAULT_MAX_SITEMAP_DEPTH)),
            timeout_seconds=float(payload.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS)),
            retries=int(payload.get("retries", DEFAULT_RETRIES)),
            retry_backoff_seconds=float(
                payload.get("retry_backoff_seconds", DEFAULT_RETRY_BACKOFF_SECONDS)
            ),
            user_agent=str(payload.get("user_agent", DEFAULT_USER_AGENT)),
            default_headers={
                str(k): str(v)
                for k, v in dict(payload.get("default_headers", DEFAULT_HTTP_HEADERS)).items()
            },
            respect_robots=_as_bool(
                payload.get("respect_robots", DEFAULT_RESPECT_ROBOTS),
                "respect_robots",
            ),
            revisit_after_seconds=_as_float(
                payload.get("revisit_after_seconds", DEFAULT_REVISIT_AFTER_SECONDS),
                "revisit_after_seconds",
            ),
        )


def _load_yaml(path: Path) -> dict[str, Any]:
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"YAML config at {path} must be a mapping at top level")
    return data


def load_config(path: str | Path) -> BotConfig:
    """Load BotConfig from JSON/YAML path."""

    config_path = Path(path)
    suffix = config_path.suffix.lower()
    if suffix not in SUPPORTED_CONFIG_SUFFIXES:
        raise ValueError(
            f"Unsupported config suffix '{suffix}'. Supported: {SUPPORTED_CONFIG_SUFFIXES}"
        )

    if suffix == ".json":
        payload = json.loads(config_path.read_text(encoding="utf-8"))
    else:
        payload = _load_yaml(config_path)

    if not isinstance(payload, dict):
        raise ValueError(f"Config at {config_path} must be a mapping")

    return BotConfig.from_dict(payload)


def save_config(config: BotConfig, path: str | Path) -> None:
    """Save BotConfig as JSON or YAML based on file extension."""

    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    suffix = out_path.suffix.lower()
    payload = config.to_dict()

    if suffix == ".json":
        out_path.write_text(
            json.dumps(payload, indent=JSON_INDENT, sort_keys=True) + "\n",
            encoding="utf-8",
        )
        return

    if suffix in {".yaml", ".yml"}:
        out_path.write_text(yaml.safe_dump(payload, sort_keys=False), encoding="utf-8")
        return

    raise ValueError(
        f"Unsupported config suffix '{suffix}'. Supported: {SUPPORTED_CONFIG_SUFFIXES}"
    )


__all__ = [
    "BotConfig",
    "load_config",
    "save_config",
]
