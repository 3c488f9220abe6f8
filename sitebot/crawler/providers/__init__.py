"""Data provider registry."""

from __future__ import annotations

from ..config import BotConfig
from .base import DataProvider
from .json_provider import JSONDataProvider


PROVIDERS: dict[str, type[DataProvider]] = {
    JSONDataProvider.name: JSONDataProvider,
}


def create_provider(name: str, config: BotConfig | None = None) -> DataProvider:
    """Instantiate the provider registered under `name`.

    Raises ValueError for names that are not registered.
    """

    key = (name or "").strip().lower()
    provider_cls = PROVIDERS.get(key)
    if provider_cls is None:
        raise ValueError(
            f"Unsupported data provider: {name!r}. Supported: {', '.join(sorted(PROVIDERS))}"
        )
    if config is None:
        return provider_cls()
    return provider_cls.from_config(config)


__all__ = [
    "DataProvider",
    "JSONDataProvider",
    "PROVIDERS",
    "create_provider",
]
