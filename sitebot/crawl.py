"""CLI entrypoint for a single-seed bot run."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys
from typing import Any

from sitebot.crawler import Bot, BotConfig, create_provider, load_config, parse_extension_list


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Crawl one site politely: its page tree and the sitemaps robots.txt declares.",
    )

    parser.add_argument("--url", type=str, default=None, help="Seed URL to start from.")
    parser.add_argument(
        "--data-provider",
        type=str,
        default=None,
        help="Persistence backend (default: json).",
    )
    parser.add_argument(
        "--only-domain-extensions",
        type=str,
        default=None,
        help="Comma-separated domain extensions to allow, e.g. nl,be.",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to JSON/YAML bot config. Command-line flags override it.",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Directory for pages, sitemaps, manifests, and logs.",
    )

    parser.add_argument("--max-page-depth", type=int, default=None)
    parser.add_argument("--max-sitemap-depth", type=int, default=None)
    parser.add_argument("--timeout-seconds", type=float, default=None)
    parser.add_argument("--retries", type=int, default=None)
    parser.add_argument("--retry-backoff-seconds", type=float, default=None)
    parser.add_argument(
        "--revisit-after-seconds",
        type=float,
        default=None,
        help="Re-retrieve already recorded pages once their record is this old.",
    )

    parser.add_argument("--user-agent", type=str, default=None)
    parser.add_argument(
        "--respect-robots",
        dest="respect_robots",
        action="store_true",
        default=None,
        help="Skip pages disallowed by robots.txt (default comes from config).",
    )
    parser.add_argument(
        "--no-respect-robots",
        dest="respect_robots",
        action="store_false",
        help="Ignore robots.txt disallow rules. Crawl-delay is always honored.",
    )

    parser.add_argument(
        "--print-stats-json",
        action="store_true",
        help="Print full stats JSON in stdout after run.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging.",
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> BotConfig:
    if args.config is not None:
        payload: dict[str, Any] = load_config(args.config).to_dict()
    else:
        payload = {}

    if args.url:
        payload["seed_url"] = args.url
    if args.data_provider:
        payload["data_provider"] = args.data_provider
    if args.only_domain_extensions:
        payload["domain_extensions"] = parse_extension_list(args.only_domain_extensions)
    if args.output_dir is not None:
        payload["output_dir"] = args.output_dir

    if args.max_page_depth is not None:
        payload["max_page_depth"] = args.max_page_depth
    if args.max_sitemap_depth is not None:
        payload["max_sitemap_depth"] = args.max_sitemap_depth
    if args.timeout_seconds is not None:
        payload["timeout_seconds"] = args.timeout_seconds
    if args.retries is not None:
        payload["retries"] = args.retries
    if args.retry_backoff_seconds is not None:
        payload["retry_backoff_seconds"] = args.retry_backoff_seconds
    if args.revisit_after_seconds is not None:
        payload["revisit_after_seconds"] = args.revisit_after_seconds

    if args.user_agent is not None:
        payload["user_agent"] = args.user_agent
    if args.respect_robots is not None:
        payload["respect_robots"] = args.respect_robots

    return BotConfig.from_dict(payload)


def setup_logging(log_dir: Path | None, verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(log_level)

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setLevel(log_level)
    stream_handler.setFormatter(formatter)
    root.addHandler(stream_handler)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_dir / "crawl.log", encoding="utf-8")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    # Trafilatura can emit frequent non-actionable warnings on noisy pages.
    logging.getLogger("trafilatura").setLevel(logging.ERROR)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def print_summary(stats: dict[str, Any], paths: dict[str, str], *, print_stats_json: bool) -> None:
    print("\n=== Crawl Complete ===")
    for key, value in paths.items():
        print(f"{key}: {value}")

    print("\n--- Core Stats ---")
    for key in [
        "pages_ok",
        "pages_failed",
        "pages_filtered",
        "sitemaps_ok",
        "sitemaps_failed",
        "crawl_delay_seconds",
        "duration_seconds",
    ]:
        if key in stats:
            print(f"{key}: {stats[key]}")

    if print_stats_json:
        print("\n--- Full Stats JSON ---")
        print(json.dumps(stats, indent=2, sort_keys=True))


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(None, verbose=args.verbose)

    try:
        config = build_config(args)
        provider = create_provider(config.data_provider, config)
    except Exception as exc:
        logging.error("%s", exc)
        return 2

    bot = Bot(config, provider)
    init_result = bot.init()
    if not init_result.ok:
        logging.error("%s", init_result.error)
        bot.close()
        return 1

    if not config.seed_url:
        logging.info("No seed URL given (--url); nothing to crawl")
        bot.close()
        return 0

    # The provider owns output_dir, so file logging starts once it exists.
    setup_logging(Path(config.output_dir) / "logs", verbose=args.verbose)

    provider.save_crawl_config(config.to_dict())
    logging.info(
        "Starting bot: seed=%s, data_provider=%s, output_dir=%s, domain_extensions=%s",
        config.seed_url,
        config.data_provider,
        config.output_dir,
        ",".join(config.domain_extensions) or "*",
    )

    try:
        with bot:
            bot.start(config.seed_url)
            stats = bot.stats.to_json()
            provider.save_crawl_stats(stats)
    except KeyboardInterrupt:
        logging.error("Interrupted by user")
        return 130
    except Exception:
        logging.exception("Bot run failed")
        return 1

    paths = getattr(provider, "paths", {})
    print_summary(stats, dict(paths), print_stats_json=args.print_stats_json)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
