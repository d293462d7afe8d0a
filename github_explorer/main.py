import argparse
import asyncio
import json
import logging
import os
import sys
from typing import List, Optional

from dotenv import load_dotenv

from github_explorer.application.fetch_account_service import FetchAccountService
from github_explorer.application.fetch_owned_items_service import FetchOwnedItemsService
from github_explorer.application.profile_explorer import ProfileExplorer
from github_explorer.application.validation import CUSTOM_SORTS, DIRECTIONS, REMOTE_SORTS
from github_explorer.config import DEFAULT_BASE_URL, CacheConfig, TransportConfig
from github_explorer.domain.exceptions import user_message
from github_explorer.infrastructure.cache import MemoryCache
from github_explorer.infrastructure.github_gateway import GitHubAccountGateway
from github_explorer.infrastructure.http_client import HttpTransport

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Explore a GitHub account and its repositories.")
    parser.add_argument("login", help="GitHub login to explore")
    parser.add_argument("--page", type=int, default=1)
    parser.add_argument("--per-page", type=int, default=30)
    parser.add_argument("--sort", choices=REMOTE_SORTS, default="updated")
    parser.add_argument("--direction", choices=DIRECTIONS, default="desc")
    parser.add_argument("--language")
    parser.add_argument("--type", choices=("fork", "source", "all"))
    parser.add_argument("--min-stars", type=int)
    parser.add_argument("--active-only", action="store_true")
    parser.add_argument("--custom-sort", choices=CUSTOM_SORTS)
    parser.add_argument("--no-analytics", action="store_true")
    parser.add_argument("--no-cache", action="store_true", help="Bypass the in-memory cache")
    return parser.parse_args(argv)


def build_explorer(transport_config: TransportConfig, cache_config: CacheConfig, token: Optional[str]):
    # The cache lives exactly as long as this composition root.
    cache = MemoryCache()
    transport = HttpTransport(transport_config)
    transport.set_credential(token)
    gateway = GitHubAccountGateway(transport, cache, cache_config)
    explorer = ProfileExplorer(
        FetchAccountService(gateway, cache_config.account_ttl),
        FetchOwnedItemsService(gateway, cache_config.owned_items_ttl),
    )
    return explorer, transport


async def main(argv: Optional[List[str]] = None) -> int:
    # Load environment variables from .env file
    load_dotenv()
    args = parse_args(argv)

    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )

    github_token = os.getenv("GITHUB_TOKEN")
    if not github_token:
        logger.warning("GITHUB_TOKEN is not set. Requests will use the lower unauthenticated rate limit.")

    transport_config = TransportConfig(
        base_url=os.getenv("GITHUB_API_URL", DEFAULT_BASE_URL),
        timeout=float(os.getenv("GITHUB_TIMEOUT", "15")),
    )
    explorer, transport = build_explorer(transport_config, CacheConfig(), github_token)

    owned_items_options = {
        "page": args.page,
        "per_page": args.per_page,
        "sort": args.sort,
        "direction": args.direction,
        "language": args.language,
        "type": args.type,
        "min_stars": args.min_stars,
        "active_only": args.active_only,
        "custom_sort": args.custom_sort,
        "include_analytics": not args.no_analytics,
        "use_cache": not args.no_cache,
    }

    async with transport:
        outcome = await explorer.load_profile(
            args.login,
            account_options={"use_cache": not args.no_cache},
            owned_items_options=owned_items_options,
        )

    report = {}
    if outcome.account is not None:
        report["account"] = outcome.account.model_dump(mode="json")
    if outcome.owned_items is not None:
        items = outcome.owned_items
        report["owned_items"] = {
            "items": [item.full_name for item in items.items],
            "total_count": items.total_count,
            "filtered_count": items.filtered_count,
            "statistics": items.statistics.model_dump(mode="json"),
            "analytics": items.analytics.model_dump(mode="json") if items.analytics else None,
            "pagination": items.pagination.model_dump(mode="json"),
        }
    print(json.dumps(report, indent=2))

    exit_code = 0
    for error in (outcome.account_error, outcome.owned_items_error):
        if error is not None:
            logger.error(f"{user_message(error)} ({error})")
            exit_code = 1
    return exit_code


def run() -> None:
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("Interrupted by user. Exiting gracefully.")
        sys.exit(130)


if __name__ == "__main__":
    run()
