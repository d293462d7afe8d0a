import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from github_explorer.application import analytics
from github_explorer.application.validation import (
    normalize_login,
    validate_login,
    validate_owned_items_options,
)
from github_explorer.domain.exceptions import ExplorerError, TransportError, ValidationError
from github_explorer.domain.gateway_interface import AccountGateway
from github_explorer.domain.models import OwnedItem
from github_explorer.domain.results import OwnedItemsResult, Pagination

logger = logging.getLogger(__name__)

DEFAULT_OPTIONS: Dict[str, Any] = {
    "page": 1,
    "per_page": 30,
    "sort": "updated",
    "direction": "desc",
    "use_cache": True,
    "force_refresh": False,
    "include_analytics": True,
    "language": None,
    "type": None,
    "min_stars": None,
    "active_only": False,
    "custom_sort": None,
}

# Options that change the shape of the processed result and therefore the cache entry.
CACHE_SCOPE_OPTIONS = (
    "page", "per_page", "sort", "direction", "language", "type",
    "min_stars", "active_only", "custom_sort", "include_analytics",
)


class FetchOwnedItemsService:
    """
    Use case for fetching the repositories owned by an account and deriving analytics.

    Validate -> (cache lookup) -> remote fetch -> process -> cache write.
    Processing is Filter -> Sort -> Analyze -> Categorize -> Summarize; only filtering and
    sorting affect the returned list, everything else describes the full fetched page.
    """

    def __init__(self, gateway: AccountGateway, cache_ttl: Optional[int] = None):
        self.gateway = gateway
        self.cache_ttl = cache_ttl

    async def execute(self, login: str, **options: Any) -> OwnedItemsResult:
        try:
            validate_login(login)
            config = self._resolve_options(options)
            validate_owned_items_options(config)

            normalized = normalize_login(login)
            scope = self.cache_scope(config)
            logger.info(f"Fetching owned items for: {normalized}")

            if config["use_cache"] and not config["force_refresh"]:
                cached = self.gateway.get_cached_owned_items(normalized, scope)
                if cached is not None:
                    logger.info(f"Owned items found in cache: {normalized}")
                    return cached.model_copy(update={"from_cache": True, "timestamp": datetime.now(timezone.utc)})

            items = await self.gateway.find_owned_items(
                normalized,
                page=config["page"],
                per_page=config["per_page"],
                sort=config["sort"],
                direction=config["direction"],
            )

            result = self.process(items, config)

            if config["use_cache"]:
                self.gateway.cache_owned_items(normalized, scope, result, self.cache_ttl)

            logger.info(f"Successfully retrieved {len(items)} owned items for: {normalized}")
            return result

        except ExplorerError as e:
            logger.error(f"Error fetching owned items for {login!r}: {e}")
            raise
        except Exception as e:
            logger.exception(f"Unexpected error fetching owned items for {login!r}")
            raise TransportError(
                f"Unexpected error while fetching owned items for '{login}': {e}", cause=e
            ) from e

    @staticmethod
    def _resolve_options(options: Dict[str, Any]) -> Dict[str, Any]:
        unknown = sorted(set(options) - set(DEFAULT_OPTIONS))
        if unknown:
            raise ValidationError("options", unknown, f"Unknown options: {', '.join(unknown)}")
        return {**DEFAULT_OPTIONS, **options}

    @staticmethod
    def cache_scope(config: Dict[str, Any]) -> Dict[str, Any]:
        scope = {name: config[name] for name in CACHE_SCOPE_OPTIONS}
        scope["language"] = (scope["language"] or "all").lower()
        scope["type"] = scope["type"] or "all"
        return scope

    @staticmethod
    def process(items: List[OwnedItem], config: Dict[str, Any]) -> OwnedItemsResult:
        filtered = analytics.apply_filters(items, config)
        ordered = analytics.apply_sorting(filtered, config["custom_sort"])

        return OwnedItemsResult(
            items=ordered,
            total_count=len(items),
            filtered_count=len(filtered),
            analytics=analytics.generate_analytics(items) if config["include_analytics"] else None,
            categorization=analytics.categorize(items),
            statistics=analytics.generate_statistics(items),
            pagination=Pagination(
                page=config["page"],
                per_page=config["per_page"],
                # Heuristic: a full page suggests another one exists
                has_more=len(items) == config["per_page"],
            ),
        )
