import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from github_explorer.config import CacheConfig
from github_explorer.domain.exceptions import (
    ExplorerError,
    NotFoundError,
    TransportError,
    ValidationError,
)
from github_explorer.domain.models import Account, OwnedItem
from github_explorer.domain.results import AccountSearchResult, OwnedItemsResult, RateLimitStatus
from github_explorer.infrastructure.acl import GitHubTranslator
from github_explorer.infrastructure.cache import MemoryCache
from github_explorer.infrastructure.http_client import HttpTransport

logger = logging.getLogger(__name__)

NOT_FOUND = 404
ACCOUNT_NAMESPACE = "github:account"
OWNED_ITEMS_NAMESPACE = "github:owned-items"
SEARCH_NAMESPACE = "github:search"


def account_cache_key(login: str) -> str:
    return f"{ACCOUNT_NAMESPACE}:{login.strip().lower()}"


def owned_items_cache_key(login: str, scope: Optional[Dict[str, Any]] = None) -> str:
    """
    Builds a deterministic key from the login and the query options that shaped the result.
    Options are sorted by name and colon-joined, so `{"page": 1, "sort": "updated"}` becomes
    `github:owned-items:octocat:page:1:sort:updated`.
    """
    base = f"{OWNED_ITEMS_NAMESPACE}:{login.strip().lower()}"
    if not scope:
        return base
    options = ":".join(f"{key}:{scope[key]}" for key in sorted(scope))
    return f"{base}:{options}"


def search_cache_key(query: str, scope: Dict[str, Any]) -> str:
    options = ":".join(f"{key}:{scope[key]}" for key in sorted(scope))
    return f"{SEARCH_NAMESPACE}:{query.strip().lower()}:{options}"


class GitHubAccountGateway:
    """
    AccountGateway backed by the GitHub REST API and an in-process cache.

    This is the only component that calls the transport for domain operations and the only
    one that reads or writes cache entries on behalf of entities. Cache methods never raise:
    the cache is an optimization, not a correctness dependency.
    """

    def __init__(
        self,
        transport: HttpTransport,
        cache: Optional[MemoryCache] = None,
        cache_config: Optional[CacheConfig] = None,
    ):
        self.transport = transport
        self.cache = cache
        self.cache_config = cache_config or CacheConfig()

    async def find_by_id(self, login: str) -> Account:
        logger.info(f"Fetching account: {login}")
        response = await self._get(f"/users/{quote(login)}", login)

        if not response.data:
            raise NotFoundError(login)
        try:
            account = GitHubTranslator.to_account(response.data)
        except ValidationError as e:
            raise TransportError(f"Malformed account payload for '{login}': {e}", cause=e) from e

        logger.info(f"Account found: {login}")
        return account

    async def find_owned_items(
        self,
        login: str,
        page: int = 1,
        per_page: int = 30,
        sort: str = "updated",
        direction: str = "desc",
    ) -> List[OwnedItem]:
        logger.info(f"Fetching owned items for account: {login}")
        params = {"page": page, "per_page": per_page, "sort": sort, "direction": direction}
        response = await self._get(f"/users/{quote(login)}/repos", login, params=params)

        if not isinstance(response.data, list):
            logger.warning(f"Invalid owned items payload for account: {login}. Treating as empty.")
            return []

        items = []
        for raw in response.data:
            try:
                items.append(GitHubTranslator.to_owned_item(raw))
            except ValidationError as e:
                logger.warning(f"Skipping malformed repository for {login}: {e}")

        logger.info(f"Found {len(items)} owned items for account: {login}")
        return items

    async def search_accounts(
        self, query: str, page: int = 1, per_page: int = 30, sort: str = "best-match"
    ) -> AccountSearchResult:
        scope = {"page": page, "per_page": per_page, "sort": sort}
        cached = self._read(search_cache_key(query, scope), GitHubTranslator.search_result_from_cache)
        if cached is not None:
            return cached

        logger.info(f"Searching accounts: {query}")
        params = {
            "q": query,
            "page": page,
            "per_page": per_page,
            "sort": None if sort == "best-match" else sort,
        }
        response = await self.transport.get("/search/users", params=params)

        data = response.data if isinstance(response.data, dict) else {}
        accounts = []
        for raw in data.get("items") or []:
            try:
                accounts.append(GitHubTranslator.to_account(raw))
            except ValidationError as e:
                logger.warning(f"Skipping malformed search result for '{query}': {e}")

        result = AccountSearchResult(accounts=accounts, total_count=data.get("total_count") or 0)
        logger.info(f"Found {len(accounts)} accounts for query: {query}")
        self._write(search_cache_key(query, scope), result, self.cache_config.search_ttl)
        return result

    async def exists(self, login: str) -> bool:
        try:
            await self.find_by_id(login)
            return True
        except NotFoundError:
            return False
        except Exception as e:
            logger.warning(f"Error checking if account exists {login}: {e}")
            return False

    async def get_rate_limit(self) -> RateLimitStatus:
        response = await self.transport.get("/rate_limit")
        rate = response.data.get("rate") if isinstance(response.data, dict) else None
        if not isinstance(rate, dict):
            raise TransportError("Invalid rate limit response")
        try:
            return RateLimitStatus(
                limit=rate["limit"],
                remaining=rate["remaining"],
                reset_at=datetime.fromtimestamp(int(rate["reset"]), tz=timezone.utc),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise TransportError(f"Invalid rate limit response: {e}", cause=e) from e

    async def _get(self, path: str, login: str, params: Optional[Dict[str, Any]] = None):
        try:
            return await self.transport.get(path, params=params)
        except TransportError as e:
            if e.status == NOT_FOUND:
                raise NotFoundError(login) from e
            raise

    # Cache operations

    def cache_account(self, login: str, account: Account, ttl: Optional[int] = None) -> None:
        ttl = self.cache_config.account_ttl if ttl is None else ttl
        if self._write(account_cache_key(login), account, ttl):
            logger.debug(f"Account cached: {login}")

    def get_cached_account(self, login: str) -> Optional[Account]:
        return self._read(account_cache_key(login), GitHubTranslator.account_from_cache)

    def cache_owned_items(
        self, login: str, scope: Dict[str, Any], result: OwnedItemsResult, ttl: Optional[int] = None
    ) -> None:
        ttl = self.cache_config.owned_items_ttl if ttl is None else ttl
        if self._write(owned_items_cache_key(login, scope), result, ttl):
            logger.debug(f"Owned items cached: {login}")

    def get_cached_owned_items(self, login: str, scope: Dict[str, Any]) -> Optional[OwnedItemsResult]:
        return self._read(owned_items_cache_key(login, scope), GitHubTranslator.owned_items_from_cache)

    def invalidate(self, login: str) -> None:
        if self.cache is None:
            return
        try:
            self.cache.delete(account_cache_key(login))
            prefix = owned_items_cache_key(login)
            for key in self.cache.keys():
                if key == prefix or key.startswith(f"{prefix}:"):
                    self.cache.delete(key)
            logger.debug(f"Cache cleared for account: {login}")
        except Exception as e:
            logger.warning(f"Cache clear error for account {login}: {e}")

    def invalidate_all(self) -> None:
        if self.cache is None:
            return
        try:
            self.cache.flush()
            logger.debug("All cache cleared")
        except Exception as e:
            logger.warning(f"Cache clear all error: {e}")

    def _write(self, key: str, value, ttl: int) -> bool:
        if self.cache is None:
            return False
        try:
            self.cache.set(key, value.model_dump_json(), ttl)
            return True
        except Exception as e:
            logger.warning(f"Cache write error for {key}: {e}")
            return False

    def _read(self, key: str, restore):
        if self.cache is None:
            return None
        try:
            cached = self.cache.get(key)
            if cached is None:
                return None
            return restore(cached)
        except Exception as e:
            logger.warning(f"Cache read error for {key}: {e}")
            return None

    # Diagnostics

    def set_credential(self, token: Optional[str]) -> None:
        self.transport.set_credential(token)

    async def health_check(self) -> Dict[str, Any]:
        cache_info = {"enabled": self.cache is not None}
        try:
            http_health = await self.transport.health_check()
            rate_limit = await self.get_rate_limit()
        except ExplorerError as e:
            return {"status": "unhealthy", "error": str(e), "http": {"status": "unknown"}, "cache": cache_info}
        return {
            "status": "healthy",
            "http": http_health,
            "rate_limit": rate_limit.model_dump(mode="json"),
            "cache": cache_info,
        }

    def stats(self) -> Dict[str, Any]:
        cache_stats: Dict[str, Any] = {"enabled": False}
        if self.cache is not None:
            cache_stats = {"enabled": True, "default_ttl": self.cache_config.model_dump(), **self.cache.stats()}
        return {"http": self.transport.stats(), "cache": cache_stats}
