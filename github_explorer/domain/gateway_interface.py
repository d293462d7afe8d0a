from typing import Any, Dict, List, Optional, Protocol

from github_explorer.domain.models import Account, OwnedItem
from github_explorer.domain.results import AccountSearchResult, OwnedItemsResult, RateLimitStatus


class AccountGateway(Protocol):
    """
    Port the application layer depends on. The GitHub REST implementation
    lives in the infrastructure layer.
    """

    async def find_by_id(self, login: str) -> Account:
        """Raises NotFoundError when the account does not exist."""
        ...

    async def find_owned_items(
        self,
        login: str,
        page: int = 1,
        per_page: int = 30,
        sort: str = "updated",
        direction: str = "desc",
    ) -> List[OwnedItem]:
        ...

    async def search_accounts(
        self, query: str, page: int = 1, per_page: int = 30, sort: str = "best-match"
    ) -> AccountSearchResult:
        ...

    async def exists(self, login: str) -> bool:
        """Best-effort existence check. Never raises."""
        ...

    async def get_rate_limit(self) -> RateLimitStatus:
        ...

    # Cache operations never raise; failures are logged and treated as a miss/no-op.

    def cache_account(self, login: str, account: Account, ttl: Optional[int] = None) -> None:
        ...

    def get_cached_account(self, login: str) -> Optional[Account]:
        ...

    def cache_owned_items(
        self, login: str, scope: Dict[str, Any], result: OwnedItemsResult, ttl: Optional[int] = None
    ) -> None:
        ...

    def get_cached_owned_items(self, login: str, scope: Dict[str, Any]) -> Optional[OwnedItemsResult]:
        ...

    def invalidate(self, login: str) -> None:
        ...

    def invalidate_all(self) -> None:
        ...
