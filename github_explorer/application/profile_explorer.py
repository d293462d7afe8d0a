import asyncio
import itertools
import logging
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict

from github_explorer.application.fetch_account_service import FetchAccountService
from github_explorer.application.fetch_owned_items_service import FetchOwnedItemsService
from github_explorer.domain.exceptions import ExplorerError
from github_explorer.domain.results import AccountResult, OwnedItemsResult

logger = logging.getLogger(__name__)

ACCOUNT_TARGET = "account"
OWNED_ITEMS_TARGET = "owned_items"


class RequestToken(BaseModel):
    model_config = ConfigDict(frozen=True)

    target: str
    sequence: int


class RequestTracker:
    """
    Issues monotonically increasing tokens per logical target.
    Only the most recently issued token for a target is current.
    """

    def __init__(self):
        self._sequence = itertools.count(1)
        self._latest: Dict[str, int] = {}

    def issue(self, target: str) -> RequestToken:
        token = RequestToken(target=target, sequence=next(self._sequence))
        self._latest[target] = token.sequence
        return token

    def is_current(self, token: RequestToken) -> bool:
        return self._latest.get(token.target) == token.sequence

    def cancel(self, target: str) -> None:
        self._latest.pop(target, None)


class ExplorerState:
    """Externally visible results of the latest account and owned-items requests."""

    def __init__(self):
        self.account: Optional[AccountResult] = None
        self.owned_items: Optional[OwnedItemsResult] = None
        self.account_error: Optional[ExplorerError] = None
        self.owned_items_error: Optional[ExplorerError] = None


class ProfileOutcome(BaseModel):
    """Independent outcomes of a parallel account + owned-items fetch."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    account: Optional[AccountResult] = None
    owned_items: Optional[OwnedItemsResult] = None
    account_error: Optional[ExplorerError] = None
    owned_items_error: Optional[ExplorerError] = None


class ProfileExplorer:
    """
    Coordinates account and owned-items fetches on behalf of an interactive caller.

    Every fetch is tagged with a request token. When a newer request for the same target
    is issued before an older one completes, the older result is discarded instead of
    overwriting the state.
    """

    def __init__(
        self,
        fetch_account: FetchAccountService,
        fetch_owned_items: FetchOwnedItemsService,
        tracker: Optional[RequestTracker] = None,
    ):
        self.fetch_account = fetch_account
        self.fetch_owned_items = fetch_owned_items
        self.tracker = tracker or RequestTracker()
        self.state = ExplorerState()

    async def load_account(self, login: str, **options: Any) -> AccountResult:
        token = self.tracker.issue(ACCOUNT_TARGET)
        try:
            result = await self.fetch_account.execute(login, **options)
        except ExplorerError as e:
            if self.tracker.is_current(token):
                self.state.account = None
                self.state.account_error = e
            raise

        if self.tracker.is_current(token):
            self.state.account = result
            self.state.account_error = None
        else:
            logger.debug(f"Discarding superseded account result for {login!r} (request {token.sequence})")
        return result

    async def load_owned_items(self, login: str, **options: Any) -> OwnedItemsResult:
        token = self.tracker.issue(OWNED_ITEMS_TARGET)
        try:
            result = await self.fetch_owned_items.execute(login, **options)
        except ExplorerError as e:
            if self.tracker.is_current(token):
                self.state.owned_items = None
                self.state.owned_items_error = e
            raise

        if self.tracker.is_current(token):
            self.state.owned_items = result
            self.state.owned_items_error = None
        else:
            logger.debug(f"Discarding superseded owned items result for {login!r} (request {token.sequence})")
        return result

    async def load_profile(
        self,
        login: str,
        account_options: Optional[Dict[str, Any]] = None,
        owned_items_options: Optional[Dict[str, Any]] = None,
    ) -> ProfileOutcome:
        """
        Fetches the account and its owned items concurrently.
        A failure in one never cancels the other; both outcomes are reported.
        """
        account, owned_items = await asyncio.gather(
            self.load_account(login, **(account_options or {})),
            self.load_owned_items(login, **(owned_items_options or {})),
            return_exceptions=True,
        )

        for outcome in (account, owned_items):
            if isinstance(outcome, BaseException) and not isinstance(outcome, ExplorerError):
                raise outcome

        return ProfileOutcome(
            account=None if isinstance(account, ExplorerError) else account,
            owned_items=None if isinstance(owned_items, ExplorerError) else owned_items,
            account_error=account if isinstance(account, ExplorerError) else None,
            owned_items_error=owned_items if isinstance(owned_items, ExplorerError) else None,
        )

    async def refresh(self, login: str) -> ProfileOutcome:
        return await self.load_profile(login, {"force_refresh": True}, {"force_refresh": True})

    async def exists(self, login: str) -> bool:
        try:
            return await self.fetch_account.exists(login)
        except ExplorerError:
            return False

    def clear(self) -> None:
        self.tracker.cancel(ACCOUNT_TARGET)
        self.tracker.cancel(OWNED_ITEMS_TARGET)
        self.state = ExplorerState()
