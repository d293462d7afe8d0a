import logging
from typing import Optional

from github_explorer.application.validation import normalize_login, validate_login
from github_explorer.domain.exceptions import ExplorerError, TransportError
from github_explorer.domain.gateway_interface import AccountGateway
from github_explorer.domain.models import Account, round_half_up
from github_explorer.domain.results import AccountMetadata, AccountResult, ProfileCompleteness

logger = logging.getLogger(__name__)

# (field label, Account attribute, weight)
PROFILE_FIELDS = (
    ("name", "name", 20),
    ("bio", "bio", 15),
    ("location", "location", 10),
    ("company", "company", 10),
    ("blog", "blog", 10),
    ("email", "email", 15),
    ("twitter", "twitter_username", 10),
)

PROFILE_SUGGESTIONS = (
    ("name", "Add your full name"),
    ("bio", "Write a bio describing what you work on"),
    ("location", "Add your location"),
    ("company", "Mention your company or organization"),
    ("blog", "Add a link to your website or blog"),
    ("email", "Make your email public if you want to be contacted"),
)


class FetchAccountService:
    """
    Use case for fetching a single GitHub account with cache-aside semantics.

    Validate -> (cache lookup) -> remote fetch -> cache write -> metadata.
    """

    def __init__(self, gateway: AccountGateway, cache_ttl: Optional[int] = None):
        self.gateway = gateway
        self.cache_ttl = cache_ttl

    async def execute(self, login: str, use_cache: bool = True, force_refresh: bool = False) -> AccountResult:
        """
        Fetches an account by login.

        Args:
            login: GitHub login; surrounding whitespace and case are ignored.
            use_cache: Consult and populate the cache.
            force_refresh: Skip the cache lookup but still refresh the cached entry.

        Raises:
            ValidationError: Before any I/O when the login is malformed.
            NotFoundError: The account does not exist.
            RateLimitError / TransportError: Remote failures.
        """
        try:
            validate_login(login)
            normalized = normalize_login(login)
            logger.info(f"Fetching account: {normalized}")

            if use_cache and not force_refresh:
                cached = self.gateway.get_cached_account(normalized)
                if cached is not None:
                    logger.info(f"Account found in cache: {normalized}")
                    return AccountResult(account=cached, from_cache=True)

            account = await self.gateway.find_by_id(normalized)

            if use_cache:
                self.gateway.cache_account(normalized, account, self.cache_ttl)

            logger.info(f"Account successfully retrieved: {normalized}")
            return AccountResult(account=account, from_cache=False, metadata=build_metadata(account))

        except ExplorerError as e:
            logger.error(f"Error fetching account {login!r}: {e}")
            raise
        except Exception as e:
            logger.exception(f"Unexpected error fetching account {login!r}")
            raise TransportError(f"Unexpected error while fetching account '{login}': {e}", cause=e) from e

    async def exists(self, login: str) -> bool:
        validate_login(login)
        try:
            return await self.gateway.exists(normalize_login(login))
        except Exception as e:
            logger.error(f"Error checking if account exists {login!r}: {e}")
            return False


def build_metadata(account: Account) -> AccountMetadata:
    return AccountMetadata(
        has_complete_profile=account.has_complete_profile,
        engagement_score=account.engagement_score,
        is_recently_active=account.is_recently_active,
        profile_completeness=profile_completeness(account),
    )


def profile_completeness(account: Account) -> ProfileCompleteness:
    completed = [label for label, attr, _ in PROFILE_FIELDS if getattr(account, attr)]
    total_weight = sum(weight for _, _, weight in PROFILE_FIELDS)
    completed_weight = sum(weight for label, _, weight in PROFILE_FIELDS if label in completed)

    return ProfileCompleteness(
        percentage=round_half_up(completed_weight / total_weight * 100),
        completed_fields=completed,
        missing_fields=[label for label, _, _ in PROFILE_FIELDS if label not in completed],
        suggestions=[text for label, text in PROFILE_SUGGESTIONS if label not in completed],
    )
