from typing import Any, Dict
from pydantic import ValidationError as PydanticValidationError

from github_explorer.domain.exceptions import ValidationError
from github_explorer.domain.models import Account, OwnedItem
from github_explorer.domain.results import AccountSearchResult, OwnedItemsResult


def _require(payload: Dict[str, Any], key: str, kind: str, *, text: bool = False) -> Any:
    value = payload.get(key)
    if not value or isinstance(value, bool):
        raise ValidationError(key, value, f"{kind} {key} is required")
    if text and not isinstance(value, str):
        raise ValidationError(key, value, f"{kind} {key} must be a string")
    return value


class GitHubTranslator:
    """
    Anti-corruption layer that translates raw GitHub REST JSON payloads into domain entities.

    Required structural fields are validated strictly; descriptive fields are best effort
    (negative counts clamp to zero, unparsable timestamps become None).
    """

    @staticmethod
    def to_account(payload: Any) -> Account:
        """
        Transforms a raw `/users/{login}` payload into an Account.

        Raises:
            ValidationError: If the payload is not an object or `id`/`login` are missing or malformed.
        """
        if not isinstance(payload, dict):
            raise ValidationError("payload", type(payload).__name__, "Account payload must be an object")

        _require(payload, "id", "Account")
        _require(payload, "login", "Account", text=True)

        try:
            return Account(
                id=payload["id"],
                login=payload["login"],
                name=payload.get("name"),
                email=payload.get("email"),
                bio=payload.get("bio"),
                avatar_url=payload.get("avatar_url"),
                html_url=payload.get("html_url"),
                location=payload.get("location"),
                company=payload.get("company"),
                blog=payload.get("blog"),
                twitter_username=payload.get("twitter_username"),
                followers=payload.get("followers"),
                following=payload.get("following"),
                public_repos=payload.get("public_repos"),
                created_at=payload.get("created_at"),
                updated_at=payload.get("updated_at"),
            )
        except PydanticValidationError as e:
            raise ValidationError("payload", payload.get("login"), str(e)) from e

    @staticmethod
    def to_owned_item(payload: Any) -> OwnedItem:
        """
        Transforms a raw repository payload into an OwnedItem.

        Raises:
            ValidationError: If `id`, `name`, `full_name` or `html_url` are missing or malformed.
        """
        if not isinstance(payload, dict):
            raise ValidationError("payload", type(payload).__name__, "Repository payload must be an object")

        _require(payload, "id", "Repository")
        _require(payload, "name", "Repository", text=True)
        _require(payload, "full_name", "Repository", text=True)
        _require(payload, "html_url", "Repository", text=True)

        owner = payload.get("owner")
        owner_login = owner.get("login") if isinstance(owner, dict) else owner

        try:
            return OwnedItem(
                id=payload["id"],
                name=payload["name"],
                full_name=payload["full_name"],
                html_url=payload["html_url"],
                description=payload.get("description"),
                language=payload.get("language"),
                stargazers_count=payload.get("stargazers_count"),
                forks_count=payload.get("forks_count"),
                watchers_count=payload.get("watchers_count"),
                size=payload.get("size"),
                default_branch=payload.get("default_branch"),
                is_private=payload.get("private"),
                is_fork=payload.get("fork"),
                has_issues=payload.get("has_issues"),
                has_projects=payload.get("has_projects"),
                has_wiki=payload.get("has_wiki"),
                has_pages=payload.get("has_pages"),
                created_at=payload.get("created_at"),
                updated_at=payload.get("updated_at"),
                pushed_at=payload.get("pushed_at"),
                owner=owner_login if isinstance(owner_login, str) else None,
            )
        except PydanticValidationError as e:
            raise ValidationError("payload", payload.get("full_name"), str(e)) from e

    @staticmethod
    def account_from_cache(serialized: str) -> Account:
        """
        Restores an Account from its cached JSON form.

        Raises:
            ValidationError: If the cached entry is corrupt or no longer matches the model.
        """
        try:
            return Account.model_validate_json(serialized)
        except PydanticValidationError as e:
            raise ValidationError("cache", "account", str(e)) from e

    @staticmethod
    def owned_items_from_cache(serialized: str) -> OwnedItemsResult:
        try:
            return OwnedItemsResult.model_validate_json(serialized)
        except PydanticValidationError as e:
            raise ValidationError("cache", "owned_items", str(e)) from e

    @staticmethod
    def search_result_from_cache(serialized: str) -> AccountSearchResult:
        try:
            return AccountSearchResult.model_validate_json(serialized)
        except PydanticValidationError as e:
            raise ValidationError("cache", "search", str(e)) from e
