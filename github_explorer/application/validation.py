import re
from typing import Any, Dict

from github_explorer.domain.exceptions import ValidationError

MAX_LOGIN_LENGTH = 39
# Alphanumerics with internal hyphens; cannot start or end with a hyphen.
LOGIN_PATTERN = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9-]{0,37}[A-Za-z0-9])?$")

REMOTE_SORTS = ("created", "updated", "pushed", "full_name")
DIRECTIONS = ("asc", "desc")
ITEM_TYPES = ("fork", "source", "all")
CUSTOM_SORTS = ("popularity", "stars", "forks", "size", "name", "language")
MAX_PER_PAGE = 100


def validate_login(login: Any) -> None:
    if login is None or login == "":
        raise ValidationError("login", login, "Login is required")
    if not isinstance(login, str):
        raise ValidationError("login", login, "Login must be a string")

    trimmed = login.strip()
    if not trimmed:
        raise ValidationError("login", login, "Login cannot be empty")
    if not LOGIN_PATTERN.match(trimmed):
        raise ValidationError(
            "login",
            login,
            "Login must contain only alphanumeric characters and hyphens, cannot start or end "
            f"with a hyphen, and be up to {MAX_LOGIN_LENGTH} characters",
        )


def normalize_login(login: str) -> str:
    return login.strip().lower()


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_owned_items_options(options: Dict[str, Any]) -> None:
    page = options.get("page")
    if not _is_int(page) or page < 1:
        raise ValidationError("page", page, "Page must be a positive integer")

    per_page = options.get("per_page")
    if not _is_int(per_page) or not 1 <= per_page <= MAX_PER_PAGE:
        raise ValidationError("per_page", per_page, f"per_page must be an integer between 1 and {MAX_PER_PAGE}")

    sort = options.get("sort")
    if sort not in REMOTE_SORTS:
        raise ValidationError("sort", sort, f"Sort must be one of: {', '.join(REMOTE_SORTS)}")

    direction = options.get("direction")
    if direction not in DIRECTIONS:
        raise ValidationError("direction", direction, f"Direction must be one of: {', '.join(DIRECTIONS)}")

    item_type = options.get("type")
    if item_type is not None and item_type not in ITEM_TYPES:
        raise ValidationError("type", item_type, f"Type must be one of: {', '.join(ITEM_TYPES)}")

    min_stars = options.get("min_stars")
    if min_stars is not None and (not _is_int(min_stars) or min_stars < 0):
        raise ValidationError("min_stars", min_stars, "min_stars must be a non-negative integer")

    custom_sort = options.get("custom_sort")
    if custom_sort is not None and custom_sort not in CUSTOM_SORTS:
        raise ValidationError("custom_sort", custom_sort, f"Custom sort must be one of: {', '.join(CUSTOM_SORTS)}")

    language = options.get("language")
    if language is not None and not isinstance(language, str):
        raise ValidationError("language", language, "Language must be a string")
