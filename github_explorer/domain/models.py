import math
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Union
from pydantic import BaseModel, Field, ConfigDict, field_validator

ACTIVITY_WINDOW = timedelta(days=30)
POPULAR_STAR_THRESHOLD = 100
NEW_ITEM_MAX_AGE_DAYS = 30


def round_half_up(value: float) -> int:
    """Rounds .5 away from zero for positive values, unlike the built-in banker's rounding."""
    return int(math.floor(value + 0.5))


def clamp_count(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return 0
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return 0


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Best-effort timestamp parsing. Anything unparsable becomes None instead of raising.
    Naive datetimes are assumed to be UTC.
    """
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def optional_text(value: Any) -> Optional[str]:
    if not isinstance(value, str) or not value.strip():
        return None
    return value


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Account(BaseModel):
    """
    Immutable domain model representing a GitHub user account.
    A refreshed fetch produces a new instance, never an in-place update.
    """
    model_config = ConfigDict(frozen=True)

    id: Union[int, str] = Field(..., description="GitHub numeric user id")
    login: str = Field(..., min_length=1, description="Unique account handle")
    name: Optional[str] = None
    email: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    html_url: Optional[str] = None
    location: Optional[str] = None
    company: Optional[str] = None
    blog: Optional[str] = None
    twitter_username: Optional[str] = None
    followers: int = Field(0, ge=0)
    following: int = Field(0, ge=0)
    public_repos: int = Field(0, ge=0, description="Owned item count")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("followers", "following", "public_repos", mode="before")
    @classmethod
    def _clamp_counts(cls, value: Any) -> int:
        return clamp_count(value)

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _parse_timestamps(cls, value: Any) -> Optional[datetime]:
        return parse_timestamp(value)

    @field_validator(
        "name", "email", "bio", "avatar_url", "html_url", "location", "company", "twitter_username",
        mode="before",
    )
    @classmethod
    def _blank_to_none(cls, value: Any) -> Optional[str]:
        return optional_text(value)

    @field_validator("blog", mode="before")
    @classmethod
    def _normalize_blog(cls, value: Any) -> Optional[str]:
        text = optional_text(value)
        if text is None:
            return None
        text = text.strip()
        # GitHub lets users store the blog without a scheme
        if not text.startswith(("http://", "https://")):
            return f"https://{text}"
        return text

    @property
    def has_complete_profile(self) -> bool:
        return bool(self.name and self.bio and self.location)

    @property
    def engagement_score(self) -> int:
        return round_half_up(self.followers * 0.7 + self.public_repos * 0.3)

    @property
    def is_recently_active(self) -> bool:
        if self.updated_at is None:
            return False
        return self.updated_at > _utcnow() - ACTIVITY_WINDOW


class OwnedItem(BaseModel):
    """
    Immutable domain model representing a repository owned by an account.
    """
    model_config = ConfigDict(frozen=True)

    id: Union[int, str]
    name: str = Field(..., min_length=1)
    full_name: str = Field(..., min_length=1)
    html_url: str = Field(..., min_length=1)
    description: Optional[str] = None
    language: Optional[str] = None
    stargazers_count: int = Field(0, ge=0)
    forks_count: int = Field(0, ge=0)
    watchers_count: int = Field(0, ge=0)
    size: int = Field(0, ge=0, description="Repository size in KB")
    default_branch: str = "main"
    is_private: bool = False
    is_fork: bool = False
    has_issues: bool = False
    has_projects: bool = False
    has_wiki: bool = False
    has_pages: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    pushed_at: Optional[datetime] = None
    owner: Optional[str] = Field(None, description="Login of the owning account")

    @field_validator("stargazers_count", "forks_count", "watchers_count", "size", mode="before")
    @classmethod
    def _clamp_counts(cls, value: Any) -> int:
        return clamp_count(value)

    @field_validator("created_at", "updated_at", "pushed_at", mode="before")
    @classmethod
    def _parse_timestamps(cls, value: Any) -> Optional[datetime]:
        return parse_timestamp(value)

    @field_validator("description", "language", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Optional[str]:
        return optional_text(value)

    @field_validator("default_branch", mode="before")
    @classmethod
    def _default_branch(cls, value: Any) -> str:
        return optional_text(value) or "main"

    @field_validator("is_private", "is_fork", "has_issues", "has_projects", "has_wiki", "has_pages", mode="before")
    @classmethod
    def _coerce_flags(cls, value: Any) -> bool:
        return bool(value)

    @property
    def popularity_score(self) -> int:
        return self.stargazers_count * 3 + self.forks_count * 2 + self.watchers_count

    @property
    def is_active(self) -> bool:
        if self.pushed_at is None:
            return False
        return self.pushed_at > _utcnow() - ACTIVITY_WINDOW

    @property
    def is_popular(self) -> bool:
        return self.stargazers_count >= POPULAR_STAR_THRESHOLD

    @property
    def is_well_maintained(self) -> bool:
        return self.has_issues and self.has_wiki and self.is_active

    @property
    def age_in_days(self) -> Optional[int]:
        if self.created_at is None:
            return None
        elapsed = abs((_utcnow() - self.created_at).total_seconds())
        return math.ceil(elapsed / 86400)

    @property
    def is_new(self) -> bool:
        age = self.age_in_days
        return age is not None and age <= NEW_ITEM_MAX_AGE_DAYS

    @property
    def issues_url(self) -> str:
        return f"{self.html_url}/issues"

    @property
    def pulls_url(self) -> str:
        return f"{self.html_url}/pulls"

    @property
    def releases_url(self) -> str:
        return f"{self.html_url}/releases"

    @property
    def contributors_url(self) -> str:
        return f"{self.html_url}/graphs/contributors"

    @property
    def wiki_url(self) -> Optional[str]:
        return f"{self.html_url}/wiki" if self.has_wiki else None
