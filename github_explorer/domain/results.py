from datetime import datetime, timezone
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict

from github_explorer.domain.models import Account, OwnedItem


def _now() -> datetime:
    return datetime.now(timezone.utc)


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class RateLimitStatus(_Frozen):
    limit: int
    remaining: int
    reset_at: datetime


class AccountSearchResult(_Frozen):
    accounts: List[Account] = Field(default_factory=list)
    total_count: int = 0


class ProfileCompleteness(_Frozen):
    percentage: int
    completed_fields: List[str]
    missing_fields: List[str]
    suggestions: List[str]


class AccountMetadata(_Frozen):
    has_complete_profile: bool
    engagement_score: int
    is_recently_active: bool
    profile_completeness: ProfileCompleteness


class AccountResult(_Frozen):
    """Outcome of a single account fetch. `metadata` is only computed for remote fetches."""
    account: Account
    from_cache: bool = False
    timestamp: datetime = Field(default_factory=_now)
    metadata: Optional[AccountMetadata] = None


class LanguageShare(_Frozen):
    language: str
    count: int
    total_stars: int
    percentage: int


class LanguageAnalysis(_Frozen):
    total: int
    most_used: Optional[str]
    distribution: List[LanguageShare]
    top_languages: List[LanguageShare]
    diversity: int


class ActivityAnalysis(_Frozen):
    active: int
    inactive: int
    new: int
    activity_percentage: int
    average_age: int


class TopItem(_Frozen):
    name: str
    stars: int
    forks: int
    language: Optional[str]


class PopularityAnalysis(_Frozen):
    total_stars: int
    total_forks: int
    popular_count: int
    average_stars: int
    top_items: List[TopItem]


class TrendAnalysis(_Frozen):
    recent_activity: int
    growth: int
    momentum: int


class Overview(_Frozen):
    total: int
    public: int
    forked: int
    original: int


class Analytics(_Frozen):
    overview: Overview
    languages: LanguageAnalysis
    activity: ActivityAnalysis
    popularity: PopularityAnalysis
    trends: TrendAnalysis


class TypeCategories(_Frozen):
    original: List[OwnedItem]
    forked: List[OwnedItem]


class ActivityCategories(_Frozen):
    active: List[OwnedItem]
    inactive: List[OwnedItem]


class PopularityCategories(_Frozen):
    popular: List[OwnedItem]
    standard: List[OwnedItem]


class MaintenanceCategories(_Frozen):
    well_maintained: List[OwnedItem]
    needs_attention: List[OwnedItem]


class Categorization(_Frozen):
    by_type: TypeCategories
    by_activity: ActivityCategories
    by_popularity: PopularityCategories
    by_maintenance: MaintenanceCategories


class Statistics(_Frozen):
    total: int
    total_stars: int
    total_forks: int
    total_watchers: int
    average_size: int
    language_count: int


class Pagination(_Frozen):
    page: int
    per_page: int
    has_more: bool


class OwnedItemsResult(_Frozen):
    """
    Fully processed owned-items listing. This is the only shape ever written to the cache.
    """
    items: List[OwnedItem]
    total_count: int
    filtered_count: int
    analytics: Optional[Analytics] = None
    categorization: Categorization
    statistics: Statistics
    pagination: Pagination
    from_cache: bool = False
    timestamp: datetime = Field(default_factory=_now)
