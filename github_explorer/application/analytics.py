import math
from collections import Counter
from typing import Any, Dict, List, Optional, Sequence

from github_explorer.domain.models import OwnedItem, round_half_up
from github_explorer.domain.results import (
    ActivityAnalysis,
    ActivityCategories,
    Analytics,
    Categorization,
    LanguageAnalysis,
    LanguageShare,
    MaintenanceCategories,
    Overview,
    PopularityAnalysis,
    PopularityCategories,
    Statistics,
    TopItem,
    TrendAnalysis,
    TypeCategories,
)

TOP_LANGUAGES = 10
TOP_ITEMS = 5


def _percentage(part: int, whole: int) -> int:
    return round_half_up(part / whole * 100) if whole else 0


def apply_filters(items: Sequence[OwnedItem], options: Dict[str, Any]) -> List[OwnedItem]:
    """Only shapes the returned item list; analytics and categorization still see the full fetched set."""
    filtered = list(items)

    language = options.get("language")
    if language:
        wanted = language.lower()
        filtered = [i for i in filtered if i.language and i.language.lower() == wanted]

    item_type = options.get("type")
    if item_type == "fork":
        filtered = [i for i in filtered if i.is_fork]
    elif item_type == "source":
        filtered = [i for i in filtered if not i.is_fork]

    min_stars = options.get("min_stars")
    if min_stars:
        filtered = [i for i in filtered if i.stargazers_count >= min_stars]

    if options.get("active_only"):
        filtered = [i for i in filtered if i.is_active]

    return filtered


def apply_sorting(items: Sequence[OwnedItem], custom_sort: Optional[str]) -> List[OwnedItem]:
    ordered = list(items)
    if custom_sort == "popularity":
        ordered.sort(key=lambda i: i.popularity_score, reverse=True)
    elif custom_sort == "stars":
        ordered.sort(key=lambda i: i.stargazers_count, reverse=True)
    elif custom_sort == "forks":
        ordered.sort(key=lambda i: i.forks_count, reverse=True)
    elif custom_sort == "size":
        ordered.sort(key=lambda i: i.size, reverse=True)
    elif custom_sort == "name":
        ordered.sort(key=lambda i: (i.name.casefold(), i.name))
    elif custom_sort == "language":
        # Items without a language go last
        ordered.sort(key=lambda i: (i.language is None, (i.language or "").casefold()))
    return ordered


def analyze_languages(items: Sequence[OwnedItem]) -> LanguageAnalysis:
    counts: Counter = Counter()
    stars: Dict[str, int] = {}
    for item in items:
        if item.language:
            counts[item.language] += 1
            stars[item.language] = stars.get(item.language, 0) + item.stargazers_count

    # Counter.most_common keeps first-seen order for ties
    shares = [
        LanguageShare(
            language=language,
            count=count,
            total_stars=stars[language],
            percentage=_percentage(count, len(items)),
        )
        for language, count in counts.most_common()
    ]
    return LanguageAnalysis(
        total=len(counts),
        most_used=shares[0].language if shares else None,
        distribution=shares,
        top_languages=shares[:TOP_LANGUAGES],
        diversity=_percentage(len(counts), len(items)),
    )


def average_age(items: Sequence[OwnedItem]) -> int:
    ages = [i.age_in_days for i in items if i.age_in_days is not None]
    return round_half_up(sum(ages) / len(ages)) if ages else 0


def analyze_activity(items: Sequence[OwnedItem]) -> ActivityAnalysis:
    active = sum(1 for i in items if i.is_active)
    return ActivityAnalysis(
        active=active,
        inactive=len(items) - active,
        new=sum(1 for i in items if i.is_new),
        activity_percentage=_percentage(active, len(items)),
        average_age=average_age(items),
    )


def analyze_popularity(items: Sequence[OwnedItem]) -> PopularityAnalysis:
    total_stars = sum(i.stargazers_count for i in items)
    starred = sorted((i for i in items if i.stargazers_count > 0), key=lambda i: i.stargazers_count, reverse=True)
    return PopularityAnalysis(
        total_stars=total_stars,
        total_forks=sum(i.forks_count for i in items),
        popular_count=sum(1 for i in items if i.is_popular),
        average_stars=round_half_up(total_stars / len(items)) if items else 0,
        top_items=[
            TopItem(name=i.name, stars=i.stargazers_count, forks=i.forks_count, language=i.language)
            for i in starred[:TOP_ITEMS]
        ],
    )


def momentum(items: Sequence[OwnedItem]) -> int:
    if not items:
        return 0
    active_ratio = sum(1 for i in items if i.is_active) / len(items)
    mean_stars = sum(i.stargazers_count for i in items) / len(items)
    return round_half_up(active_ratio * 50 + math.log(mean_stars + 1) * 10)


def analyze_trends(items: Sequence[OwnedItem]) -> TrendAnalysis:
    return TrendAnalysis(
        recent_activity=sum(1 for i in items if i.is_active),
        growth=sum(1 for i in items if i.is_new),
        momentum=momentum(items),
    )


def generate_analytics(items: Sequence[OwnedItem]) -> Optional[Analytics]:
    """Returns None for an empty set so callers can tell "no data" from "all zero"."""
    if not items:
        return None
    forked = sum(1 for i in items if i.is_fork)
    return Analytics(
        overview=Overview(
            total=len(items),
            public=sum(1 for i in items if not i.is_private),
            forked=forked,
            original=len(items) - forked,
        ),
        languages=analyze_languages(items),
        activity=analyze_activity(items),
        popularity=analyze_popularity(items),
        trends=analyze_trends(items),
    )


def _split(items: Sequence[OwnedItem], predicate) -> tuple:
    matching, rest = [], []
    for item in items:
        (matching if predicate(item) else rest).append(item)
    return matching, rest


def categorize(items: Sequence[OwnedItem]) -> Categorization:
    forked, original = _split(items, lambda i: i.is_fork)
    active, inactive = _split(items, lambda i: i.is_active)
    popular, standard = _split(items, lambda i: i.is_popular)
    well_maintained, needs_attention = _split(items, lambda i: i.is_well_maintained)
    return Categorization(
        by_type=TypeCategories(original=original, forked=forked),
        by_activity=ActivityCategories(active=active, inactive=inactive),
        by_popularity=PopularityCategories(popular=popular, standard=standard),
        by_maintenance=MaintenanceCategories(well_maintained=well_maintained, needs_attention=needs_attention),
    )


def generate_statistics(items: Sequence[OwnedItem]) -> Statistics:
    return Statistics(
        total=len(items),
        total_stars=sum(i.stargazers_count for i in items),
        total_forks=sum(i.forks_count for i in items),
        total_watchers=sum(i.watchers_count for i in items),
        average_size=round_half_up(sum(i.size for i in items) / len(items)) if items else 0,
        language_count=len({i.language for i in items if i.language}),
    )
