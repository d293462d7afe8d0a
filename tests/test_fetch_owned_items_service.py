import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

from github_explorer.application.fetch_owned_items_service import FetchOwnedItemsService
from github_explorer.domain.exceptions import TransportError, ValidationError
from github_explorer.infrastructure.cache import MemoryCache
from github_explorer.infrastructure.github_gateway import GitHubAccountGateway
from github_explorer.infrastructure.http_client import HttpResponse


def _days_ago(days: int) -> str:
    return (datetime.now(timezone.utc) - timedelta(days=days)).strftime("%Y-%m-%dT%H:%M:%SZ")


def _repo(id: int, name: str, **overrides) -> dict:
    raw = {
        "id": id,
        "name": name,
        "full_name": f"octocat/{name}",
        "html_url": f"https://github.com/octocat/{name}",
        "language": "Python",
        "stargazers_count": 0,
        "forks_count": 0,
        "watchers_count": 0,
        "size": 100,
        "fork": False,
        "created_at": _days_ago(400),
        "pushed_at": _days_ago(200),
        "owner": {"login": "octocat"},
    }
    raw.update(overrides)
    return raw


REPOS = [
    _repo(1, "alpha", stargazers_count=150, forks_count=10, pushed_at=_days_ago(2), has_issues=True, has_wiki=True),
    _repo(2, "beta", language="Go", stargazers_count=5, fork=True),
    _repo(3, "gamma", language=None, stargazers_count=40, pushed_at=_days_ago(5)),
    _repo(4, "Delta", language="JavaScript", fork=True, created_at=_days_ago(3)),
    _repo(5, "epsilon", stargazers_count=2, size=900),
]


def _service(*results, cache=None):
    transport = MagicMock()
    transport.get = AsyncMock(side_effect=list(results))
    gateway = GitHubAccountGateway(transport, cache if cache is not None else MemoryCache())
    return FetchOwnedItemsService(gateway), transport


def _ok(data) -> HttpResponse:
    return HttpResponse(status=200, data=data)


class TestFiltering(unittest.IsolatedAsyncioTestCase):
    async def test_fork_filter_keeps_categorization_of_full_set(self) -> None:
        service, _ = _service(_ok(REPOS))

        result = await service.execute("octocat", type="fork")

        self.assertEqual([i.name for i in result.items], ["beta", "Delta"])
        self.assertEqual(result.filtered_count, 2)
        self.assertEqual(result.total_count, 5)
        self.assertEqual(len(result.categorization.by_type.original), 3)
        self.assertEqual(len(result.categorization.by_type.forked), 2)
        self.assertEqual(result.analytics.overview.total, 5)

    async def test_source_language_and_min_stars_filters(self) -> None:
        service, _ = _service(_ok(REPOS), _ok(REPOS), _ok(REPOS))

        source = await service.execute("octocat", type="source")
        python = await service.execute("octocat", language="PYTHON")
        starred = await service.execute("octocat", min_stars=5)

        self.assertEqual([i.name for i in source.items], ["alpha", "gamma", "epsilon"])
        self.assertEqual([i.name for i in python.items], ["alpha", "epsilon"])
        self.assertEqual([i.name for i in starred.items], ["alpha", "beta", "gamma"])

    async def test_active_only(self) -> None:
        service, _ = _service(_ok(REPOS))

        result = await service.execute("octocat", active_only=True)

        self.assertEqual([i.name for i in result.items], ["alpha", "gamma"])


class TestSorting(unittest.IsolatedAsyncioTestCase):
    async def test_custom_sorts(self) -> None:
        expected = {
            "stars": ["alpha", "gamma", "beta", "epsilon", "Delta"],
            "size": ["epsilon", "alpha", "beta", "gamma", "Delta"],
            "name": ["alpha", "beta", "Delta", "epsilon", "gamma"],
            "language": ["beta", "Delta", "alpha", "epsilon", "gamma"],
        }
        for custom_sort, names in expected.items():
            service, _ = _service(_ok(REPOS))
            with self.subTest(custom_sort=custom_sort):
                result = await service.execute("octocat", custom_sort=custom_sort)
                self.assertEqual([i.name for i in result.items], names)

    async def test_no_custom_sort_keeps_remote_order(self) -> None:
        service, _ = _service(_ok(REPOS))

        result = await service.execute("octocat")

        self.assertEqual([i.name for i in result.items], ["alpha", "beta", "gamma", "Delta", "epsilon"])


class TestAnalytics(unittest.IsolatedAsyncioTestCase):
    async def test_empty_set_has_no_analytics(self) -> None:
        service, _ = _service(_ok([]))

        result = await service.execute("octocat")

        self.assertIsNone(result.analytics)
        self.assertEqual(result.items, [])
        self.assertEqual(result.statistics.total, 0)
        self.assertEqual(result.statistics.average_size, 0)
        self.assertFalse(result.pagination.has_more)

    async def test_analytics_over_full_set(self) -> None:
        service, _ = _service(_ok(REPOS))

        result = await service.execute("octocat", type="fork")
        analytics = result.analytics

        self.assertEqual(analytics.overview.forked, 2)
        self.assertEqual(analytics.overview.original, 3)
        self.assertEqual(analytics.languages.most_used, "Python")
        self.assertEqual(analytics.languages.total, 3)
        self.assertEqual(analytics.activity.active, 2)
        self.assertEqual(analytics.activity.new, 1)
        self.assertEqual(analytics.activity.activity_percentage, 40)
        self.assertEqual(analytics.popularity.total_stars, 197)
        self.assertEqual(analytics.popularity.popular_count, 1)
        self.assertEqual([t.name for t in analytics.popularity.top_items], ["alpha", "gamma", "beta", "epsilon"])
        self.assertEqual(result.statistics.language_count, 3)

    async def test_language_percentages_cover_items_with_a_language(self) -> None:
        service, _ = _service(_ok([r for r in REPOS if r["language"]]))

        result = await service.execute("octocat")

        shares = result.analytics.languages.distribution
        self.assertEqual([s.language for s in shares], ["Python", "Go", "JavaScript"])
        self.assertEqual(sum(s.percentage for s in shares), 100)

    async def test_distribution_keeps_every_language_beyond_the_top_ten(self) -> None:
        repos = [_repo(n, f"repo-{n}", language=f"Lang{n}") for n in range(1, 21)]
        service, _ = _service(_ok(repos))

        result = await service.execute("octocat", per_page=100)

        languages = result.analytics.languages
        self.assertEqual(languages.total, 20)
        self.assertEqual(len(languages.distribution), 20)
        self.assertEqual(len(languages.top_languages), 10)
        self.assertAlmostEqual(sum(s.percentage for s in languages.distribution), 100, delta=2)

    async def test_include_analytics_false(self) -> None:
        service, _ = _service(_ok(REPOS))

        result = await service.execute("octocat", include_analytics=False)

        self.assertIsNone(result.analytics)
        self.assertEqual(result.statistics.total, 5)

    async def test_has_more_when_page_is_full(self) -> None:
        service, _ = _service(_ok(REPOS))

        result = await service.execute("octocat", per_page=5, type="fork")

        self.assertTrue(result.pagination.has_more)
        self.assertEqual(result.pagination.per_page, 5)


class TestOptions(unittest.IsolatedAsyncioTestCase):
    async def test_invalid_options_never_touch_the_network(self) -> None:
        invalid = [
            {"page": 0},
            {"per_page": 101},
            {"per_page": "10"},
            {"sort": "stars"},
            {"direction": "up"},
            {"type": "mirror"},
            {"min_stars": -1},
            {"custom_sort": "age"},
            {"colour": "blue"},
        ]
        for options in invalid:
            service, transport = _service()
            with self.subTest(options=options):
                with self.assertRaises(ValidationError):
                    await service.execute("octocat", **options)
                transport.get.assert_not_called()

    async def test_invalid_login_is_reported_before_options(self) -> None:
        service, _ = _service()

        with self.assertRaises(ValidationError) as ctx:
            await service.execute("-bad-", colour="blue")

        self.assertEqual(ctx.exception.field, "login")

    async def test_remote_parameters_are_forwarded(self) -> None:
        service, transport = _service(_ok([]))

        await service.execute(" OctoCat ", page=3, per_page=10, sort="pushed", direction="asc")

        transport.get.assert_awaited_once_with(
            "/users/octocat/repos",
            params={"page": 3, "per_page": 10, "sort": "pushed", "direction": "asc"},
        )


class TestCacheAside(unittest.IsolatedAsyncioTestCase):
    async def test_second_call_is_served_from_cache(self) -> None:
        service, transport = _service(_ok(REPOS), _ok(REPOS))

        first = await service.execute("octocat", language="python")
        second = await service.execute("OctoCat", language="Python")

        self.assertFalse(first.from_cache)
        self.assertTrue(second.from_cache)
        self.assertEqual(first.items, second.items)
        self.assertEqual(transport.get.await_count, 1)

    async def test_different_filters_use_different_entries(self) -> None:
        service, transport = _service(_ok(REPOS), _ok(REPOS))

        await service.execute("octocat", type="fork")
        result = await service.execute("octocat", type="source")

        self.assertFalse(result.from_cache)
        self.assertEqual(transport.get.await_count, 2)

    async def test_force_refresh_bypasses_cache(self) -> None:
        service, transport = _service(_ok(REPOS), _ok(REPOS))

        await service.execute("octocat")
        result = await service.execute("octocat", force_refresh=True)

        self.assertFalse(result.from_cache)
        self.assertEqual(transport.get.await_count, 2)

    def test_cache_scope_normalizes_filters(self) -> None:
        scope = FetchOwnedItemsService.cache_scope({
            "page": 1, "per_page": 30, "sort": "updated", "direction": "desc",
            "language": "Python", "type": None, "min_stars": None,
            "active_only": False, "custom_sort": None, "include_analytics": True,
        })

        self.assertEqual(scope["language"], "python")
        self.assertEqual(scope["type"], "all")


class TestErrors(unittest.IsolatedAsyncioTestCase):
    async def test_transport_error_propagates(self) -> None:
        original = TransportError("Network error: reset")
        service, _ = _service(original)

        with self.assertRaises(TransportError) as ctx:
            await service.execute("octocat")

        self.assertIs(ctx.exception, original)

    async def test_unexpected_error_is_wrapped(self) -> None:
        gateway = MagicMock()
        gateway.get_cached_owned_items.return_value = None
        gateway.find_owned_items = AsyncMock(side_effect=RuntimeError("boom"))
        service = FetchOwnedItemsService(gateway)

        with self.assertRaises(TransportError) as ctx:
            await service.execute("octocat")

        self.assertIn("octocat", str(ctx.exception))
        self.assertIsInstance(ctx.exception.cause, RuntimeError)
