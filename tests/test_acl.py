import unittest
from datetime import datetime, timezone

from github_explorer.application.fetch_owned_items_service import DEFAULT_OPTIONS, FetchOwnedItemsService
from github_explorer.domain.exceptions import ValidationError
from github_explorer.infrastructure.acl import GitHubTranslator


def _repo(**overrides) -> dict:
    raw = {
        "id": 1296269,
        "name": "Hello-World",
        "full_name": "octocat/Hello-World",
        "html_url": "https://github.com/octocat/Hello-World",
        "description": "My first repo",
        "language": "Python",
        "stargazers_count": 80,
        "forks_count": 9,
        "watchers_count": 80,
        "size": 108,
        "default_branch": "master",
        "private": False,
        "fork": False,
        "has_issues": True,
        "has_wiki": True,
        "created_at": "2011-01-26T19:01:12Z",
        "pushed_at": "2011-01-26T19:06:43Z",
        "owner": {"login": "octocat"},
    }
    raw.update(overrides)
    return raw


class TestAccountTranslation(unittest.TestCase):
    def test_to_account_parses_fields(self) -> None:
        raw = {
            "id": 583231,
            "login": "octocat",
            "name": "The Octocat",
            "blog": "github.blog",
            "company": "",
            "followers": 100,
            "public_repos": 8,
            "created_at": "2011-01-25T18:44:36Z",
        }

        account = GitHubTranslator.to_account(raw)

        self.assertEqual(account.login, "octocat")
        self.assertEqual(account.blog, "https://github.blog")
        self.assertIsNone(account.company)
        self.assertEqual(account.engagement_score, 72)
        self.assertEqual(account.created_at, datetime(2011, 1, 25, 18, 44, 36, tzinfo=timezone.utc))

    def test_missing_login_raises(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            GitHubTranslator.to_account({"id": 1})

        self.assertEqual(ctx.exception.field, "login")

    def test_non_string_login_raises(self) -> None:
        with self.assertRaises(ValidationError):
            GitHubTranslator.to_account({"id": 1, "login": 42})

    def test_non_dict_payload_raises(self) -> None:
        with self.assertRaises(ValidationError):
            GitHubTranslator.to_account(["octocat"])

    def test_negative_counts_are_clamped(self) -> None:
        account = GitHubTranslator.to_account({"id": 1, "login": "x", "followers": -3, "following": None})

        self.assertEqual(account.followers, 0)
        self.assertEqual(account.following, 0)


class TestOwnedItemTranslation(unittest.TestCase):
    def test_to_owned_item_parses_fields(self) -> None:
        item = GitHubTranslator.to_owned_item(_repo())

        self.assertEqual(item.full_name, "octocat/Hello-World")
        self.assertEqual(item.owner, "octocat")
        self.assertEqual(item.default_branch, "master")
        self.assertTrue(item.has_issues)
        self.assertFalse(item.is_fork)
        self.assertEqual(item.popularity_score, 80 * 3 + 9 * 2 + 80)

    def test_negative_stars_clamp_to_zero(self) -> None:
        item = GitHubTranslator.to_owned_item(_repo(stargazers_count=-5))

        self.assertEqual(item.stargazers_count, 0)
        self.assertFalse(item.is_popular)

    def test_unparsable_timestamp_becomes_none(self) -> None:
        item = GitHubTranslator.to_owned_item(_repo(created_at="not-a-date", pushed_at=12))

        self.assertIsNone(item.created_at)
        self.assertIsNone(item.pushed_at)
        self.assertIsNone(item.age_in_days)
        self.assertFalse(item.is_new)

    def test_missing_required_field_raises(self) -> None:
        for field in ("id", "name", "full_name", "html_url"):
            raw = _repo()
            del raw[field]
            with self.subTest(field=field):
                with self.assertRaises(ValidationError) as ctx:
                    GitHubTranslator.to_owned_item(raw)
                self.assertEqual(ctx.exception.field, field)

    def test_missing_default_branch_defaults_to_main(self) -> None:
        item = GitHubTranslator.to_owned_item(_repo(default_branch=None))

        self.assertEqual(item.default_branch, "main")


class TestCacheRestoration(unittest.TestCase):
    def test_account_from_cache_restores_equal_account(self) -> None:
        account = GitHubTranslator.to_account({"id": 1, "login": "octocat", "blog": "github.blog"})

        restored = GitHubTranslator.account_from_cache(account.model_dump_json())

        self.assertEqual(restored, account)
        self.assertEqual(restored.blog, "https://github.blog")

    def test_owned_items_from_cache_restores_items(self) -> None:
        item = GitHubTranslator.to_owned_item(_repo())
        result = FetchOwnedItemsService.process([item], DEFAULT_OPTIONS)

        restored = GitHubTranslator.owned_items_from_cache(result.model_dump_json())

        self.assertEqual(restored.items, [item])
        self.assertEqual(restored.analytics.languages.most_used, "Python")

    def test_corrupt_cache_entry_raises_validation_error(self) -> None:
        for restore in (
            GitHubTranslator.account_from_cache,
            GitHubTranslator.owned_items_from_cache,
            GitHubTranslator.search_result_from_cache,
        ):
            with self.subTest(restore=restore.__name__):
                with self.assertRaises(ValidationError) as ctx:
                    restore("not json")
                self.assertEqual(ctx.exception.field, "cache")
