"""Tests for narrowing raw GitHub payloads."""

from __future__ import annotations

import pytest

from repo_radar.errors import UpstreamError
from repo_radar.github import payloads


def _graphql_node(**overrides):
    node = {
        "id": "R_1",
        "name": "Hello-World",
        "nameWithOwner": "octocat/Hello-World",
        "description": "My first repository",
        "url": "https://github.com/octocat/Hello-World",
        "stargazerCount": 2500,
        "forkCount": 2000,
        "watchers": {"totalCount": 150},
        "primaryLanguage": {"name": "Python"},
        "repositoryTopics": {"nodes": [{"topic": {"name": "demo"}}, {"topic": {"name": "git"}}]},
        "createdAt": "2011-01-26T19:01:12Z",
        "updatedAt": "2024-06-01T00:00:00Z",
        "pushedAt": "2024-05-30T00:00:00Z",
        "isArchived": False,
        "isPrivate": False,
        "owner": {"__typename": "Organization", "login": "octocat", "avatarUrl": "https://a"},
        "licenseInfo": {"name": "MIT License", "key": "mit"},
        "releases": {"totalCount": 3},
        "issues": {"totalCount": 10},
        "closedIssues": {"totalCount": 40},
        "pullRequests": {"totalCount": 2},
        "closedPullRequests": {"totalCount": 5},
        "mergedPullRequests": {"totalCount": 20},
        "defaultBranchRef": {
            "target": {"history": {"totalCount": 900}, "historyLastMonth": {"totalCount": 12}}
        },
    }
    node.update(overrides)
    return node


def test_repository_from_graphql():
    repo = payloads.repository_from_graphql(_graphql_node())
    assert repo.id == "R_1"
    assert repo.full_name == "octocat/Hello-World"
    assert repo.owner.login == "octocat"
    assert repo.owner.type == "Organization"
    assert repo.topics == ("demo", "git")
    assert repo.language == "Python"
    assert repo.license.key == "mit"
    assert repo.stars == 2500
    assert repo.watchers == 150


def test_repository_from_graphql_optional_fields_absent():
    repo = payloads.repository_from_graphql(
        _graphql_node(primaryLanguage=None, licenseInfo=None, repositoryTopics=None, description=None)
    )
    assert repo.language is None
    assert repo.license is None
    assert repo.topics == ()
    assert repo.description is None


def test_repository_from_graphql_missing_required_field():
    node = _graphql_node()
    del node["nameWithOwner"]
    with pytest.raises(UpstreamError, match="nameWithOwner"):
        payloads.repository_from_graphql(node)


def test_counts_from_graphql():
    releases, issues, prs, commits = payloads.counts_from_graphql(_graphql_node())
    assert releases == 3
    assert (issues.open, issues.closed) == (10, 40)
    assert (prs.open, prs.closed, prs.merged) == (2, 5, 20)
    assert (commits.total, commits.last_month) == (900, 12)


def test_counts_from_graphql_without_default_branch():
    _, _, _, commits = payloads.counts_from_graphql(_graphql_node(defaultBranchRef=None))
    assert commits.total == 0
    assert commits.last_month == 0


def test_repository_from_rest():
    repo = payloads.repository_from_rest(
        {
            "id": 1296269,
            "name": "Hello-World",
            "full_name": "octocat/Hello-World",
            "owner": {"login": "octocat", "type": "User"},
            "html_url": "https://github.com/octocat/Hello-World",
            "topics": ["demo"],
            "language": None,
            "license": None,
            "stargazers_count": 80,
            "forks_count": 9,
            "archived": True,
        }
    )
    assert repo.id == "1296269"
    assert repo.url == "https://github.com/octocat/Hello-World"
    assert repo.topics == ("demo",)
    assert repo.language is None
    assert repo.license is None
    assert repo.is_archived is True


def test_search_result_skips_non_repository_nodes():
    result = payloads.search_result_from_graphql(
        {
            "search": {
                "repositoryCount": 42,
                "pageInfo": {"hasNextPage": True, "endCursor": "Y3Vyc29y"},
                "nodes": [_graphql_node(), {}],
            }
        }
    )
    assert len(result.repositories) == 1
    assert result.total_count == 42
    assert result.has_next_page is True
    assert result.end_cursor == "Y3Vyc29y"


def test_contributor_without_login_is_skipped():
    assert payloads.contributor_from_rest({"type": "Anonymous", "contributions": 5}) is None
    contributor = payloads.contributor_from_rest({"login": "alice", "contributions": 5})
    assert contributor.login == "alice"
    assert contributor.contributions == 5


def test_commit_from_rest():
    commit = payloads.commit_from_rest(
        {
            "sha": "abc123",
            "author": {"login": "alice"},
            "commit": {"author": {"name": "Alice", "email": "a@x.io", "date": "2024-06-03T10:30:00Z"}},
        }
    )
    assert commit.sha == "abc123"
    assert commit.author_login == "alice"
    assert commit.author_name == "Alice"


def test_commit_without_linked_account():
    commit = payloads.commit_from_rest(
        {"sha": "abc", "author": None, "commit": {"author": {"date": "2024-06-03T10:30:00Z"}}}
    )
    assert commit.author_login is None


def test_commit_without_date_is_skipped():
    assert payloads.commit_from_rest({"sha": "abc", "commit": {}}) is None


def test_star_and_weekly_activity():
    assert payloads.star_event_from_rest({"starred_at": "2024-01-01T00:00:00Z"}).starred_at
    assert payloads.star_event_from_rest({"user": {}}) is None
    week = payloads.weekly_activity_from_rest({"week": 1717200000, "total": 7, "days": []})
    assert week.week_start == 1717200000
    assert week.total == 7


def test_language_bytes_from_rest():
    assert payloads.language_bytes_from_rest({"Python": 100, "Shell": 5}) == {
        "Python": 100,
        "Shell": 5,
    }
    assert payloads.language_bytes_from_rest([]) == {}
