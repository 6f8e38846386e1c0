"""Shared fixtures for forksync tests. No network access is needed."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from forksync.engines.sync.errors import NotFoundError
from forksync.engines.sync.github_client import GitHubClient
from forksync.engines.sync.models import BranchHead, RepositoryRef


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
def parent_repo() -> RepositoryRef:
    return RepositoryRef(
        owner="parent",
        name="upstream_repo",
        full_name="parent/upstream_repo",
        default_branch="master",
    )


@pytest.fixture
def fork_repo(parent_repo: RepositoryRef) -> RepositoryRef:
    return RepositoryRef(
        owner="user",
        name="repo",
        full_name="user/repo",
        default_branch="master",
        is_fork=True,
        parent=parent_repo,
    )


@pytest.fixture
def github() -> AsyncMock:
    """A GitHubClient double with no opt-out and no open pull requests.

    Tests configure ``repos`` (full_name → RepositoryRef) and ``heads``
    (``owner/name@branch`` → sha) on the returned mock.
    """
    client = AsyncMock(spec=GitHubClient)
    client.repos = {}
    client.heads = {}

    async def _get_repository(owner, name):
        try:
            return client.repos[f"{owner}/{name}"]
        except KeyError:
            raise NotFoundError(f"/repos/{owner}/{name}: 404 Not Found") from None

    async def _get_branch(owner, name, branch):
        try:
            return BranchHead(sha=client.heads[f"{owner}/{name}@{branch}"])
        except KeyError:
            raise NotFoundError(f"/repos/{owner}/{name}/branches/{branch}: 404") from None

    client.get_repository = AsyncMock(side_effect=_get_repository)
    client.get_branch = AsyncMock(side_effect=_get_branch)
    client.search_issues = AsyncMock(return_value=0)
    client.list_open_pulls = AsyncMock(return_value=[])
    return client
