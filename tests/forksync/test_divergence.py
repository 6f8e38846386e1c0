"""Tests for divergence detection."""

from __future__ import annotations

import asyncio

import pytest

from forksync.engines.sync.divergence import detect_divergence
from forksync.engines.sync.errors import NotAForkError, NotFoundError
from forksync.engines.sync.models import BranchHead, RepositoryRef


class TestDetectDivergence:
    @pytest.mark.anyio
    async def test_diverged(self, github, fork_repo):
        github.repos["user/repo"] = fork_repo
        github.heads["user/repo@master"] = "forkRepoCommitSha"
        github.heads["parent/upstream_repo@master"] = "upstreamRepoCommitSha"

        result = await detect_divergence(github, "user", "repo")

        assert result.diverged is True
        assert result.base_sha == "forkRepoCommitSha"
        assert result.upstream_sha == "upstreamRepoCommitSha"
        assert result.repo is fork_repo
        assert result.upstream is fork_repo.parent

    @pytest.mark.anyio
    async def test_not_diverged(self, github, fork_repo):
        github.repos["user/repo"] = fork_repo
        github.heads["user/repo@master"] = "commonSha"
        github.heads["parent/upstream_repo@master"] = "commonSha"

        result = await detect_divergence(github, "user", "repo")

        assert result.diverged is False
        assert result.base_sha == "commonSha"
        assert result.upstream_sha == "commonSha"

    @pytest.mark.anyio
    async def test_uses_each_default_branch(self, github):
        github.repos["user/repo"] = RepositoryRef(
            owner="user",
            name="repo",
            full_name="user/repo",
            default_branch="develop",
            is_fork=True,
            parent=RepositoryRef(
                owner="parent", name="upstream_repo", full_name="parent/upstream_repo",
                default_branch="main",
            ),
        )
        github.heads["user/repo@develop"] = "a"
        github.heads["parent/upstream_repo@main"] = "b"

        result = await detect_divergence(github, "user", "repo")

        assert result.diverged is True
        branches = {call.args[2] for call in github.get_branch.await_args_list}
        assert branches == {"develop", "main"}

    @pytest.mark.anyio
    async def test_not_a_fork(self, github):
        github.repos["user/repo"] = RepositoryRef(
            owner="user", name="repo", full_name="user/repo", default_branch="master"
        )
        with pytest.raises(NotAForkError, match="user/repo isn't a fork"):
            await detect_divergence(github, "user", "repo")
        github.get_branch.assert_not_awaited()

    @pytest.mark.anyio
    async def test_override_fetches_override_repository(self, github):
        github.repos["user/repo"] = RepositoryRef(
            owner="user", name="repo", full_name="user/repo", default_branch="master"
        )
        github.repos["acme/widgets"] = RepositoryRef(
            owner="acme", name="widgets", full_name="acme/widgets", default_branch="trunk"
        )
        github.heads["user/repo@master"] = "a"
        github.heads["acme/widgets@trunk"] = "b"

        result = await detect_divergence(github, "user", "repo", upstream="acme/widgets")

        assert result.diverged is True
        assert result.upstream.full_name == "acme/widgets"

    @pytest.mark.anyio
    async def test_branch_fetches_run_concurrently(self, github, fork_repo):
        github.repos["user/repo"] = fork_repo
        in_flight = 0
        peak = 0

        async def _slow_branch(owner, name, branch):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return BranchHead(sha=f"{owner}-sha")

        github.get_branch.side_effect = _slow_branch
        await detect_divergence(github, "user", "repo")
        assert peak == 2

    @pytest.mark.anyio
    async def test_branch_failure_fails_detection(self, github, fork_repo):
        github.repos["user/repo"] = fork_repo

        async def _get_branch(owner, name, branch):
            if owner == "parent":
                raise NotFoundError("branch gone")
            return BranchHead(sha="a")

        github.get_branch.side_effect = _get_branch
        with pytest.raises(NotFoundError):
            await detect_divergence(github, "user", "repo")

    @pytest.mark.anyio
    async def test_malformed_override_on_non_fork(self, github):
        github.repos["user/repo"] = RepositoryRef(
            owner="user", name="repo", full_name="user/repo", default_branch="master"
        )
        with pytest.raises(NotAForkError, match="user/repo isn't a fork"):
            await detect_divergence(github, "user", "repo", upstream="bogus")
        github.get_branch.assert_not_awaited()

    @pytest.mark.anyio
    async def test_malformed_override_on_fork_uses_parent(self, github, fork_repo):
        github.repos["user/repo"] = fork_repo
        github.heads["user/repo@master"] = "a"
        github.heads["parent/upstream_repo@master"] = "b"

        result = await detect_divergence(github, "user", "repo", upstream="bogus")

        assert result.upstream is fork_repo.parent
        assert result.diverged is True
