"""Tests for the update proposer."""

from __future__ import annotations

import pytest

from forksync.engines.sync.errors import (
    DuplicateProposalError,
    NoRepositoryError,
    NotAForkError,
    RequestTimeoutError,
)
from forksync.engines.sync.models import ProposalRef, RepositoryRef
from forksync.engines.sync.proposer import build_intent, propose_update, render_update_body


def _fork() -> RepositoryRef:
    return RepositoryRef(
        owner="user",
        name="repo",
        full_name="user/repo",
        default_branch="master",
        is_fork=True,
        parent=RepositoryRef(
            owner="userParent", name="parent", full_name="userParent/parent",
            default_branch="master",
        ),
    )


class TestProposeUpdate:
    @pytest.mark.anyio
    async def test_not_a_fork(self, github):
        repo = RepositoryRef(owner="user", name="repo", full_name="user/repo", default_branch="master")
        with pytest.raises(NotAForkError, match="The repository user/repo isn't a fork."):
            await propose_update(github, repo, "pullRequestHeadSha")
        github.list_open_pulls.assert_not_awaited()

    @pytest.mark.anyio
    async def test_no_repository(self, github):
        with pytest.raises(NoRepositoryError, match="No repository found"):
            await propose_update(github, None, "pullRequestHeadSha")

    @pytest.mark.anyio
    async def test_existing_pull_request_is_not_duplicated(self, github):
        github.list_open_pulls.return_value = [ProposalRef(number=3, head_sha="pullRequestHeadSha")]

        with pytest.raises(DuplicateProposalError, match="already exists on user/repo") as info:
            await propose_update(github, _fork(), "pullRequestHeadSha")

        assert info.value.number == 3
        github.list_open_pulls.assert_awaited_once_with("user", "repo", "userParent:master")
        github.create_pull.assert_not_awaited()

    @pytest.mark.anyio
    async def test_creates_pull_request(self, github):
        github.list_open_pulls.return_value = [ProposalRef(number=3, head_sha="pullRequestHeadSha")]
        github.create_pull.return_value = ProposalRef(number=4, head_sha="aDifferentSha")

        outcome = await propose_update(github, _fork(), "aDifferentSha")

        assert outcome.kind == "created"
        assert outcome.proposal.number == 4
        intent = github.create_pull.await_args.args[0]
        assert intent.head == "userParent:master"
        assert intent.base_branch == "master"
        assert intent.upstream_sha == "aDifferentSha"
        kwargs = github.create_pull.await_args.kwargs
        assert kwargs["title"] == "Update from upstream repo userParent/parent"
        assert "`userParent/parent`" in kwargs["body"]

    @pytest.mark.anyio
    async def test_second_call_reports_duplicate(self, github):
        """Two deliveries of the same divergence leave exactly one open pull request."""
        open_pulls: list[ProposalRef] = []

        async def _list(owner, name, head):
            return list(open_pulls)

        async def _create(intent, *, title, body):
            pull = ProposalRef(number=len(open_pulls) + 1, head_sha=intent.upstream_sha)
            open_pulls.append(pull)
            return pull

        github.list_open_pulls.side_effect = _list
        github.create_pull.side_effect = _create

        first = await propose_update(github, _fork(), "upstreamSha")
        with pytest.raises(DuplicateProposalError):
            await propose_update(github, _fork(), "upstreamSha")

        assert first.kind == "created"
        assert len(open_pulls) == 1

    @pytest.mark.anyio
    async def test_explicit_upstream_replaces_parent(self, github):
        repo = RepositoryRef(owner="user", name="repo", full_name="user/repo", default_branch="master")
        upstream = RepositoryRef(
            owner="acme", name="widgets", full_name="acme/widgets", default_branch="trunk"
        )
        github.create_pull.return_value = ProposalRef(number=1, head_sha="x")

        await propose_update(github, repo, "x", upstream=upstream)

        github.list_open_pulls.assert_awaited_once_with("user", "repo", "acme:trunk")

    @pytest.mark.anyio
    async def test_create_timeout_is_not_retried(self, github):
        github.create_pull.side_effect = RequestTimeoutError("/repos/user/repo/pulls")

        with pytest.raises(RequestTimeoutError):
            await propose_update(github, _fork(), "sha")
        assert github.create_pull.await_count == 1


class TestTemplates:
    def test_build_intent(self):
        fork = _fork()
        intent = build_intent(fork, fork.parent, "abc")
        assert intent.owner_of_fork == "user"
        assert intent.fork_name == "repo"
        assert intent.head_owner == "userParent"
        assert intent.head == "userParent:master"

    def test_body_mentions_remote(self):
        body = render_update_body("acme/widgets")
        assert "The remote `acme/widgets` has some new changes" in body
        assert "I'm a bot" in body
