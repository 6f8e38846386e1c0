"""Divergence detection: compare a fork's default branch with its upstream's."""

from __future__ import annotations

import asyncio

import structlog

from forksync.core.github import short_sha, split_full_name
from forksync.engines.sync.errors import NotAForkError
from forksync.engines.sync.github_client import GitHubClient
from forksync.engines.sync.models import DivergenceResult, RepositoryRef
from forksync.engines.sync.upstream import resolve_upstream

log = structlog.get_logger("forksync.engine")


async def detect_divergence(
    client: GitHubClient,
    owner: str,
    name: str,
    *,
    upstream: str | None = None,
) -> DivergenceResult:
    """Fetch ``owner/name`` and report whether it has diverged from its upstream.

    Without an *upstream* override the repository must be a fork, otherwise
    :class:`NotAForkError` is raised. Both branch heads are fetched
    concurrently; if either request fails the whole detection fails.
    """
    repo = await client.get_repository(owner, name)
    upstream_repo = await _upstream_repository(client, repo, upstream)

    base, head = await asyncio.gather(
        client.get_branch(repo.owner, repo.name, repo.default_branch),
        client.get_branch(upstream_repo.owner, upstream_repo.name, upstream_repo.default_branch),
    )

    result = DivergenceResult(
        repo=repo,
        upstream=upstream_repo,
        diverged=base.sha != head.sha,
        base_sha=base.sha,
        upstream_sha=head.sha,
    )
    log.debug(
        "sync.compared",
        repo=repo.full_name,
        upstream=upstream_repo.full_name,
        base_sha=short_sha(base.sha),
        upstream_sha=short_sha(head.sha),
        diverged=result.diverged,
    )
    return result


async def _upstream_repository(
    client: GitHubClient, repo: RepositoryRef, override: str | None
) -> RepositoryRef:
    if split_full_name(override) is None and repo.parent is None:
        raise NotAForkError(repo.full_name)

    target = resolve_upstream(repo, override)
    # The parent object embedded in the repository payload already carries
    # the default branch, so only an override needs another round trip.
    if repo.parent is not None and (repo.parent.owner, repo.parent.name) == (
        target.owner,
        target.name,
    ):
        return repo.parent
    if (repo.owner, repo.name) == (target.owner, target.name):
        return repo
    return await client.get_repository(target.owner, target.name)
