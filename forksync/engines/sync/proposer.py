"""Update proposer: open at most one pull request per upstream head."""

from __future__ import annotations

import structlog

from forksync.engines.sync.errors import DuplicateProposalError, NoRepositoryError, NotAForkError
from forksync.engines.sync.github_client import GitHubClient
from forksync.engines.sync.models import ProposalIntent, ProposalOutcome, RepositoryRef

log = structlog.get_logger("forksync.engine")


def render_update_body(upstream_full_name: str) -> str:
    """Pull request body explaining where the changes come from."""
    return f"""\
Hello!
The remote `{upstream_full_name}` has some new changes that aren't in this fork.

So, here they are, ready to be merged! :tada:

If this pull request can be merged without conflict, you can publish your software
with these new changes. Otherwise, if you have merge conflicts, this
is the place to fix them.

Have fun!
--------
Created by forksync. Oh yea, I'm a bot.
"""


def render_update_title(upstream_full_name: str) -> str:
    return f"Update from upstream repo {upstream_full_name}"


def build_intent(
    repo: RepositoryRef, upstream: RepositoryRef, upstream_sha: str
) -> ProposalIntent:
    return ProposalIntent(
        owner_of_fork=repo.owner,
        fork_name=repo.name,
        base_branch=repo.default_branch,
        head_owner=upstream.owner,
        head_branch=upstream.default_branch,
        upstream_sha=upstream_sha,
    )


async def propose_update(
    client: GitHubClient,
    repo: RepositoryRef | None,
    upstream_sha: str,
    *,
    upstream: RepositoryRef | None = None,
) -> ProposalOutcome:
    """Make sure one open pull request merges the upstream head into *repo*.

    *upstream* defaults to ``repo.parent``. Raises :class:`NoRepositoryError`
    when *repo* is missing, :class:`NotAForkError` when there is nothing to
    merge from, and :class:`DuplicateProposalError` when an open pull request
    already points at *upstream_sha*.
    """
    if repo is None:
        log.info("sync.no_repository")
        raise NoRepositoryError()

    source = upstream or repo.parent
    if source is None:
        log.info("sync.not_a_fork", repo=repo.full_name)
        raise NotAForkError(repo.full_name)

    intent = build_intent(repo, source, upstream_sha)

    # Repeated webhook deliveries for the same divergence must not stack up
    # pull requests, so this check runs before every create.
    existing = await client.list_open_pulls(intent.owner_of_fork, intent.fork_name, intent.head)
    duplicate = next((pull for pull in existing if pull.head_sha == upstream_sha), None)
    if duplicate is not None:
        log.info("sync.proposal_exists", repo=repo.full_name, number=duplicate.number)
        raise DuplicateProposalError(repo.full_name, duplicate.number)

    log.info("sync.proposal_creating", repo=repo.full_name, head=intent.head)
    proposal = await client.create_pull(
        intent,
        title=render_update_title(source.full_name),
        body=render_update_body(source.full_name),
    )
    log.info("sync.proposal_created", repo=repo.full_name, number=proposal.number)
    return ProposalOutcome(kind="created", proposal=proposal)
