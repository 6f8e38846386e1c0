"""Single-fork pipeline: opt-out check → divergence check → proposal."""

from __future__ import annotations

import structlog

from forksync.core.github import short_sha
from forksync.engines.sync.divergence import detect_divergence
from forksync.engines.sync.errors import DuplicateProposalError, SyncError
from forksync.engines.sync.github_client import GitHubClient
from forksync.engines.sync.models import PipelineOutcome
from forksync.engines.sync.optout import DEFAULT_OPTOUT_LABEL, has_opted_out
from forksync.engines.sync.proposer import propose_update

log = structlog.get_logger("forksync.engine")


class SyncPipeline:
    """Run the sync decision for one repository.

    Steps are strictly sequential because each may short-circuit the rest.
    Every :class:`SyncError` ends the run as a ``failed`` outcome; nothing
    raised by a step escapes :meth:`run`.
    """

    def __init__(self, client: GitHubClient, *, optout_label: str = DEFAULT_OPTOUT_LABEL) -> None:
        self._client = client
        self._optout_label = optout_label

    async def run(self, owner: str, name: str, *, upstream: str | None = None) -> PipelineOutcome:
        full_name = f"{owner}/{name}"
        bound = log.bind(repo=full_name, upstream=upstream)
        try:
            if await has_opted_out(self._client, owner, name, label=self._optout_label):
                bound.info("sync.opted_out")
                return PipelineOutcome.skipped(full_name, "repository opted out")

            result = await detect_divergence(self._client, owner, name, upstream=upstream)
            if not result.diverged:
                bound.info("sync.not_diverged", sha=short_sha(result.base_sha))
                return PipelineOutcome(kind="not_diverged", repo=full_name)

            bound.info(
                "sync.diverged",
                base_sha=short_sha(result.base_sha),
                upstream_sha=short_sha(result.upstream_sha),
            )
            # A fork's own parent is the default source; only an override
            # needs to be handed through explicitly.
            outcome = await propose_update(
                self._client,
                result.repo,
                result.upstream_sha,
                upstream=result.upstream if upstream else None,
            )
            return PipelineOutcome(
                kind="proposal_created", repo=full_name, proposal=outcome.proposal
            )
        except DuplicateProposalError as exc:
            return PipelineOutcome(
                kind="proposal_already_exists", repo=full_name, reason=str(exc)
            )
        except SyncError as exc:
            bound.warning("sync.failed", kind=exc.kind, error=str(exc))
            return PipelineOutcome.failed(full_name, exc)
