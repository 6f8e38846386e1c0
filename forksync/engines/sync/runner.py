"""SyncRunner: fans the single-fork pipeline out over every fork of a repository."""

from __future__ import annotations

import asyncio

import structlog

from forksync.engines.sync.errors import SyncError
from forksync.engines.sync.github_client import GitHubClient
from forksync.engines.sync.models import FanOutSummary, PipelineOutcome, RepositoryRef
from forksync.engines.sync.pipeline import SyncPipeline

log = structlog.get_logger("forksync.engine")

_MAX_CONCURRENCY = 5


class SyncRunner:
    """Orchestration layer: enumerate forks → bounded concurrent pipelines."""

    def __init__(
        self,
        client: GitHubClient,
        pipeline: SyncPipeline,
        *,
        concurrency: int = _MAX_CONCURRENCY,
        max_fork_pages: int = 10,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self._client = client
        self._pipeline = pipeline
        self._concurrency = concurrency
        self._max_fork_pages = max_fork_pages

    async def run_one(
        self, owner: str, name: str, *, upstream: str | None = None
    ) -> PipelineOutcome:
        """Run the pipeline for a single fork."""
        return await self._pipeline.run(owner, name, upstream=upstream)

    async def fan_out(self, repo: RepositoryRef, *, upstream: str | None = None) -> FanOutSummary:
        """Sync every fork of *repo* with bounded concurrency.

        Only a failure to enumerate the forks propagates; every per-fork
        failure is recorded in the summary and siblings keep running.
        """
        forks = [
            fork
            async for fork in self._client.list_forks(
                repo.owner, repo.name, max_pages=self._max_fork_pages
            )
        ]
        log.info("sync.fan_out", repo=repo.full_name, forks=len(forks))

        summary = FanOutSummary(repo=repo.full_name)
        if not forks:
            return summary

        sem = asyncio.Semaphore(self._concurrency)

        async def _run_one(fork: RepositoryRef) -> PipelineOutcome:
            async with sem:
                try:
                    return await self.run_one(fork.owner, fork.name, upstream=upstream)
                except Exception as exc:
                    log.error("sync.fork_crashed", fork=fork.full_name, error=str(exc))
                    error = exc if isinstance(exc, SyncError) else SyncError(str(exc))
                    return PipelineOutcome.failed(fork.full_name, error)

        outcomes = await asyncio.gather(*(_run_one(fork) for fork in forks))

        summary.attempted = len(forks)
        for outcome in outcomes:
            summary.outcomes.append(outcome)
            if outcome.kind == "proposal_created":
                summary.created += 1
            elif outcome.kind == "failed" and outcome.error is not None:
                summary.failures.append((outcome.repo, outcome.error))

        log.info(
            "sync.fan_out_done",
            repo=repo.full_name,
            attempted=summary.attempted,
            created=summary.created,
            failed=len(summary.failures),
        )
        return summary
