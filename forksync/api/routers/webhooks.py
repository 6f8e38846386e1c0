"""Webhook router: picks the single-fork pipeline or the fork fan-out."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Query

from forksync.api.deps import get_sync_pipeline, get_sync_runner
from forksync.api.schemas.webhook import (
    FanOutFailure,
    FanOutResponse,
    FanOutSummaryBody,
    SyncResponse,
    WebhookEvent,
)
from forksync.engines.sync.models import PipelineOutcome
from forksync.engines.sync.pipeline import SyncPipeline
from forksync.engines.sync.runner import SyncRunner

log = structlog.get_logger("forksync.api")

router = APIRouter()

_NOTHING_TO_DO = "Thanks anyway, but the user either opted out or this isn't an important event."


def describe_outcome(outcome: PipelineOutcome) -> str:
    if outcome.kind == "proposal_created":
        number = f" #{outcome.proposal.number}" if outcome.proposal else ""
        return f"Opened pull request{number} on {outcome.repo}."
    if outcome.kind == "proposal_already_exists":
        return f"A pull request already exists on {outcome.repo}."
    if outcome.kind == "not_diverged":
        return f"{outcome.repo} is up to date with its upstream."
    if outcome.kind == "skipped":
        return _NOTHING_TO_DO
    return outcome.reason or "failed"


@router.post("/", response_model=SyncResponse | FanOutResponse)
async def receive_event(
    event: WebhookEvent,
    upstream: str | None = Query(None),
    pipeline: SyncPipeline = Depends(get_sync_pipeline),
    runner: SyncRunner = Depends(get_sync_runner),
) -> SyncResponse | FanOutResponse:
    repo = event.repository.to_ref()
    branch = repo.default_branch

    # the repo is a fork, or the caller named an upstream to merge from
    if repo.is_fork or upstream:
        log.info(
            "webhook.single",
            source=f"{upstream or 'upstream'}@{branch}",
            target=f"{repo.full_name}@{branch}",
        )
        outcome = await pipeline.run(repo.owner, repo.name, upstream=upstream)
        if outcome.kind == "failed" and outcome.error is not None:
            raise outcome.error
        return SyncResponse(
            outcome=outcome.kind,
            detail=describe_outcome(outcome),
            pull_request=outcome.proposal.number if outcome.proposal else None,
        )

    log.info("webhook.fan_out", source=f"{repo.full_name}@{branch}", target=f"all forks@{branch}")
    summary = await runner.fan_out(repo)
    return FanOutResponse(
        detail=summary.detail,
        summary=FanOutSummaryBody(
            attempted=summary.attempted,
            created=summary.created,
            failures=[
                FanOutFailure(fork=fork, kind=error.kind, message=str(error))
                for fork, error in summary.failures
            ],
        ),
    )
