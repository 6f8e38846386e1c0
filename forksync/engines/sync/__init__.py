"""Sync engine: fork/upstream divergence detection and update proposals."""

from forksync.engines.sync.divergence import detect_divergence
from forksync.engines.sync.github_client import GitHubClient
from forksync.engines.sync.models import (
    BranchHead,
    DivergenceResult,
    FanOutSummary,
    PipelineOutcome,
    ProposalIntent,
    ProposalOutcome,
    ProposalRef,
    RepositoryRef,
    UpstreamTarget,
)
from forksync.engines.sync.optout import has_opted_out
from forksync.engines.sync.pipeline import SyncPipeline
from forksync.engines.sync.proposer import propose_update
from forksync.engines.sync.runner import SyncRunner
from forksync.engines.sync.upstream import resolve_upstream

__all__ = [
    "BranchHead",
    "DivergenceResult",
    "FanOutSummary",
    "GitHubClient",
    "PipelineOutcome",
    "ProposalIntent",
    "ProposalOutcome",
    "ProposalRef",
    "RepositoryRef",
    "SyncPipeline",
    "SyncRunner",
    "UpstreamTarget",
    "detect_divergence",
    "has_opted_out",
    "propose_update",
    "resolve_upstream",
]
