"""Dependency injection: GitHub client, pipeline, and runner per app."""

from __future__ import annotations

import os

from fastapi import Depends, Request

from forksync.engines.sync.github_client import GitHubClient
from forksync.engines.sync.optout import DEFAULT_OPTOUT_LABEL
from forksync.engines.sync.pipeline import SyncPipeline
from forksync.engines.sync.runner import SyncRunner


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from exc


def build_github_client(token: str | None = None) -> GitHubClient:
    """Create the process's GitHub client from environment settings."""
    return GitHubClient(
        token,
        timeout=float(_env_int("FORKSYNC_REQUEST_TIMEOUT", 30)),
        max_rate_limit_wait=_env_int("FORKSYNC_MAX_RATE_LIMIT_WAIT", 60),
    )


def build_pipeline(client: GitHubClient) -> SyncPipeline:
    label = os.environ.get("FORKSYNC_OPTOUT_LABEL", DEFAULT_OPTOUT_LABEL)
    return SyncPipeline(client, optout_label=label)


def build_runner(
    client: GitHubClient, pipeline: SyncPipeline, concurrency: int | None = None
) -> SyncRunner:
    return SyncRunner(
        client,
        pipeline,
        concurrency=concurrency or _env_int("FORKSYNC_CONCURRENCY", 5),
        max_fork_pages=_env_int("FORKSYNC_MAX_FORK_PAGES", 10),
    )


# ---------------------------------------------------------------------------
# Getters (for Depends())
# ---------------------------------------------------------------------------


def get_github_client(request: Request) -> GitHubClient:
    client = getattr(request.app.state, "github_client", None)
    if client is None:
        raise RuntimeError("GitHub client not initialised; is the app lifespan running?")
    return client


def get_sync_pipeline(client: GitHubClient = Depends(get_github_client)) -> SyncPipeline:
    return build_pipeline(client)


def get_sync_runner(
    client: GitHubClient = Depends(get_github_client),
    pipeline: SyncPipeline = Depends(get_sync_pipeline),
) -> SyncRunner:
    return build_runner(client, pipeline)
