"""Upstream resolution: which repository a fork is compared against."""

from __future__ import annotations

import structlog

from forksync.core.github import split_full_name
from forksync.engines.sync.models import RepositoryRef, UpstreamTarget

log = structlog.get_logger("forksync.engine")


def resolve_upstream(repo: RepositoryRef | None, override: str | None = None) -> UpstreamTarget:
    """Return the ``(owner, name)`` pair to check changes relative from.

    1. A well-formed ``owner/name`` *override* wins over any fork relation.
    2. A fork resolves to its parent.
    3. Anything else is its own upstream.

    Malformed overrides are ignored and fall through to rules 2 and 3.
    """
    custom = split_full_name(override)
    if custom is not None:
        return UpstreamTarget(owner=custom[0], name=custom[1])
    if override:
        log.warning("sync.override_ignored", override=override)

    if repo is None:
        raise ValueError("cannot resolve an upstream without a repository or override")

    if repo.is_fork and repo.parent is not None:
        return UpstreamTarget(owner=repo.parent.owner, name=repo.parent.name)
    return UpstreamTarget(owner=repo.owner, name=repo.name)
