"""Opt-out check: has the fork owner asked us to stay away?"""

from __future__ import annotations

from forksync.engines.sync.github_client import GitHubClient

DEFAULT_OPTOUT_LABEL = "optout"


def optout_query(owner: str, name: str, label: str = DEFAULT_OPTOUT_LABEL) -> str:
    return f"repo:{owner}/{name} is:pr label:{label}"


async def has_opted_out(
    client: GitHubClient,
    owner: str,
    name: str,
    *,
    label: str = DEFAULT_OPTOUT_LABEL,
) -> bool:
    """True iff ``owner/name`` has at least one pull request labelled *label*.

    Search errors propagate; the caller must not assume either answer.
    """
    total = await client.search_issues(optout_query(owner, name, label))
    return total > 0
