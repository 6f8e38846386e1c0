"""Data models for the sync engine.

These are pure value objects built fresh from GitHub responses on every
run. Nothing here is cached or persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from forksync.engines.sync.errors import GitHubError, SyncError

OutcomeKind = Literal[
    "skipped",
    "not_diverged",
    "proposal_created",
    "proposal_already_exists",
    "failed",
]


@dataclass(frozen=True)
class RepositoryRef:
    """A repository snapshot as known at decision time."""

    owner: str
    name: str
    full_name: str
    default_branch: str
    is_fork: bool = False
    parent: RepositoryRef | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> RepositoryRef:
        """Build from a GitHub repository object (REST or webhook payload).

        Webhook payloads carry ``owner.name`` while the REST API carries
        ``owner.login``; either is accepted.
        """
        try:
            owner_data = data.get("owner") or {}
            owner = owner_data.get("login") or owner_data.get("name")
            name = data["name"]
            if not owner:
                owner = data["full_name"].split("/", 1)[0]
            parent_data = data.get("parent")
            return cls(
                owner=owner,
                name=name,
                full_name=data.get("full_name") or f"{owner}/{name}",
                default_branch=data["default_branch"],
                is_fork=bool(data.get("fork", False)),
                parent=cls.from_api(parent_data) if parent_data else None,
            )
        except (KeyError, TypeError, AttributeError) as exc:
            raise GitHubError(f"malformed repository payload: {exc!r}") from exc


@dataclass(frozen=True)
class BranchHead:
    sha: str


@dataclass(frozen=True)
class UpstreamTarget:
    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass(frozen=True)
class DivergenceResult:
    """Outcome of comparing a fork's default branch with its upstream's."""

    repo: RepositoryRef
    upstream: RepositoryRef
    diverged: bool
    base_sha: str
    upstream_sha: str


@dataclass(frozen=True)
class ProposalIntent:
    """Parameters needed to create a pull request or detect a duplicate."""

    owner_of_fork: str
    fork_name: str
    base_branch: str
    head_owner: str
    head_branch: str
    upstream_sha: str

    @property
    def head(self) -> str:
        return f"{self.head_owner}:{self.head_branch}"


@dataclass(frozen=True)
class ProposalRef:
    number: int
    head_sha: str
    html_url: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> ProposalRef:
        try:
            return cls(
                number=int(data["number"]),
                head_sha=data["head"]["sha"],
                html_url=data.get("html_url"),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise GitHubError(f"malformed pull request payload: {exc!r}") from exc


@dataclass(frozen=True)
class ProposalOutcome:
    kind: Literal["created", "already_exists"]
    proposal: ProposalRef | None = None


@dataclass
class PipelineOutcome:
    """Tagged result of running the single-fork pipeline on one repository."""

    kind: OutcomeKind
    repo: str
    reason: str | None = None
    error: SyncError | None = None
    proposal: ProposalRef | None = None

    @classmethod
    def skipped(cls, repo: str, reason: str) -> PipelineOutcome:
        return cls(kind="skipped", repo=repo, reason=reason)

    @classmethod
    def failed(cls, repo: str, error: SyncError) -> PipelineOutcome:
        return cls(kind="failed", repo=repo, reason=str(error), error=error)


@dataclass
class FanOutSummary:
    """Summary of a single fan_out() run."""

    repo: str
    attempted: int = 0
    created: int = 0
    outcomes: list[PipelineOutcome] = field(default_factory=list)
    failures: list[tuple[str, SyncError]] = field(default_factory=list)

    @property
    def detail(self) -> str:
        return f"Opened {self.created} pull requests on forks of this repository."
