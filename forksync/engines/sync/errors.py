"""Error taxonomy shared by the sync engine and the GitHub client."""

from __future__ import annotations


class SyncError(Exception):
    """Base sync exception.

    *kind* is a stable machine-readable name surfaced to webhook callers;
    *retryable* tells them whether re-delivering the event may help.
    """

    kind = "sync_error"
    retryable = False


# ── domain errors (definitive, never retried) ─────────────────────────────


class NotAForkError(SyncError):
    """Repository has no parent and no upstream override was given."""

    kind = "not_a_fork"

    def __init__(self, full_name: str) -> None:
        self.full_name = full_name
        super().__init__(f"The repository {full_name} isn't a fork.")


class NoRepositoryError(SyncError):
    kind = "no_repository"

    def __init__(self) -> None:
        super().__init__("No repository found")


class DuplicateProposalError(SyncError):
    """An open pull request already carries the upstream head."""

    kind = "duplicate_proposal"

    def __init__(self, full_name: str, number: int | None = None) -> None:
        self.full_name = full_name
        self.number = number
        super().__init__(f"A pull request already exists on {full_name}")


# ── remote errors ─────────────────────────────────────────────────────────


class GitHubError(SyncError):
    """Unexpected GitHub API failure (5xx after retries, bad payload)."""

    kind = "github_error"
    retryable = True


class NotFoundError(GitHubError):
    kind = "not_found"
    retryable = False


class AuthError(GitHubError):
    kind = "auth_error"
    retryable = False


class ConflictError(GitHubError):
    kind = "conflict"
    retryable = False


class ValidationError(GitHubError):
    """GitHub rejected the request body (HTTP 422)."""

    kind = "validation_error"
    retryable = False


class RateLimitError(GitHubError):
    """Raised when GitHub rate limit is exhausted and we need to wait."""

    kind = "rate_limited"

    def __init__(self, retry_after: int) -> None:
        self.retry_after = retry_after
        super().__init__(f"rate limit exceeded, retry after {retry_after}s")


class RequestTimeoutError(GitHubError):
    kind = "timeout"

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"request to {url} timed out")
