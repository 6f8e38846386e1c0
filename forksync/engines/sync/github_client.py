"""Async GitHub API client with pagination, rate-limit handling, and retries."""

from __future__ import annotations

import asyncio
import os
import re
import time
from collections.abc import AsyncGenerator
from typing import Any

import httpx
import structlog

from forksync.engines.sync.errors import (
    AuthError,
    ConflictError,
    GitHubError,
    NotFoundError,
    RateLimitError,
    RequestTimeoutError,
    ValidationError,
)
from forksync.engines.sync.models import BranchHead, ProposalIntent, ProposalRef, RepositoryRef

log = structlog.get_logger("forksync.github")

_NEXT_LINK_RE = re.compile(r'<([^>]+)>;\s*rel="next"')

_MAX_RETRIES = 3
_RETRY_BASE_DELAY = 1.0  # seconds
_DEFAULT_TIMEOUT = 30.0
_DEFAULT_MAX_RATE_LIMIT_WAIT = 60

_STATUS_ERRORS: dict[int, type[GitHubError]] = {
    401: AuthError,
    403: AuthError,
    404: NotFoundError,
    409: ConflictError,
    422: ValidationError,
}


class GitHubClient:
    """Thin async wrapper around the GitHub REST API.

    One instance is created per process entry point (web app or CLI run) and
    handed to every component that talks to GitHub.
    """

    def __init__(
        self,
        token: str | None = None,
        *,
        timeout: float = _DEFAULT_TIMEOUT,
        max_rate_limit_wait: int = _DEFAULT_MAX_RATE_LIMIT_WAIT,
        base_url: str = "https://api.github.com",
    ) -> None:
        resolved_token = token or os.environ.get("GITHUB_TOKEN")
        headers: dict[str, str] = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if resolved_token:
            headers["Authorization"] = f"token {resolved_token}"
        else:
            log.warning("github.no_token")
        self._max_rate_limit_wait = max_rate_limit_wait
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
        )

    # ── lifecycle ──────────────────────────────────────────────────────────

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ── repository operations ──────────────────────────────────────────────

    async def get_repository(self, owner: str, name: str) -> RepositoryRef:
        data = await self.get(f"/repos/{owner}/{name}")
        return RepositoryRef.from_api(data)

    async def get_branch(self, owner: str, name: str, branch: str) -> BranchHead:
        data = await self.get(f"/repos/{owner}/{name}/branches/{branch}")
        try:
            return BranchHead(sha=data["commit"]["sha"])
        except (KeyError, TypeError) as exc:
            raise GitHubError(f"malformed branch payload for {owner}/{name}@{branch}") from exc

    async def list_forks(
        self, owner: str, name: str, *, max_pages: int = 10
    ) -> AsyncGenerator[RepositoryRef, None]:
        """Yield every fork of ``owner/name``, following pagination lazily."""
        async for item in self.get_paginated(f"/repos/{owner}/{name}/forks", max_pages=max_pages):
            yield RepositoryRef.from_api(item)

    async def list_open_pulls(self, owner: str, name: str, head: str) -> list[ProposalRef]:
        """Open pull requests on ``owner/name`` whose head is *head* (``user:branch``)."""
        params = {"state": "open", "head": head}
        return [
            ProposalRef.from_api(item)
            async for item in self.get_paginated(f"/repos/{owner}/{name}/pulls", params)
        ]

    async def create_pull(self, intent: ProposalIntent, *, title: str, body: str) -> ProposalRef:
        """POST a new pull request. Never retried: a retry could open a second one."""
        data = await self.post(
            f"/repos/{intent.owner_of_fork}/{intent.fork_name}/pulls",
            {
                "title": title,
                "head": intent.head,
                "base": intent.base_branch,
                "body": body,
            },
        )
        return ProposalRef.from_api(data)

    async def search_issues(self, query: str) -> int:
        """Run an issue search and return ``total_count``."""
        data = await self.get("/search/issues", params={"q": query, "per_page": 1})
        try:
            return int(data["total_count"])
        except (KeyError, TypeError, ValueError) as exc:
            raise GitHubError(f"malformed search payload for {query!r}") from exc

    # ── generic requests ───────────────────────────────────────────────────

    async def get_paginated(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        *,
        max_pages: int = 10,
    ) -> AsyncGenerator[dict[str, Any], None]:
        """Yield JSON items from a paginated GitHub API endpoint.

        Automatically follows ``Link: <...>; rel="next"`` headers and
        respects rate-limit headers. Stops after *max_pages* pages.
        """
        url: str | None = path
        params = dict(params or {})
        params.setdefault("per_page", 100)
        page = 0

        while url and page < max_pages:
            response = await self._request_with_retry(url, params if page == 0 else None)
            await self._check_rate_limit(response)

            data = self._decode_json(response, url)
            if isinstance(data, list):
                for item in data:
                    yield item
            else:
                yield data

            url = self._parse_next_link(response.headers.get("Link", ""))
            page += 1

        if url:
            log.warning("github.page_cap_reached", path=path, max_pages=max_pages)

    async def get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Single-resource GET, returns parsed JSON."""
        response = await self._request_with_retry(path, params)
        await self._check_rate_limit(response)
        return self._decode_json(response, path)

    async def post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Single POST without retries.

        A timeout here is ambiguous (the write may or may not have landed),
        so it surfaces as :class:`RequestTimeoutError` and the caller decides.
        """
        try:
            resp = await self._client.post(path, json=payload)
        except httpx.TimeoutException as exc:
            log.warning("github.timeout", url=path, method="POST")
            raise RequestTimeoutError(path) from exc
        except httpx.TransportError as exc:
            raise GitHubError(f"POST {path} failed: {exc}") from exc

        if self._is_rate_limited(resp):
            raise RateLimitError(self._get_rate_limit_wait(resp))
        self._raise_for_status(resp, path)
        return self._decode_json(resp, path)

    # ── internal ───────────────────────────────────────────────────────────

    async def _request_with_retry(
        self,
        url: str,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """GET with exponential backoff on 5xx, rate-limit, and timeout errors."""
        last_exc: GitHubError | None = None
        for attempt in range(_MAX_RETRIES):
            try:
                resp = await self._client.get(url, params=params)

                # 403/429 with rate-limit headers → sleep and retry
                if resp.status_code in (403, 429) and self._is_rate_limited(resp):
                    wait = self._get_rate_limit_wait(resp)
                    log.warning(
                        "github.rate_limit",
                        url=url,
                        wait_seconds=wait,
                        attempt=attempt + 1,
                        max_retries=_MAX_RETRIES,
                    )
                    last_exc = RateLimitError(wait)
                    if wait > self._max_rate_limit_wait:
                        raise last_exc
                    await asyncio.sleep(wait)
                    continue

                if resp.status_code < 500:
                    self._raise_for_status(resp, url)
                    return resp

                # 5xx, retry
                log.warning(
                    "github.server_error",
                    url=url,
                    status=resp.status_code,
                    attempt=attempt + 1,
                    max_retries=_MAX_RETRIES,
                )
                last_exc = GitHubError(f"GET {url} returned {resp.status_code}")
            except httpx.TimeoutException:
                log.warning(
                    "github.timeout",
                    url=url,
                    attempt=attempt + 1,
                    max_retries=_MAX_RETRIES,
                )
                last_exc = RequestTimeoutError(url)
            except httpx.TransportError as exc:
                log.warning("github.transport_error", url=url, error=str(exc))
                last_exc = GitHubError(f"GET {url} failed: {exc}")

            if attempt < _MAX_RETRIES - 1:
                delay = _RETRY_BASE_DELAY * (2**attempt)
                await asyncio.sleep(delay)

        raise last_exc  # type: ignore[misc]

    @staticmethod
    def _raise_for_status(response: httpx.Response, url: str) -> None:
        """Translate a non-2xx response into the matching :class:`GitHubError`."""
        status = response.status_code
        if status < 400:
            return
        message = GitHubClient._error_message(response)
        error_cls = _STATUS_ERRORS.get(status, GitHubError)
        raise error_cls(f"{url}: {status} {message}".strip())

    @staticmethod
    def _decode_json(response: httpx.Response, url: str) -> Any:
        # Proxies and captive portals answer 200 with HTML.
        try:
            return response.json()
        except ValueError as exc:
            raise GitHubError(f"{url}: response was not JSON") from exc

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return ""
        if isinstance(data, dict):
            return str(data.get("message", ""))
        return ""

    async def _check_rate_limit(self, response: httpx.Response) -> None:
        """Sleep until rate-limit resets if remaining == 0."""
        remaining = self._parse_header_int(response.headers.get("X-RateLimit-Remaining"))
        if remaining is not None and remaining == 0:
            wait = self._get_rate_limit_wait(response)
            if wait > self._max_rate_limit_wait:
                log.warning("github.rate_limit_exhausted", wait_seconds=wait)
                return
            log.warning("github.rate_limit_wait", wait_seconds=wait)
            await asyncio.sleep(wait)

    @staticmethod
    def _is_rate_limited(response: httpx.Response) -> bool:
        """Check if a 403/429 response is due to rate limiting."""
        if response.status_code not in (403, 429):
            return False
        remaining = response.headers.get("X-RateLimit-Remaining")
        if remaining is not None:
            try:
                if int(remaining) == 0:
                    return True
            except (ValueError, TypeError):
                pass
        # GitHub also uses Retry-After header for secondary rate limits
        return "Retry-After" in response.headers or response.status_code == 429

    @staticmethod
    def _get_rate_limit_wait(response: httpx.Response) -> int:
        """Calculate how long to wait based on rate-limit headers."""
        retry_after = response.headers.get("Retry-After")
        if retry_after is not None:
            try:
                return max(int(retry_after), 1)
            except (ValueError, TypeError):
                pass
        reset_ts = response.headers.get("X-RateLimit-Reset")
        if reset_ts is not None:
            try:
                return max(int(reset_ts) - int(time.time()), 1)
            except (ValueError, TypeError):
                pass
        return 60  # conservative fallback

    @staticmethod
    def _parse_header_int(value: str | None) -> int | None:
        """Safely parse an integer header value."""
        if value is None:
            return None
        try:
            return int(value)
        except (ValueError, TypeError):
            return None

    @staticmethod
    def _parse_next_link(link_header: str) -> str | None:
        """Extract the ``next`` URL from a GitHub ``Link`` header."""
        match = _NEXT_LINK_RE.search(link_header)
        return match.group(1) if match else None
