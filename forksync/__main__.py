"""CLI entry point: python -m forksync"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys

from forksync.api.deps import build_github_client, build_pipeline, build_runner
from forksync.api.routers.webhooks import describe_outcome
from forksync.core.github import parse_full_name
from forksync.core.logging import setup_logging
from forksync.engines.sync.errors import SyncError


async def _check(owner: str, name: str, upstream: str | None) -> int:
    async with build_github_client() as client:
        outcome = await build_pipeline(client).run(owner, name, upstream=upstream)
    print(f"{outcome.kind}: {describe_outcome(outcome)}")
    return 1 if outcome.kind == "failed" else 0


async def _fan_out(owner: str, name: str, concurrency: int | None) -> int:
    async with build_github_client() as client:
        runner = build_runner(client, build_pipeline(client), concurrency)
        repo = await client.get_repository(owner, name)
        summary = await runner.fan_out(repo)
    print(summary.detail)
    print(f"attempted={summary.attempted} created={summary.created} failed={len(summary.failures)}")
    for fork, error in summary.failures:
        print(f"  {fork}: [{error.kind}] {error}")
    return 1 if summary.failures else 0


def _serve(host: str, port: int) -> int:
    import uvicorn

    uvicorn.run("forksync.api:create_app", factory=True, host=host, port=port)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="forksync", description="Keep forks in sync with upstream")
    parser.add_argument("--log-level", default=None, help="Overrides FORKSYNC_LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    check = sub.add_parser("check", help="Sync a single fork against its upstream")
    check.add_argument("repo", help="owner/name of the fork")
    check.add_argument("--upstream", default=None, help="owner/name to compare against instead")

    fan_out = sub.add_parser("fanout", help="Sync every fork of a repository")
    fan_out.add_argument("repo", help="owner/name of the upstream repository")
    fan_out.add_argument("--concurrency", type=int, default=None, help="Max concurrent forks")

    serve = sub.add_parser("serve", help="Serve the webhook endpoint")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=int(os.environ.get("PORT", "8000")))

    args = parser.parse_args(argv)

    if args.command == "serve":
        return _serve(args.host, args.port)

    try:
        owner, name = parse_full_name(args.repo)
    except ValueError as exc:
        parser.error(str(exc))

    setup_logging(args.log_level)
    try:
        if args.command == "check":
            return asyncio.run(_check(owner, name, args.upstream))
        return asyncio.run(_fan_out(owner, name, args.concurrency))
    except SyncError as exc:
        print(f"error: [{exc.kind}] {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
