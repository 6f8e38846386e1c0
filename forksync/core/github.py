"""GitHub naming helpers."""

from __future__ import annotations


def split_full_name(value: str | None) -> tuple[str, str] | None:
    """Split ``"owner/name"`` into ``(owner, name)``.

    Returns None unless *value* is exactly two non-empty segments.
    """
    if not value:
        return None
    parts = value.strip().split("/")
    if len(parts) == 2 and all(parts):
        return parts[0], parts[1]
    return None


def parse_full_name(value: str) -> tuple[str, str]:
    """Strict variant of :func:`split_full_name`.

    Raises ValueError if *value* is not ``owner/name``.
    """
    result = split_full_name(value)
    if result is None:
        raise ValueError(f"expected owner/name, got {value!r}")
    return result


def short_sha(sha: str) -> str:
    return sha[:8]
