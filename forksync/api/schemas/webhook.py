"""Webhook request/response schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from forksync.core.github import split_full_name
from forksync.engines.sync.models import RepositoryRef


class WebhookOwner(BaseModel):
    model_config = ConfigDict(extra="ignore")

    login: str | None = None
    name: str | None = None


class WebhookRepository(BaseModel):
    """The ``repository`` object of a push-style webhook payload."""

    model_config = ConfigDict(extra="ignore")

    full_name: str = Field(min_length=1)
    default_branch: str = Field(min_length=1)
    name: str | None = None
    fork: bool = False
    owner: WebhookOwner | None = None

    @field_validator("full_name")
    @classmethod
    def _check_full_name(cls, value: str) -> str:
        if split_full_name(value) is None:
            raise ValueError("must look like owner/name")
        return value

    def to_ref(self) -> RepositoryRef:
        owner, name = split_full_name(self.full_name)  # type: ignore[misc]
        if self.owner is not None:
            owner = self.owner.name or self.owner.login or owner
        return RepositoryRef(
            owner=owner,
            name=self.name or name,
            full_name=self.full_name,
            default_branch=self.default_branch,
            is_fork=self.fork,
        )


class WebhookEvent(BaseModel):
    model_config = ConfigDict(extra="ignore")

    repository: WebhookRepository


class SyncResponse(BaseModel):
    ok: bool = True
    outcome: str
    detail: str
    pull_request: int | None = None


class FanOutFailure(BaseModel):
    fork: str
    kind: str
    message: str


class FanOutSummaryBody(BaseModel):
    attempted: int
    created: int
    failures: list[FanOutFailure]


class FanOutResponse(BaseModel):
    ok: bool = True
    detail: str
    summary: FanOutSummaryBody
