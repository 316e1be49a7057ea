"""Pydantic schemas for the webhook endpoint."""

from pydantic import BaseModel, Field


class RepositoryProvisionResult(BaseModel):
    """What happened to each catalog file in one repository."""

    full_name: str
    customized: bool = False
    created: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)


class WebhookResponse(BaseModel):
    """Acknowledgement response for webhook events."""

    received: bool
    event: str
    action: str
    repositories: list[RepositoryProvisionResult] = Field(default_factory=list)
    uninstalled: bool = False
