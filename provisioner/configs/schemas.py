"""Pydantic models for per-repository CI/CD configuration records.

A record is stored as a JSON document in the `repository_configs` table:

    {
      "technology": "python",
      "runner": {"type": "self-hosted", "labels": ["gpu", "linux"]},
      "triggers": {
        "workflow_dispatch": true,
        "push": {"active": true, "branches": "main, dev"},
        "pull_request": {"active": true, "branches": "main"},
        "schedule": {"active": false, "cron": "0 0 * * *"}
      },
      "notify": "slack",
      "docker": true,
      "deploy": "kubernetes"
    }

Records are parsed leniently by default: a field that fails validation is
dropped and takes its default, so a half-broken record still renders the
emptiest valid workflow instead of blocking onboarding. Strict parsing is
available for callers that would rather reject such a record.
"""

import copy
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

# Deliberately outside the set of technologies with build defaults.
DEFAULT_TECHNOLOGY = "default"

SELF_HOSTED = "self-hosted"

REQUIRED_FIELDS = ("technology", "runner", "triggers", "notify", "docker", "deploy")


class MalformedConfiguration(Exception):
    """Raised by strict parsing when a stored record does not validate."""


class _Record(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class RunnerConfig(_Record):
    type: str = "hosted"
    # Only meaningful for self-hosted runners.
    labels: list[str] = Field(default_factory=list)

    @field_validator("labels", mode="before")
    @classmethod
    def labels_as_string_list(cls, v: Any) -> list[str]:
        if not isinstance(v, (list, tuple)):
            return []
        if not all(isinstance(label, str) for label in v):
            return []
        return list(v)

    @property
    def self_hosted(self) -> bool:
        return self.type == SELF_HOSTED


class BranchTrigger(_Record):
    """`push` / `pull_request` trigger. `branches` is comma separated."""

    active: bool = False
    branches: Optional[str] = None

    @field_validator("branches", mode="before")
    @classmethod
    def branches_as_string(cls, v: Any) -> Optional[str]:
        return v if isinstance(v, str) else None

    def branch_list(self) -> list[str]:
        if not self.branches:
            return []
        return [b.strip() for b in self.branches.split(",") if b.strip()]


class ScheduleTrigger(_Record):
    active: bool = False
    cron: str = ""


class Triggers(_Record):
    workflow_dispatch: bool = False
    push: BranchTrigger = Field(default_factory=BranchTrigger)
    pull_request: BranchTrigger = Field(default_factory=BranchTrigger)
    schedule: ScheduleTrigger = Field(default_factory=ScheduleTrigger)


class ConfigurationRecord(_Record):
    technology: str = DEFAULT_TECHNOLOGY
    runner: RunnerConfig = Field(default_factory=RunnerConfig)
    triggers: Triggers = Field(default_factory=Triggers)
    notify: str = ""
    docker: bool = False
    deploy: str = ""


def default_configuration() -> ConfigurationRecord:
    """The synthetic "no customisation" record."""
    return ConfigurationRecord()


def parse_configuration(data: Any, *, strict: bool = False) -> ConfigurationRecord:
    """Build a ConfigurationRecord from a stored JSON document.

    Args:
        data: The decoded `config` column.
        strict: Raise MalformedConfiguration instead of degrading.

    Returns:
        The parsed record. In lenient mode invalid fields fall back to
        their defaults and a non-object document yields the default record.
    """
    if not isinstance(data, dict):
        if strict:
            raise MalformedConfiguration(
                f"configuration must be an object, got {type(data).__name__}"
            )
        return default_configuration()

    if strict:
        missing = [name for name in REQUIRED_FIELDS if name not in data]
        if missing:
            raise MalformedConfiguration(f"missing fields: {', '.join(missing)}")

    try:
        return ConfigurationRecord.model_validate(data)
    except ValidationError as exc:
        if strict:
            raise MalformedConfiguration(str(exc)) from exc
        pruned = copy.deepcopy(data)
        for error in exc.errors():
            _drop_path(pruned, error["loc"])

    try:
        return ConfigurationRecord.model_validate(pruned)
    except ValidationError:
        return default_configuration()


def _drop_path(document: dict, loc: tuple) -> None:
    """Remove the deepest key along `loc` that still sits inside a dict."""
    if not loc:
        return
    node = document
    for key in loc[:-1]:
        child = node.get(key)
        if not isinstance(child, dict):
            node.pop(key, None)
            return
        node = child
    node.pop(loc[-1], None)
