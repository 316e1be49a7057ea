"""GitHub webhook handling.

Verifies webhook signatures and turns App lifecycle events into the list
of repositories to provision. The webhook secret is shared between GitHub
and this service; it must never be logged or exposed.

Signature verification uses HMAC-SHA256 as specified by GitHub:
https://docs.github.com/en/webhooks/using-webhooks/validating-webhook-deliveries
"""

import hashlib
import hmac
from dataclasses import dataclass, field
from typing import Optional

from provisioner.core.config import get_settings

# (event, action) pairs that onboard repositories, and where the
# repository list lives in each payload.
_INSTALLATION_EVENTS = {
    ("installation", "created"): "repositories",
    ("installation_repositories", "added"): "repositories_added",
}


@dataclass(frozen=True)
class TargetRepository:
    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass
class ProvisioningRequest:
    event: str
    action: str
    installation_id: int
    repositories: list[TargetRepository] = field(default_factory=list)


def verify_webhook_signature(payload_body: bytes, signature_header: str) -> bool:
    """Verify that a webhook payload was signed by GitHub.

    Args:
        payload_body: Raw request body bytes.
        signature_header: Value of the X-Hub-Signature-256 header.

    Returns:
        True if the signature is valid, False otherwise.
    """
    settings = get_settings()
    if not settings.github_webhook_secret:
        raise ValueError("GITHUB_WEBHOOK_SECRET not configured")

    if not signature_header or not signature_header.startswith("sha256="):
        return False

    expected_signature = hmac.new(
        settings.github_webhook_secret.encode("utf-8"),
        payload_body,
        hashlib.sha256,
    ).hexdigest()

    received_signature = signature_header.removeprefix("sha256=")

    return hmac.compare_digest(expected_signature, received_signature)


def _target_from_full_name(full_name: str) -> Optional[TargetRepository]:
    owner, sep, name = (full_name or "").partition("/")
    if not sep or not owner or not name:
        return None
    return TargetRepository(owner=owner, name=name)


def parse_provisioning_request(
    event: str, payload: dict
) -> Optional[ProvisioningRequest]:
    """Extract the repositories a delivery asks us to onboard.

    Handles `installation` (created), `installation_repositories` (added)
    and `repository` (created). Returns None for every other delivery,
    including ones without an installation id or without repositories.
    """
    action = payload.get("action", "")
    installation_id = (payload.get("installation") or {}).get("id")
    if not installation_id:
        return None

    repositories: list[TargetRepository] = []

    list_key = _INSTALLATION_EVENTS.get((event, action))
    if list_key:
        for entry in payload.get(list_key) or []:
            target = _target_from_full_name(entry.get("full_name", ""))
            if target:
                repositories.append(target)

    elif event == "repository" and action == "created":
        repository = payload.get("repository") or {}
        owner = (repository.get("owner") or {}).get("login", "")
        name = repository.get("name", "")
        if owner and name:
            repositories.append(TargetRepository(owner=owner, name=name))
        else:
            target = _target_from_full_name(repository.get("full_name", ""))
            if target:
                repositories.append(target)

    if not repositories:
        return None

    return ProvisioningRequest(
        event=event,
        action=action,
        installation_id=installation_id,
        repositories=repositories,
    )
