"""GitHub App webhook endpoint.

The endpoint is public (no auth dependency) but verifies the
X-Hub-Signature-256 header to confirm the payload came from GitHub.
"""

import logging

import httpx
from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from provisioner.core.config import Settings, get_settings
from provisioner.core.limiter import limiter
from provisioner.db.session import get_db
from provisioner.github.schemas import WebhookResponse
from provisioner.github.service import provision_installation
from provisioner.github.webhooks import parse_provisioning_request, verify_webhook_signature

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/github", tags=["github"])

_settings = get_settings()


@router.post("/webhooks", response_model=WebhookResponse)
@limiter.limit(_settings.webhook_rate_limit)
async def handle_webhook(
    request: Request,
    x_hub_signature_256: str = Header(default=""),
    x_github_event: str = Header(default=""),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> WebhookResponse:
    """Handle incoming GitHub App webhook events.

    Verifies the HMAC signature before processing. Handles:
    - installation (created): provision every repository granted
    - installation_repositories (added): provision the added repositories
    - repository (created): provision the new repository
    Every other delivery is acknowledged and ignored.
    """
    body = await request.body()

    if not verify_webhook_signature(body, x_hub_signature_256):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid webhook signature",
        )

    payload = await request.json()
    provisioning = parse_provisioning_request(x_github_event, payload)

    if provisioning is None:
        return WebhookResponse(received=True, event=x_github_event, action="ignored")

    logger.info(
        "%s.%s for installation %d: %d repositories to provision",
        provisioning.event,
        provisioning.action,
        provisioning.installation_id,
        len(provisioning.repositories),
    )

    try:
        results, uninstalled = await provision_installation(db, provisioning, settings)
    except httpx.HTTPError as exc:
        logger.error(
            "Could not obtain a token for installation %d: %s",
            provisioning.installation_id, exc,
        )
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="GitHub API error while authenticating the installation",
        )

    return WebhookResponse(
        received=True,
        event=x_github_event,
        action=provisioning.action,
        repositories=results,
        uninstalled=uninstalled,
    )
