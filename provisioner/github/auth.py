"""GitHub App authentication.

The provisioner talks to GitHub in two identities:

1. As the App itself (JWT signed with the App's private key), to mint
   installation tokens and to delete the installation once onboarding is done.
2. As an installation (short-lived token), to read and write repository files.

The private key comes from GITHUB_PRIVATE_KEY and is never logged.
"""

import time

import jwt

from provisioner.core.config import get_settings

# GitHub rejects App JWTs valid for more than 10 minutes.
JWT_LIFETIME_SECONDS = 9 * 60
JWT_CLOCK_SKEW_SECONDS = 60


def create_app_jwt() -> str:
    """Create a JWT for authenticating as the GitHub App."""
    settings = get_settings()

    if not settings.github_app_id or not settings.github_private_key:
        raise ValueError(
            "GitHub App credentials not configured. "
            "Set GITHUB_APP_ID and GITHUB_PRIVATE_KEY."
        )

    now = int(time.time())
    payload = {
        "iat": now - JWT_CLOCK_SKEW_SECONDS,
        "exp": now + JWT_LIFETIME_SECONDS,
        "iss": settings.github_app_id,
    }

    return jwt.encode(payload, settings.github_private_key, algorithm="RS256")


def app_headers() -> dict[str, str]:
    """Headers for endpoints that require App (not installation) auth."""
    return bearer_headers(create_app_jwt())


def bearer_headers(token: str) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {token}",
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
    }
