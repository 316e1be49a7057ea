"""GitHub REST client for the provisioning flow.

Uses httpx for async HTTP calls. Four operations are needed:

1. Exchange the App JWT for an installation access token
2. Read a file by path (to skip files a repository already has)
3. Create or update a file by path
4. Delete the App installation once onboarding is finished

Non-2xx responses raise `httpx.HTTPStatusError`, except a 404 on a file
read, which means "not there yet".
"""

import base64
from typing import Optional

import httpx

from provisioner.core.config import get_settings
from provisioner.github.auth import app_headers, bearer_headers

REQUEST_TIMEOUT_SECONDS = 15.0


def _api_base() -> str:
    return get_settings().github_api_base.rstrip("/")


async def get_installation_token(installation_id: int) -> str:
    """Exchange a GitHub App JWT for an installation access token.

    Installation tokens are scoped to the repositories the installation
    was granted and expire after one hour.
    """
    async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT_SECONDS) as client:
        response = await client.post(
            f"{_api_base()}/app/installations/{installation_id}/access_tokens",
            headers=app_headers(),
        )
        response.raise_for_status()
        return response.json()["token"]


async def get_file_content(
    token: str,
    owner: str,
    repo: str,
    path: str,
    ref: Optional[str] = None,
) -> Optional[dict]:
    """GET /repos/{owner}/{repo}/contents/{path}

    Returns {"content": decoded_str, "sha": str}, or None when the file
    does not exist (404). A directory at `path` comes back with an empty
    content and a None sha. Without `ref` the default branch is read.
    """
    params = {"ref": ref} if ref else None

    async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT_SECONDS) as client:
        response = await client.get(
            f"{_api_base()}/repos/{owner}/{repo}/contents/{path}",
            headers=bearer_headers(token),
            params=params,
        )
        if response.status_code == 404:
            return None
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            # A directory listing: the path exists, but not as a file.
            return {"content": "", "sha": None}
        raw = base64.b64decode(data.get("content", "").replace("\n", ""))
        return {
            "content": raw.decode("utf-8", errors="replace"),
            "sha": data["sha"],
        }


async def put_file_content(
    token: str,
    owner: str,
    repo: str,
    path: str,
    message: str,
    new_content: str,
    branch: Optional[str] = None,
    current_sha: Optional[str] = None,
) -> dict:
    """PUT /repos/{owner}/{repo}/contents/{path}

    Creates or updates a file. Overwriting an existing file requires its
    current blob SHA in *current_sha*; GitHub answers 409/422 otherwise.
    Returns the response body (commit and content metadata).
    """
    payload: dict = {
        "message": message,
        "content": base64.b64encode(new_content.encode("utf-8")).decode("ascii"),
    }
    if branch:
        payload["branch"] = branch
    if current_sha is not None:
        payload["sha"] = current_sha

    async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT_SECONDS) as client:
        response = await client.put(
            f"{_api_base()}/repos/{owner}/{repo}/contents/{path}",
            headers=bearer_headers(token),
            json=payload,
        )
        response.raise_for_status()
        return response.json()


async def delete_installation(installation_id: int) -> None:
    """DELETE /app/installations/{installation_id}

    Uninstalls the App from the account. Requires App JWT auth.
    """
    async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT_SECONDS) as client:
        response = await client.delete(
            f"{_api_base()}/app/installations/{installation_id}",
            headers=app_headers(),
        )
        response.raise_for_status()
