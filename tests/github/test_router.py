"""Integration tests for the webhook endpoint."""

import hashlib
import hmac
import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx

from tests.conftest import TEST_WEBHOOK_SECRET

INSTALLATION_CREATED = {
    "action": "created",
    "installation": {"id": 999, "account": {"login": "acme", "id": 1}},
    "repositories": [
        {"id": 1, "full_name": "acme/payments", "name": "payments"},
        {"id": 2, "full_name": "acme/ledger", "name": "ledger"},
    ],
}


def _sign_payload(payload: bytes) -> str:
    sig = hmac.new(
        TEST_WEBHOOK_SECRET.encode("utf-8"),
        payload,
        hashlib.sha256,
    ).hexdigest()
    return f"sha256={sig}"


def _headers(event: str, signature: str = "sha256=valid") -> dict[str, str]:
    return {
        "X-Hub-Signature-256": signature,
        "X-GitHub-Event": event,
        "X-GitHub-Delivery": "72d3162e-cc78-11e3-81ab-4c9367dc0958",
        "Content-Type": "application/json",
    }


def _wire(mock_client) -> None:
    mock_client.get_installation_token = AsyncMock(return_value="ghs_tok")
    mock_client.get_file_content = AsyncMock(return_value=None)
    mock_client.put_file_content = AsyncMock(return_value={})
    mock_client.delete_installation = AsyncMock(return_value=None)


class TestWebhookEndpoint:
    @patch("provisioner.github.service.github_client")
    @patch("provisioner.github.router.verify_webhook_signature", return_value=True)
    async def test_installation_created_provisions_and_uninstalls(
        self, mock_verify, mock_client, seeded_client
    ):
        _wire(mock_client)

        response = await seeded_client.post(
            "/github/webhooks",
            content=json.dumps(INSTALLATION_CREATED),
            headers=_headers("installation"),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["received"] is True
        assert data["event"] == "installation"
        assert data["action"] == "created"
        assert data["uninstalled"] is True
        assert [r["full_name"] for r in data["repositories"]] == ["acme/payments", "acme/ledger"]
        assert [r["customized"] for r in data["repositories"]] == [True, False]
        assert all(len(r["created"]) == 4 for r in data["repositories"])
        mock_client.delete_installation.assert_awaited_once_with(999)

    @patch("provisioner.github.service.github_client")
    @patch("provisioner.github.router.verify_webhook_signature", return_value=True)
    async def test_repository_created(self, mock_verify, mock_client, client):
        _wire(mock_client)
        payload = {
            "action": "created",
            "installation": {"id": 5},
            "repository": {"name": "fresh", "full_name": "acme/fresh", "owner": {"login": "acme"}},
        }

        response = await client.post(
            "/github/webhooks", content=json.dumps(payload), headers=_headers("repository")
        )

        assert response.status_code == 200
        assert response.json()["repositories"][0]["full_name"] == "acme/fresh"

    @patch("provisioner.github.router.verify_webhook_signature", return_value=False)
    async def test_invalid_signature_rejected(self, mock_verify, client):
        response = await client.post(
            "/github/webhooks",
            content=b'{"action":"created"}',
            headers=_headers("installation", "sha256=bad"),
        )
        assert response.status_code == 401

    @patch("provisioner.github.service.github_client")
    @patch("provisioner.github.router.verify_webhook_signature", return_value=True)
    async def test_unhandled_event_acknowledged(self, mock_verify, mock_client, client):
        response = await client.post(
            "/github/webhooks", content=b"{}", headers=_headers("push")
        )
        assert response.status_code == 200
        assert response.json()["action"] == "ignored"
        mock_client.get_installation_token.assert_not_called()

    @patch("provisioner.github.service.github_client")
    @patch("provisioner.github.router.verify_webhook_signature", return_value=True)
    async def test_installation_deleted_is_ignored(self, mock_verify, mock_client, client):
        payload = {**INSTALLATION_CREATED, "action": "deleted"}
        response = await client.post(
            "/github/webhooks", content=json.dumps(payload), headers=_headers("installation")
        )
        assert response.json()["action"] == "ignored"
        mock_client.put_file_content.assert_not_called()

    @patch("provisioner.github.service.github_client")
    @patch("provisioner.github.router.verify_webhook_signature", return_value=True)
    async def test_token_failure_returns_502(self, mock_verify, mock_client, client):
        _wire(mock_client)
        mock_client.get_installation_token = AsyncMock(
            side_effect=httpx.HTTPStatusError(
                "HTTP 401", request=MagicMock(), response=MagicMock(status_code=401)
            )
        )

        response = await client.post(
            "/github/webhooks",
            content=json.dumps(INSTALLATION_CREATED),
            headers=_headers("installation"),
        )

        assert response.status_code == 502
        mock_client.delete_installation.assert_not_called()

    @patch("provisioner.github.service.github_client")
    @patch("provisioner.github.webhooks.get_settings")
    async def test_real_signature_accepted(self, mock_settings, mock_client, client):
        mock_settings.return_value.github_webhook_secret = TEST_WEBHOOK_SECRET
        _wire(mock_client)
        body = json.dumps(INSTALLATION_CREATED).encode()

        response = await client.post(
            "/github/webhooks",
            content=body,
            headers=_headers("installation", _sign_payload(body)),
        )

        assert response.status_code == 200
        assert response.json()["action"] == "created"

    async def test_response_carries_request_id(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert "x-request-id" in response.headers
