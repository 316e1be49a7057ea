"""Sentry SDK integration for the provisioner API.

Captures exceptions raised while handling webhook deliveries.

  - `send_default_pii=False`: webhook payloads carry account logins.
  - `before_send` redacts any event field whose key names a credential
    (api_key, secret, password, token, dsn, private_key).
  - No-op when SENTRY_DSN is empty (local dev, CI).
"""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)

_SENSITIVE_KEYS = frozenset(
    {"api_key", "secret", "password", "token", "dsn", "private_key"}
)


def _scrub_secrets(event: dict[str, Any], hint: Any) -> dict[str, Any]:
    """Sentry before_send hook: redact values for sensitive keys.

    Walks the event's `extra` and `request.data` dicts and replaces the
    values of matching keys with "[REDACTED]".
    """
    _scrub_dict(event.get("extra", {}))
    request_data = event.get("request", {}).get("data", {})
    if isinstance(request_data, dict):
        _scrub_dict(request_data)
    return event


def _scrub_dict(d: dict[str, Any]) -> None:
    """Recursively redact sensitive values in-place."""
    for key in list(d.keys()):
        if any(sensitive in key.lower() for sensitive in _SENSITIVE_KEYS):
            d[key] = "[REDACTED]"
        elif isinstance(d[key], dict):
            _scrub_dict(d[key])


def init_sentry(dsn: str, environment: str = "development") -> None:
    """Initialise the Sentry SDK, or do nothing when `dsn` is blank."""
    if not dsn or not dsn.strip():
        logger.debug("Sentry DSN not configured, skipping initialisation")
        return

    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        integrations=[
            FastApiIntegration(),
            SqlalchemyIntegration(),
        ],
        traces_sample_rate=0.0,
        send_default_pii=False,
        before_send=_scrub_secrets,
    )
    logger.info("Sentry initialised (environment=%s)", environment)
