"""Structured logging via structlog.

Configures structlog once at application startup. All subsequent calls to
`structlog.get_logger()` (or `logging.getLogger()` via the stdlib bridge)
use this configuration.

Renderer selection:
  debug=True:  `ConsoleRenderer` with colours for local development.
  debug=False: `JSONRenderer` for machine-parseable logs in production.

The `request_id` and `delivery_id` fields are injected into every structlog
line from the ContextVars maintained by `RequestIdMiddleware`, so all lines
written while a webhook delivery is provisioned can be grouped together.
"""

from __future__ import annotations

import logging
import sys

import structlog

from provisioner.core.middleware import get_delivery_id, get_request_id


def _inject_context_vars(
    logger: logging.Logger,
    method: str,
    event_dict: dict,
) -> dict:
    """Structlog processor: inject request_id and delivery_id from ContextVars."""
    request_id = get_request_id()
    delivery_id = get_delivery_id()
    if request_id:
        event_dict["request_id"] = request_id
    if delivery_id:
        event_dict["delivery_id"] = delivery_id
    return event_dict


def configure_structlog(debug: bool = False) -> None:
    """Configure structlog for the application lifetime.

    Call once from `create_app()` before any routers are registered.
    Calling it again simply replaces the configuration.
    """
    shared_processors: list = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _inject_context_vars,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if debug:
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
        context_class=dict,
        logger_factory=structlog.WriteLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    # httpx and SQLAlchemy log through stdlib logging.
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stdout,
        level=logging.DEBUG if debug else logging.INFO,
    )
