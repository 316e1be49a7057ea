"""ASGI middleware for the provisioner API.

`RequestIdMiddleware` binds two identifiers for the lifetime of a request:

  request_id:  X-Request-ID if the caller sent one, otherwise a fresh UUID4.
  delivery_id: X-GitHub-Delivery, the GUID GitHub assigns to each webhook
                delivery. Empty for non-webhook requests.

Both live in ContextVars so the logging layer can stamp them on every line
emitted while the delivery is being provisioned.
"""

import uuid
from contextvars import ContextVar
from typing import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

_request_id_var: ContextVar[str] = ContextVar("request_id", default="")
_delivery_id_var: ContextVar[str] = ContextVar("delivery_id", default="")


def get_request_id() -> str:
    """Return the current request's ID, or an empty string outside a request."""
    return _request_id_var.get()


def get_delivery_id() -> str:
    """Return the GitHub delivery GUID of the current request, if any."""
    return _delivery_id_var.get()


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Read or generate X-Request-ID and capture X-GitHub-Delivery.

    The request ID is always echoed back in the response so a delivery
    shown in the GitHub App settings page can be matched to server logs.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        delivery_id = request.headers.get("X-GitHub-Delivery", "")

        request_token = _request_id_var.set(request_id)
        delivery_token = _delivery_id_var.set(delivery_id)
        try:
            response = await call_next(request)
        finally:
            _delivery_id_var.reset(delivery_token)
            _request_id_var.reset(request_token)

        response.headers["X-Request-ID"] = request_id
        return response
