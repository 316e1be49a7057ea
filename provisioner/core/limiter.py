"""SlowAPI rate limiter singleton.

Webhook deliveries are keyed on the GitHub App they target
(X-GitHub-Hook-Installation-Target-ID) rather than on the caller IP, since
GitHub delivers from a shared pool of addresses.

Usage in route handlers:
    from provisioner.core.limiter import limiter

    _settings = get_settings()

    @router.post("/webhooks")
    @limiter.limit(_settings.webhook_rate_limit)
    async def handler(request: Request, ...):
        ...

The `Request` parameter is required by SlowAPI even if the handler doesn't
use it directly.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address


def _hook_target_key(request) -> str:
    """Key function: rate-limit per hook target, falling back to client IP."""
    target = request.headers.get("X-GitHub-Hook-Installation-Target-ID")
    if target:
        return f"hook:{target}"
    return get_remote_address(request)


limiter = Limiter(key_func=_hook_target_key, default_limits=[])
