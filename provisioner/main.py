from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from provisioner.core.config import get_settings
from provisioner.core.limiter import limiter
from provisioner.core.middleware import RequestIdMiddleware
from provisioner.github.router import router as github_router


def create_app() -> FastAPI:
    settings = get_settings()

    _app = FastAPI(
        title="Repository Provisioner",
        description="GitHub App that commits standard CI/CD configuration into onboarded repositories",
        version="0.1.0",
    )

    # ---------------------------------------------------------------------------
    # Rate limiter state: SlowAPI reads limiter from app.state
    # ---------------------------------------------------------------------------
    _app.state.limiter = limiter
    _app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # ---------------------------------------------------------------------------
    # Middleware (registered outermost → innermost; executed innermost → outermost)
    # ---------------------------------------------------------------------------
    _app.add_middleware(SlowAPIMiddleware)

    # Request ID / GitHub delivery ID, bound to ContextVars for logging
    _app.add_middleware(RequestIdMiddleware)

    # ---------------------------------------------------------------------------
    # Sentry: initialised here so it captures startup errors too
    # ---------------------------------------------------------------------------
    from provisioner.core.sentry import init_sentry

    init_sentry(
        dsn=settings.sentry_dsn,
        environment="development" if settings.debug else "production",
    )

    # ---------------------------------------------------------------------------
    # Logging: configure structlog before any routers log anything
    # ---------------------------------------------------------------------------
    from provisioner.core.logging import configure_structlog

    configure_structlog(debug=settings.debug)

    # ---------------------------------------------------------------------------
    # Routes
    # ---------------------------------------------------------------------------

    @_app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "ok"}

    _app.include_router(github_router)

    return _app


app = create_app()
