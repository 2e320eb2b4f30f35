from fastapi import FastAPI

from backend.api.routes import health
from backend.api.routes import stats
from backend.core.middleware import SlidingWindowLimiter
from backend.core.middleware import StatsRateLimitMiddleware
from backend.core.observability import configure_logging
from backend.core.observability import init_sentry
from backend.settings import Settings


def create_app() -> FastAPI:
    settings = Settings()
    configure_logging(settings)
    init_sentry(settings)

    application = FastAPI(title="GitHub Dashboard Stats")
    application.add_middleware(
        StatsRateLimitMiddleware,
        limiter=SlidingWindowLimiter(
            settings.rate_limit_per_minute, settings.rate_limit_window_seconds
        ),
    )
    application.include_router(health.router)
    application.include_router(stats.router)
    return application


app = create_app()
