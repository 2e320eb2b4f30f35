import logging

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

from backend.settings import Settings


def configure_logging(app_settings: Settings) -> None:
    """Apply the configured log level and a plain stream format."""

    logging.basicConfig(
        level=app_settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def init_sentry(app_settings: Settings) -> None:
    """Initialize Sentry SDK when DSN is configured.

    Warning records are kept as breadcrumbs and error records become events.
    """

    if not app_settings.sentry_dsn:
        return

    sentry_sdk.init(
        dsn=app_settings.sentry_dsn,
        environment=app_settings.environment,
        release=app_settings.release,
        traces_sample_rate=app_settings.sentry_traces_sample_rate,
        send_default_pii=False,
        integrations=[
            LoggingIntegration(level=logging.WARNING, event_level=logging.ERROR)
        ],
    )
