import logging
from datetime import datetime
from datetime import UTC

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.models import UserSession

logger = logging.getLogger(__name__)


def find_active_session(
    db: Session, token: str, now: datetime | None = None
) -> UserSession | None:
    """Return the unexpired session for a bearer token, if any."""

    moment = now or datetime.now(UTC)
    try:
        return db.scalar(
            select(UserSession).where(
                UserSession.token == token,
                UserSession.expires_at > moment,
            )
        )
    except Exception:
        logger.exception("Session lookup failed")
        return None
