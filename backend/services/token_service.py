from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.core.errors import MissingCredential
from backend.core.errors import StoreFailure
from backend.core.errors import Unauthorized
from backend.core.result import Err
from backend.core.result import Ok
from backend.core.result import Result
from backend.models import Account
from backend.models import UserSession

GITHUB_PROVIDER_ID = "github"


def resolve_github_token(
    db: Session, auth_session: UserSession | None
) -> Result[str]:
    """Look up the stored GitHub access token for the session's user."""

    if auth_session is None:
        return Err(Unauthorized("Unauthorized"))

    try:
        access_token = db.scalar(
            select(Account.access_token).where(
                Account.user_id == auth_session.user_id,
                Account.provider_id == GITHUB_PROVIDER_ID,
            )
        )
    except Exception as exc:
        return Err(StoreFailure("GitHub credential lookup failed", exc))

    if not access_token:
        return Err(MissingCredential("No github access token found"))

    return Ok(access_token)
