from datetime import datetime
from datetime import UTC

from sqlalchemy.orm import Session

from backend import models
from backend.core.errors import MissingCredential
from backend.core.errors import StoreFailure
from backend.core.errors import Unauthorized
from backend.core.result import Err
from backend.core.result import Ok
from backend.services.auth_service import find_active_session
from backend.services.token_service import resolve_github_token
from conftest import NOW


def test_resolve_github_token_returns_stored_token(
    db: Session, auth_session: models.UserSession
) -> None:
    assert resolve_github_token(db, auth_session) == Ok("gho_test_token")


def test_resolve_github_token_without_session_is_unauthorized(db: Session) -> None:
    result = resolve_github_token(db, None)

    assert isinstance(result, Err)
    assert isinstance(result.error, Unauthorized)


def test_resolve_github_token_ignores_other_providers(db: Session) -> None:
    db.add(models.User(id="user-3", email="gitlab@example.com"))
    db.add(
        models.Account(
            user_id="user-3",
            provider_id="gitlab",
            account_id="3",
            access_token="glpat-token",
        )
    )
    db.add(
        models.UserSession(
            user_id="user-3",
            token="gitlab-session",
            expires_at=datetime(2099, 1, 1, tzinfo=UTC),
        )
    )
    db.commit()
    user_session = find_active_session(db, "gitlab-session", now=NOW)

    result = resolve_github_token(db, user_session)

    assert isinstance(result, Err)
    assert isinstance(result.error, MissingCredential)


def test_resolve_github_token_rejects_empty_token(db: Session) -> None:
    db.add(models.User(id="user-4", email="empty@example.com"))
    db.add(
        models.Account(
            user_id="user-4", provider_id="github", account_id="4", access_token=None
        )
    )
    user_session = models.UserSession(
        user_id="user-4",
        token="empty-session",
        expires_at=datetime(2099, 1, 1, tzinfo=UTC),
    )
    db.add(user_session)
    db.commit()

    result = resolve_github_token(db, user_session)

    assert isinstance(result, Err)
    assert isinstance(result.error, MissingCredential)


def test_find_active_session_skips_expired_and_unknown(
    db: Session, auth_session: models.UserSession
) -> None:
    assert find_active_session(db, "session-token", now=NOW) is auth_session
    assert find_active_session(db, "unknown-token", now=NOW) is None
    assert find_active_session(db, "session-token", now=datetime(2099, 1, 1, tzinfo=UTC)) is None


def test_resolve_github_token_reports_store_errors(
    db: Session, auth_session: models.UserSession, monkeypatch
) -> None:
    def broken_scalar(*args, **kwargs):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(db, "scalar", broken_scalar)

    result = resolve_github_token(db, auth_session)

    assert isinstance(result, Err)
    assert isinstance(result.error, StoreFailure)
    assert isinstance(result.error.cause, RuntimeError)
