from fastapi import APIRouter
from fastapi import Depends
from sqlalchemy.orm import Session

from backend.api.schemas.stats import ContributionStats
from backend.api.schemas.stats import DashboardSummary
from backend.api.schemas.stats import MonthlyActivity
from backend.core.security import get_auth_session
from backend.db import get_db
from backend.models import UserSession
from backend.services.stats_service import GitHubClientFactory
from backend.services.stats_service import default_github_factory
from backend.services.stats_service import get_contribution_stats
from backend.services.stats_service import get_dashboard_stats
from backend.services.stats_service import get_monthly_activity
from backend.settings import Settings
from backend.settings import get_settings


router = APIRouter(prefix="/stats", tags=["stats"])


def get_github_factory(
    settings: Settings = Depends(get_settings),
) -> GitHubClientFactory:
    return default_github_factory(settings)


@router.get("/contributions", response_model=ContributionStats | None)
def read_contribution_stats(
    auth_session: UserSession | None = Depends(get_auth_session),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    github_factory: GitHubClientFactory = Depends(get_github_factory),
) -> ContributionStats | None:
    """Return the contribution heatmap, or null when it is unavailable."""

    return get_contribution_stats(auth_session, db, settings, github_factory)


@router.get("/dashboard", response_model=DashboardSummary)
def read_dashboard_stats(
    auth_session: UserSession | None = Depends(get_auth_session),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    github_factory: GitHubClientFactory = Depends(get_github_factory),
) -> DashboardSummary:
    """Return the dashboard counters, all zero when unavailable."""

    return get_dashboard_stats(auth_session, db, settings, github_factory)


@router.get("/monthly", response_model=list[MonthlyActivity])
def read_monthly_activity(
    auth_session: UserSession | None = Depends(get_auth_session),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    github_factory: GitHubClientFactory = Depends(get_github_factory),
) -> list[MonthlyActivity]:
    """Return six months of activity, empty when unavailable."""

    return get_monthly_activity(auth_session, db, settings, github_factory)
