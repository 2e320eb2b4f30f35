"""Dashboard report builders.

Each report takes the caller's session explicitly and never raises: every
sub-step returns an ``Ok``/``Err`` result and the report maps failures to its
own fallback value (``None``, an all-zero summary, or an empty list).
"""

import logging
from calendar import monthrange
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from datetime import datetime
from datetime import UTC
from typing import TypeVar

from sqlalchemy import func
from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.api.schemas.stats import ContributionStats
from backend.api.schemas.stats import DashboardSummary
from backend.api.schemas.stats import MonthlyActivity
from backend.clients.github_client import GitHubClient
from backend.core.errors import StatsError
from backend.core.errors import StoreFailure
from backend.core.errors import Unauthorized
from backend.core.errors import UpstreamFailure
from backend.core.result import Err
from backend.core.result import Ok
from backend.core.result import Result
from backend.models import Repository
from backend.models import Review
from backend.models import UserSession
from backend.services.contribution_service import fetch_user_contributions
from backend.services.contribution_service import flatten_calendar
from backend.services.token_service import resolve_github_token
from backend.settings import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

GitHubClientFactory = Callable[[str], GitHubClient]

MONTH_NAMES = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)
ACTIVITY_MONTHS = 6
MONTHLY_PR_LIMIT = 100


@dataclass(frozen=True)
class RepositoryCount:
    total: int
    pages_fetched: int
    truncated: bool


def default_github_factory(settings: Settings) -> GitHubClientFactory:
    def factory(token: str) -> GitHubClient:
        return GitHubClient.from_settings(token, settings)

    return factory


def parse_github_datetime(raw_value: str) -> datetime:
    return datetime.fromisoformat(raw_value.replace("Z", "+00:00"))


def shift_months(moment: datetime, months: int) -> datetime:
    """Move a datetime by whole calendar months, clamping the day of month."""

    month_index = moment.year * 12 + moment.month - 1 + months
    year, month_zero = divmod(month_index, 12)
    month = month_zero + 1
    day = min(moment.day, monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def activity_months(now: datetime, count: int = ACTIVITY_MONTHS) -> list[tuple[int, int]]:
    """Return (year, month) pairs ending at the current month, oldest first."""

    first_of_month = now.replace(day=1)
    months: list[tuple[int, int]] = []
    for offset in range(count - 1, -1, -1):
        shifted = shift_months(first_of_month, -offset)
        months.append((shifted.year, shifted.month))
    return months


def month_name(moment: date) -> str:
    return MONTH_NAMES[moment.month - 1]


def _fallback(report: str, error: StatsError, value: T) -> T:
    if isinstance(error, Unauthorized):
        logger.info("%s requested without a session", report)
    else:
        logger.warning(
            "Error building %s: %s", report, error, exc_info=error.cause
        )
    return value


def open_github(factory: GitHubClientFactory, token: str) -> Result[GitHubClient]:
    try:
        return Ok(factory(token))
    except Exception as exc:
        return Err(UpstreamFailure("GitHub client setup failed", exc))


def fetch_login(github: GitHubClient) -> Result[str]:
    try:
        user = github.get_authenticated_user()
        return Ok(str(user["login"]))
    except Exception as exc:
        return Err(UpstreamFailure("GitHub user request failed", exc))


def count_repositories(
    github: GitHubClient, page_size: int, max_pages: int
) -> Result[RepositoryCount]:
    """Count every repository visible to the token owner, page by page.

    Stops at the first empty page. Reaching ``max_pages`` first marks the
    count as truncated and logs a warning.
    """

    total = 0
    pages_fetched = 0
    try:
        for page in range(1, max(1, max_pages) + 1):
            repos = github.list_repos_for_authenticated_user(
                page=page, per_page=page_size, sort="created", direction="desc"
            )
            pages_fetched += 1
            if not repos:
                return Ok(RepositoryCount(total, pages_fetched, truncated=False))
            total += len(repos)
    except Exception as exc:
        return Err(UpstreamFailure("GitHub repository listing failed", exc))

    logger.warning(
        "Repository listing hit the %d page limit, total of %d is truncated",
        max_pages,
        total,
    )
    return Ok(RepositoryCount(total, pages_fetched, truncated=True))


def count_connected_repositories(db: Session, user_id: str) -> Result[int]:
    try:
        total = db.scalar(
            select(func.count(Repository.id)).where(Repository.user_id == user_id)
        )
    except Exception as exc:
        return Err(StoreFailure("Repository count failed", exc))
    return Ok(total or 0)


def count_reviews(db: Session, user_id: str) -> Result[int]:
    try:
        total = db.scalar(
            select(func.count(Review.id))
            .join(Review.repository)
            .where(Repository.user_id == user_id)
        )
    except Exception as exc:
        return Err(StoreFailure("Review count failed", exc))
    return Ok(total or 0)


def list_review_dates(
    db: Session, user_id: str, since: datetime
) -> Result[list[datetime]]:
    try:
        created = db.scalars(
            select(Review.created_at)
            .join(Review.repository)
            .where(Repository.user_id == user_id)
            .where(Review.created_at >= since)
        ).all()
    except Exception as exc:
        return Err(StoreFailure("Review listing failed", exc))
    return Ok(list(created))


def count_authored_pull_requests(github: GitHubClient, login: str) -> Result[int]:
    """Read the reported total of PRs authored by ``login``.

    Only one item is requested; the API's ``total_count`` is the answer.
    """

    try:
        result = github.search_issues_and_pull_requests(
            f"author:{login} type:pr", per_page=1
        )
        return Ok(int(result["total_count"]))
    except Exception as exc:
        return Err(UpstreamFailure("GitHub pull request search failed", exc))


def list_pull_request_dates(
    github: GitHubClient, login: str, since: date
) -> Result[list[datetime]]:
    try:
        result = github.search_issues_and_pull_requests(
            f"author:{login} type:pr created:>{since.isoformat()}",
            per_page=MONTHLY_PR_LIMIT,
        )
        created = [
            parse_github_datetime(item["created_at"])
            for item in result["items"]
            if isinstance(item.get("created_at"), str)
        ]
    except Exception as exc:
        return Err(UpstreamFailure("GitHub pull request search failed", exc))
    return Ok(created)


def get_contribution_stats(
    auth_session: UserSession | None,
    db: Session,
    settings: Settings,
    github_factory: GitHubClientFactory | None = None,
    now: datetime | None = None,
) -> ContributionStats | None:
    """Build the contribution heatmap for the session's GitHub account."""

    report = "contribution stats"
    token = resolve_github_token(db, auth_session)
    if isinstance(token, Err):
        return _fallback(report, token.error, None)

    factory = github_factory or default_github_factory(settings)
    client = open_github(factory, token.value)
    if isinstance(client, Err):
        return _fallback(report, client.error, None)

    with client.value as github:
        login = fetch_login(github)
        if isinstance(login, Err):
            return _fallback(report, login.error, None)

        calendar = fetch_user_contributions(github, login.value, now)

    if calendar is None:
        return None

    return ContributionStats(
        contributions=flatten_calendar(calendar),
        total_contributions=calendar.total_contributions,
    )


def get_dashboard_stats(
    auth_session: UserSession | None,
    db: Session,
    settings: Settings,
    github_factory: GitHubClientFactory | None = None,
    now: datetime | None = None,
) -> DashboardSummary:
    """Build the dashboard counters, or all zeros when anything fails."""

    report = "dashboard stats"
    token = resolve_github_token(db, auth_session)
    if isinstance(token, Err):
        return _fallback(report, token.error, DashboardSummary())
    user_id = auth_session.user_id

    factory = github_factory or default_github_factory(settings)
    client = open_github(factory, token.value)
    if isinstance(client, Err):
        return _fallback(report, client.error, DashboardSummary())

    with client.value as github:
        login = fetch_login(github)
        if isinstance(login, Err):
            return _fallback(report, login.error, DashboardSummary())

        repos = count_repositories(
            github, settings.repo_page_size, settings.max_repo_pages
        )
        if isinstance(repos, Err):
            return _fallback(report, repos.error, DashboardSummary())

        calendar = fetch_user_contributions(github, login.value, now)

        connected = count_connected_repositories(db, user_id)
        if isinstance(connected, Err):
            return _fallback(report, connected.error, DashboardSummary())

        reviews = count_reviews(db, user_id)
        if isinstance(reviews, Err):
            return _fallback(report, reviews.error, DashboardSummary())

        prs = count_authored_pull_requests(github, login.value)
        if isinstance(prs, Err):
            return _fallback(report, prs.error, DashboardSummary())

    return DashboardSummary(
        total_commits=calendar.total_contributions if calendar else 0,
        total_prs=prs.value,
        total_reviews=reviews.value,
        total_repos=repos.value.total,
        total_connected_repos=connected.value,
    )


def get_monthly_activity(
    auth_session: UserSession | None,
    db: Session,
    settings: Settings,
    github_factory: GitHubClientFactory | None = None,
    now: datetime | None = None,
) -> list[MonthlyActivity]:
    """Build six monthly buckets of commits, PRs and reviews, oldest first.

    Buckets are keyed by month name only, so anything dated in a matching
    month is counted regardless of its year.
    """

    report = "monthly activity"
    token = resolve_github_token(db, auth_session)
    if isinstance(token, Err):
        return _fallback(report, token.error, [])
    user_id = auth_session.user_id

    moment = now or datetime.now(UTC)
    cutoff = shift_months(moment, -ACTIVITY_MONTHS)

    factory = github_factory or default_github_factory(settings)
    client = open_github(factory, token.value)
    if isinstance(client, Err):
        return _fallback(report, client.error, [])

    with client.value as github:
        login = fetch_login(github)
        if isinstance(login, Err):
            return _fallback(report, login.error, [])

        calendar = fetch_user_contributions(github, login.value, moment)
        if calendar is None:
            return []

        buckets: dict[str, MonthlyActivity] = {}
        for _, month in activity_months(moment):
            name = MONTH_NAMES[month - 1]
            buckets[name] = MonthlyActivity(name=name)

        for week in calendar.weeks:
            for day in week.contribution_days:
                bucket = buckets.get(month_name(day.date))
                if bucket is not None:
                    bucket.commits += day.contribution_count

        review_dates = list_review_dates(db, user_id, cutoff)
        if isinstance(review_dates, Err):
            return _fallback(report, review_dates.error, [])
        for created_at in review_dates.value:
            bucket = buckets.get(month_name(created_at))
            if bucket is not None:
                bucket.reviews += 1

        pr_dates = list_pull_request_dates(github, login.value, cutoff.date())
        if isinstance(pr_dates, Err):
            return _fallback(report, pr_dates.error, [])
        for created_at in pr_dates.value:
            bucket = buckets.get(month_name(created_at))
            if bucket is not None:
                bucket.prs += 1

    return list(buckets.values())
