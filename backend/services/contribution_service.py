import logging
from collections.abc import Mapping
from datetime import datetime
from datetime import timedelta
from datetime import UTC

from backend.api.schemas.stats import ContributionDay
from backend.clients.github_client import GitHubClient
from backend.clients.github_schemas import ContributionCalendar

logger = logging.getLogger(__name__)

CONTRIBUTION_WINDOW = timedelta(days=365)

CONTRIBUTIONS_QUERY = """
query($username: String!, $from: DateTime!, $to: DateTime!) {
  user(login: $username) {
    contributionsCollection(from: $from, to: $to) {
      contributionCalendar {
        totalContributions
        weeks {
          contributionDays {
            date
            contributionCount
            color
          }
        }
      }
    }
  }
}
"""


def contribution_level(count: int) -> int:
    """Map daily contribution count to a heatmap level in range 0..4."""

    if count <= 0:
        return 0
    return min(4, (count - 1) // 5 + 1)


def fetch_user_contributions(
    github: GitHubClient,
    username: str,
    now: datetime | None = None,
) -> ContributionCalendar | None:
    """Fetch the trailing one-year contribution calendar for a user.

    The window ends at the exact current instant rather than at midnight.
    Any failure is logged and reported as ``None`` so callers can degrade
    individual fields instead of aborting.
    """

    to_moment = now or datetime.now(UTC)
    from_moment = to_moment - CONTRIBUTION_WINDOW

    try:
        data = github.graphql(
            CONTRIBUTIONS_QUERY,
            {
                "username": username,
                "from": from_moment.isoformat(),
                "to": to_moment.isoformat(),
            },
        )
        user = data.get("user")
        if not isinstance(user, Mapping):
            raise ValueError("GitHub user not found")
        collection = user.get("contributionsCollection")
        if not isinstance(collection, Mapping):
            raise ValueError("GitHub contributionsCollection is missing")
        return ContributionCalendar.model_validate(
            collection.get("contributionCalendar")
        )
    except Exception:
        logger.exception("Error fetching contributions for %s", username)
        return None


def flatten_calendar(calendar: ContributionCalendar) -> list[ContributionDay]:
    """Flatten calendar weeks into one chronological list of leveled days."""

    return [
        ContributionDay(
            date=day.date,
            count=day.contribution_count,
            level=contribution_level(day.contribution_count),
        )
        for week in calendar.weeks
        for day in week.contribution_days
    ]
