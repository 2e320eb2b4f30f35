from datetime import date

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic.alias_generators import to_camel


class StatsModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ContributionDay(StatsModel):
    """Single day item used in the contribution heatmap."""

    date: date
    count: int = Field(ge=0)
    level: int = Field(ge=0, le=4)


class ContributionStats(StatsModel):
    """Flattened contribution heatmap for the authenticated user."""

    contributions: list[ContributionDay]
    total_contributions: int = Field(ge=0)


class DashboardSummary(StatsModel):
    """Headline counters shown on the dashboard."""

    total_commits: int = Field(default=0, ge=0)
    total_prs: int = Field(default=0, ge=0)
    total_reviews: int = Field(default=0, ge=0)
    total_repos: int = Field(default=0, ge=0)
    total_connected_repos: int = Field(default=0, ge=0)


class MonthlyActivity(StatsModel):
    """Commits, pull requests and reviews for one calendar month."""

    name: str
    commits: int = Field(default=0, ge=0)
    prs: int = Field(default=0, ge=0)
    reviews: int = Field(default=0, ge=0)
