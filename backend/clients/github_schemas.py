from datetime import date

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic.alias_generators import to_camel


class GitHubModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CalendarDay(GitHubModel):
    """Single day of the GitHub contribution calendar."""

    date: date
    contribution_count: int = Field(ge=0)
    color: str | None = None


class CalendarWeek(GitHubModel):
    contribution_days: list[CalendarDay]


class ContributionCalendar(GitHubModel):
    """Contribution calendar exactly as returned by GitHub GraphQL."""

    total_contributions: int = Field(ge=0)
    weeks: list[CalendarWeek]
