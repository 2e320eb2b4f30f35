from collections.abc import Generator
from datetime import date
from datetime import datetime
from datetime import timedelta
from datetime import UTC
from typing import Any

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from backend import models
from backend.clients.github_client import GitHubClient
from backend.db import Base


NOW = datetime(2026, 3, 15, 12, 0, tzinfo=UTC)


def make_calendar(days: list[tuple[date, int]]) -> dict[str, Any]:
    """Build a GraphQL contributionCalendar payload, seven days per week."""

    weeks = []
    for start in range(0, len(days), 7):
        weeks.append(
            {
                "contributionDays": [
                    {
                        "date": day.isoformat(),
                        "contributionCount": count,
                        "color": "#ebedf0" if count == 0 else "#40c463",
                    }
                    for day, count in days[start : start + 7]
                ]
            }
        )
    return {
        "totalContributions": sum(count for _, count in days),
        "weeks": weeks,
    }


class FakeGitHub:
    """In-memory GitHub API served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.login = "octocat"
        self.user_status = 200
        self.repo_count = 0
        self.calendar: dict[str, Any] | None = make_calendar([])
        self.pr_total_count = 0
        self.pr_items: list[dict[str, Any]] = []
        self.requests: list[httpx.Request] = []
        self.failure: Exception | None = None

    @property
    def repo_page_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == "/user/repos"]

    @property
    def search_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == "/search/issues"]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.failure is not None:
            raise self.failure
        path = request.url.path

        if path == "/user":
            if self.user_status != 200:
                return httpx.Response(self.user_status, json={"message": "Bad credentials"})
            return httpx.Response(200, json={"id": 1, "login": self.login})

        if path == "/user/repos":
            page = int(request.url.params["page"])
            per_page = int(request.url.params["per_page"])
            start = (page - 1) * per_page
            end = min(start + per_page, self.repo_count)
            repos = [{"id": index, "name": f"repo-{index}"} for index in range(start, end)]
            return httpx.Response(200, json=repos)

        if path == "/search/issues":
            per_page = int(request.url.params["per_page"])
            return httpx.Response(
                200,
                json={
                    "total_count": self.pr_total_count,
                    "incomplete_results": False,
                    "items": self.pr_items[:per_page],
                },
            )

        if path == "/graphql":
            if self.calendar is None:
                return httpx.Response(200, json={"errors": [{"message": "Something went wrong"}]})
            return httpx.Response(
                200,
                json={
                    "data": {
                        "user": {
                            "contributionsCollection": {
                                "contributionCalendar": self.calendar
                            }
                        }
                    }
                },
            )

        return httpx.Response(404, json={"message": "Not Found"})

    def client(self, token: str) -> GitHubClient:
        return GitHubClient(token, transport=httpx.MockTransport(self.handler))


@pytest.fixture
def fake_github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
def session_factory() -> sessionmaker[Session]:
    test_engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    return sessionmaker(bind=test_engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def auth_session(db: Session) -> models.UserSession:
    db.add(models.User(id="user-1", name="Octo Cat", email="octocat@example.com"))
    db.add(
        models.Account(
            user_id="user-1",
            provider_id="github",
            account_id="1",
            access_token="gho_test_token",
        )
    )
    user_session = models.UserSession(
        user_id="user-1",
        token="session-token",
        expires_at=NOW + timedelta(days=3650),
    )
    db.add(user_session)
    db.commit()
    return user_session


def add_repository(db: Session, user_id: str, github_id: int) -> models.Repository:
    repository = models.Repository(
        user_id=user_id,
        github_id=github_id,
        name=f"repo-{github_id}",
        owner="octocat",
        full_name=f"octocat/repo-{github_id}",
        url=f"https://github.com/octocat/repo-{github_id}",
    )
    db.add(repository)
    db.flush()
    return repository


def add_review(db: Session, repository: models.Repository, created_at: datetime) -> None:
    db.add(
        models.Review(
            repository_id=repository.id,
            pr_number=1,
            pr_title="Add feature",
            pr_url=f"{repository.url}/pull/1",
            review="Looks good",
            status="completed",
            created_at=created_at,
        )
    )
