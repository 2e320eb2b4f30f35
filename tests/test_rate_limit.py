from fastapi.testclient import TestClient

from backend.core.middleware import SlidingWindowLimiter
from backend.main import create_app


def test_stats_endpoints_rate_limited_after_threshold(monkeypatch) -> None:
    """Rate limiter blocks repeated requests to /stats endpoints."""

    monkeypatch.setenv("DATABASE_URL", "sqlite+pysqlite:///:memory:")
    monkeypatch.setenv("RATE_LIMIT_PER_MINUTE", "1")
    monkeypatch.setenv("RATE_LIMIT_WINDOW_SECONDS", "60")
    app = create_app()
    client = TestClient(app)

    headers = {"X-Forwarded-For": "203.0.113.10"}

    first = client.get("/stats/dashboard", headers=headers)
    second = client.get("/stats/monthly", headers=headers)

    assert first.status_code == 200
    assert second.status_code == 429
    assert second.headers["Retry-After"]


def test_limit_is_tracked_per_client(monkeypatch) -> None:
    """Each forwarded client address gets its own budget."""

    monkeypatch.setenv("DATABASE_URL", "sqlite+pysqlite:///:memory:")
    monkeypatch.setenv("RATE_LIMIT_PER_MINUTE", "1")
    app = create_app()
    client = TestClient(app)

    first = client.get("/stats/monthly", headers={"X-Forwarded-For": "203.0.113.10"})
    second = client.get("/stats/monthly", headers={"X-Forwarded-For": "198.51.100.7"})

    assert first.status_code == 200
    assert second.status_code == 200


def test_non_stats_routes_not_rate_limited(monkeypatch) -> None:
    """Rate limiter does not affect routes outside /stats."""

    monkeypatch.setenv("RATE_LIMIT_PER_MINUTE", "1")
    monkeypatch.setenv("RATE_LIMIT_WINDOW_SECONDS", "60")
    app = create_app()
    client = TestClient(app)

    first = client.get("/health/live")
    second = client.get("/health/live")

    assert first.status_code == 200
    assert second.status_code == 200


def test_limiter_releases_hits_after_window() -> None:
    """Hits older than the window no longer count against the key."""

    current = [100.0]
    limiter = SlidingWindowLimiter(2, 60, clock=lambda: current[0])

    assert limiter.acquire("203.0.113.10") is None
    current[0] = 110.0
    assert limiter.acquire("203.0.113.10") is None
    current[0] = 130.0
    assert limiter.acquire("203.0.113.10") == 30
    assert limiter.acquire("198.51.100.7") is None

    current[0] = 160.0
    assert limiter.acquire("203.0.113.10") is None
