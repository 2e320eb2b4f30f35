from fastapi import APIRouter
from fastapi import HTTPException
from sqlalchemy import text

from backend.db import get_engine
from backend.settings import Settings


router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
def health_live() -> dict[str, str]:
    """Return a liveness response for health checks."""

    return {"status": "ok"}


@router.get("/db")
def health_db() -> dict[str, str]:
    """Check that the configured database accepts connections."""

    settings = Settings()
    database_url = settings.database_url
    if not database_url:
        raise HTTPException(status_code=500, detail="DATABASE_URL is not set")

    try:
        with get_engine(database_url).connect() as connection:
            connection.execute(text("SELECT 1"))
    except Exception as exc:
        raise HTTPException(
            status_code=500, detail="Database connection failed"
        ) from exc

    return {"status": "ok"}
