"""Health check endpoints."""

from fastapi import APIRouter, Request
from pydantic import BaseModel
from sqlalchemy import text

from taleforger.api.deps import AppSettings
from taleforger.models.database import get_engine

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    generator: str
    database: str


@router.get("")
async def read_root() -> dict:
    """Confirm the API is online."""
    return {"message": "Tale-Forger API is running"}


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request, settings: AppSettings) -> HealthResponse:
    """Check application health status.

    Returns:
        Health status including generation client and database connectivity.
    """
    generator_status = "healthy"
    if getattr(request.app.state, "story_generator", None) is None:
        generator_status = "not configured"

    db_status = "healthy"
    try:
        engine = get_engine()
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except RuntimeError:
        db_status = "not initialized"
    except Exception:
        db_status = "error"

    return HealthResponse(
        status="healthy" if generator_status == "healthy" and db_status == "healthy" else "degraded",
        version=settings.app_version,
        generator=generator_status,
        database=db_status,
    )
