from datetime import datetime, timezone

from fastapi import APIRouter
from pydantic import BaseModel, Field

from app.core.config import get_settings


router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    """
    Response schema for the health check endpoint.
    """

    status: str = Field(
        ...,
        description="Overall health status of the service.",
        examples=["healthy"],
    )
    app_name: str = Field(
        ...,
        description="Human-friendly name of the running application.",
        examples=["Meeting Intake Service"],
    )
    environment: str = Field(
        ...,
        description="Current deployment environment (local/dev/stage/prod).",
        examples=["local"],
    )
    version: str = Field(..., examples=["1.0.0"])
    meetings_source: str = Field(
        ...,
        description="Configured source of the admin meeting list (webhook/sheets).",
        examples=["webhook"],
    )
    timestamp_utc: datetime = Field(
        ...,
        description="Server-side timestamp (UTC) at which this health check was generated.",
        examples=["2025-01-01T10:30:00Z"],
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check for the meeting intake service",
    description=(
        "Lightweight endpoint to verify that the backend is up and responding.\n\n"
        "It does **not** call the workflow engine or the spreadsheet, so it stays "
        "reliable when those are degraded."
    ),
)
async def health_check() -> HealthResponse:
    settings = get_settings()
    return HealthResponse(
        status="healthy",
        app_name=settings.APP_NAME,
        environment=settings.APP_ENV,
        version=settings.APP_VERSION,
        meetings_source=settings.MEETINGS_SOURCE,
        timestamp_utc=datetime.now(tz=timezone.utc),
    )
