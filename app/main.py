import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from app.api.routes import admin, health, meeting_requests
from app.core.config import get_settings


def _configure_logging() -> None:
    root_logger = logging.getLogger()
    if root_logger.handlers:
        return
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app() -> FastAPI:
    """
    Application factory for the Meeting Intake service.
    """
    _configure_logging()
    settings = get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        description=(
            "Accepts meeting requests from a public form and forwards them to a\n"
            "workflow-automation engine, and serves an authenticated admin API that\n"
            "lists, filters, approves, rejects and reschedules those requests using\n"
            "data read back from the workflow or a spreadsheet export."
        ),
        version=settings.APP_VERSION,
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        docs_url=f"{settings.API_PREFIX}/docs",
    )

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SESSION_SECRET,
        max_age=settings.SESSION_MAX_AGE_SECONDS,
        https_only=settings.APP_ENV.lower() not in ("local", "test"),
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(health.router, prefix=settings.API_PREFIX)
    app.include_router(meeting_requests.router, prefix=settings.API_PREFIX)
    app.include_router(admin.router, prefix=settings.API_PREFIX)

    return app


app = create_app()
