from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sprint_pilot import __version__
from sprint_pilot.application import SyncService, build_sync_service, configure_sync_service
from sprint_pilot.config import Settings, load_settings
from sprint_pilot.core.errors import (
    AuthError,
    ConfigError,
    RateLimited,
    RequestTimeout,
    SignatureError,
    SprintPilotError,
    SyncCancelled,
    UpstreamError,
)
from sprint_pilot.logging import configure_logging, get_logger
from sprint_pilot.routes import jobs, receiver, sync

logger = get_logger("app")

# Most specific first: SignatureError is an AuthError.
ERROR_STATUS: list[tuple[type[SprintPilotError], int]] = [
    (SignatureError, 401),
    (ConfigError, 500),
    (AuthError, 502),
    (RateLimited, 429),
    (RequestTimeout, 504),
    (UpstreamError, 502),
    (SyncCancelled, 409),
]


def status_for(exc: SprintPilotError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return 500


def create_app(settings: Settings | None = None, service: SyncService | None = None) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(level=settings.log_level)

    sync_service = service or build_sync_service(settings)
    configure_sync_service(sync_service)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        await sync_service.aclose()

    app = FastAPI(title="Sprint Pilot API", version=__version__, lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(SprintPilotError)
    async def handle_sprint_pilot_error(_: Request, exc: SprintPilotError) -> JSONResponse:
        status_code = status_for(exc)
        logger.warning("Request failed with %s (%d): %s", exc.kind, status_code, exc)
        return JSONResponse(status_code=status_code, content={"detail": str(exc), "kind": exc.kind})

    app.include_router(sync.router, prefix="/api")
    app.include_router(jobs.router, prefix="/api")
    app.include_router(receiver.router, prefix="/api")

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Provide a lightweight landing page for container checks."""
        return JSONResponse(
            {
                "message": "Sprint Pilot API",
                "docs": "/docs",
                "health": "/api/jobs",
            }
        )

    return app


app = create_app()
