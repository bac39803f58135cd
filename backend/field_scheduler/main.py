"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from field_scheduler.config import Settings, settings
from field_scheduler.core.errors import InitializationError, SchedulerError, status_for
from field_scheduler.routers import blackouts, feed, holidays, reservations, updates, users
from field_scheduler.services.notifier import ChangeNotifier, WebSocketBroadcaster
from field_scheduler.services.state import AppState
from field_scheduler.services.year_watch import ForceExit, RolloverCallback, YearWatch
from field_scheduler.util.exit import exit_after_grace, request_shutdown

logger = logging.getLogger(__name__)


def create_app(
    app_settings: Optional[Settings] = None,
    notifier: Optional[ChangeNotifier] = None,
    on_rollover: RolloverCallback = request_shutdown,
    force_exit: ForceExit = exit_after_grace,
) -> FastAPI:
    app_settings = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        state = AppState(app_settings, notifier=notifier or WebSocketBroadcaster())
        app.state.scheduler = state
        try:
            await state.load()
        except InitializationError:
            logger.exception("Error initializing data")
            force_exit(1, app_settings.SHUTDOWN_GRACE_SECONDS)
            raise

        watch = YearWatch(
            state,
            on_rollover,
            app_settings.YEAR_CHECK_INTERVAL_SECONDS,
            grace=app_settings.SHUTDOWN_GRACE_SECONDS,
            force_exit=force_exit,
        )
        watch.start()
        try:
            yield
        finally:
            await watch.stop()
            logger.info("Scheduler for %s stopped", state.year)

    app = FastAPI(
        title="Practice Field Scheduler",
        description="Reservation scheduler for teams sharing a practice field",
        version="0.1.0",
        lifespan=lifespan,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.CORS_ORIGINS.split(","),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(SchedulerError)
    async def scheduler_error_handler(request: Request, exc: SchedulerError):
        return JSONResponse(status_code=status_for(exc), content={"detail": str(exc)})

    # Register routers
    app.include_router(reservations.router, prefix="/api/reservations", tags=["Reservations"])
    app.include_router(blackouts.router, prefix="/api/blackouts", tags=["Blackouts"])
    app.include_router(blackouts.events_router, prefix="/api/site-events", tags=["SiteEvents"])
    app.include_router(holidays.router, prefix="/api/holidays", tags=["Holidays"])
    app.include_router(users.router, prefix="/api/users", tags=["Users"])
    app.include_router(feed.router, prefix="/api", tags=["Feed"])
    app.include_router(updates.router)

    @app.get("/api/health")
    def health_check():
        return {"status": "ok"}

    return app


logging.basicConfig(level=settings.LOG_LEVEL)
app = create_app()
