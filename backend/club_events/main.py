"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from club_events.config import Settings, settings
from club_events.container import build_services
from club_events.routers import events, invitations, rsvp
from club_events.services.email_service import MailTransport


def create_app(app_settings: Settings = settings, transport: Optional[MailTransport] = None) -> FastAPI:
    """Build the application; services are created on startup and closed on shutdown."""
    logging.basicConfig(
        level=app_settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        services = await build_services(app_settings, transport=transport)
        app.state.services = services
        try:
            yield
        finally:
            await services.close()

    app = FastAPI(
        title="Club Events",
        description="Event invitations and RSVP tracking for a student club",
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

    # Register routers
    app.include_router(events.router, prefix="/api/events", tags=["Events"])
    app.include_router(invitations.router, prefix="/api/invitations", tags=["Invitations"])
    app.include_router(rsvp.router, prefix="/rsvp", tags=["RSVP"])

    @app.get("/api/health")
    async def health_check():
        enabled = app.state.services.email.available
        return {"status": "ok", "email": "enabled" if enabled else "disabled"}

    return app


app = create_app()
