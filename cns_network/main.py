"""FastAPI application entry point."""
import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from cns_network.config import settings
from cns_network.database import Base, engine

# Import routers
from cns_network.routers import chapters, connections, events, users

# Import all models so Base.metadata knows about them
from cns_network.models.user import User                  # noqa: F401
from cns_network.models.chapter import Chapter            # noqa: F401
from cns_network.models.connection import Connection      # noqa: F401
from cns_network.models.event import Event                # noqa: F401
from cns_network.models.attendee import EventAttendee     # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="CNS Network",
    description="Connections, events, RSVPs and invitations for the CNS professional network",
    version="0.1.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(users.router, prefix=f"{settings.API_PREFIX}/users", tags=["Users"])
app.include_router(chapters.router, prefix=f"{settings.API_PREFIX}/chapters", tags=["Chapters"])
app.include_router(connections.router, prefix=f"{settings.API_PREFIX}/connections", tags=["Connections"])
app.include_router(events.router, prefix=f"{settings.API_PREFIX}/events", tags=["Events"])


@app.exception_handler(SQLAlchemyError)
def storage_error_handler(request: Request, exc: SQLAlchemyError):
    """Unclassified storage faults: log server-side, answer with a generic failure."""
    logger.error("Storage error on %s %s", request.method, request.url.path, exc_info=exc)
    message = str(exc) if settings.EXPOSE_ERROR_DETAILS else "An unexpected error occurred"
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": {"kind": "Internal", "message": message}},
    )


@app.on_event("startup")
def on_startup():
    """Create database tables on startup (for SQLite dev mode)."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)


@app.get(f"{settings.API_PREFIX}/health")
def health_check():
    return {"status": "ok"}
