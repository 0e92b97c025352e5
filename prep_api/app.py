"""Main FastAPI application with modularized routes."""
import asyncio

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.logging_setup import setup_console_logging
from prep_api.config import CORS_ORIGINS
from prep_api.database import init_db
from prep_api.routes import attempts, auth, bookmarks, questions, sessions
from prep_api.services.cleanup_service import schedule_sessions_cleanup
from prep_api.services.session_registry import registry
from prep_api.utils import utc_now

setup_console_logging()

app = FastAPI(title="ECET Prep API")

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

_background: list[asyncio.Task[None]] = []


# Startup events
@app.on_event("startup")
async def startup_events() -> None:
    """Initialize database and schedule cleanup tasks on startup."""
    init_db()
    _background.append(schedule_sessions_cleanup(registry))


@app.on_event("shutdown")
async def shutdown_events() -> None:
    """Stop background tasks and release running sessions."""
    for task in _background:
        task.cancel()
    _background.clear()
    await registry.close_all()


@app.get("/api/health")
def health() -> dict[str, str]:
    return {"status": "ok", "time": utc_now()}


# Include routers
app.include_router(auth.router)
app.include_router(sessions.router)
app.include_router(attempts.router)
app.include_router(bookmarks.router)
app.include_router(questions.router)
