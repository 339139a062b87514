"""Main FastAPI application."""
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.core.logging import setup_logging
from app.db.database import init_db
from app.api import agents, auth, billing, health, web_calls


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    setup_logging()
    await init_db()
    yield


app = FastAPI(
    title="Voice Agent Call Dashboard",
    description="Create and manage AI voice-agent web calls, with usage billing",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health.router, tags=["health"])
app.include_router(auth.router, tags=["auth"])
app.include_router(agents.router, tags=["agents"])
app.include_router(web_calls.router, tags=["web calls"])
app.include_router(billing.router, tags=["billing"])


@app.get("/")
async def root():
    """Service info."""
    return {
        "message": "Voice Agent Call Dashboard API",
        "version": "0.1.0",
    }
