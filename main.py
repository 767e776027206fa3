"""
Stage Planner - FastAPI Backend
Main application entry point
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from app.core.config import settings
from app.core.db import engine, Base
from app.api import routes_intermittent, routes_notifications, routes_public, routes_regisseur, ws

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    # Create database tables
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")
    yield
    logger.info("Application shutdown")

# Create FastAPI application
app = FastAPI(
    title="Stage Planner",
    description="Backend for event staffing between régisseurs and intermittents",
    version="1.0.0",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(routes_public.router, tags=["public"])
app.include_router(routes_regisseur.router, prefix="/regisseur", tags=["regisseur"])
app.include_router(routes_intermittent.router, prefix="/intermittent", tags=["intermittent"])
app.include_router(routes_notifications.router, prefix="/notifications", tags=["notifications"])
app.include_router(ws.router, prefix="/ws", tags=["websocket"])

# Note: Run this ASGI app directly with Uvicorn or Hypercorn. For Gunicorn,
# use `uvicorn.workers.UvicornWorker` instead of wrapping the app.

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="127.0.0.1",
        port=8000,
        reload=True
    )
