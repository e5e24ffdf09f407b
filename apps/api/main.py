"""
Kids Catalog Discovery - FastAPI Backend
Main application entry point with health check and API routing.
"""

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import missing_catalog_keys, settings
from routers import books, health, library, videos
from services.catalog_search import build_catalog_clients

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    # Startup
    logging.basicConfig(level=getattr(logging, str(settings.LOG_LEVEL).upper(), logging.INFO))
    logger.info("Starting Kids Catalog Discovery API...")
    missing = missing_catalog_keys()
    if missing:
        logger.warning("Catalog keys not configured: %s (calls go out unauthenticated)", ", ".join(missing))

    http_client = httpx.AsyncClient(timeout=settings.UPSTREAM_TIMEOUT_SECONDS)
    app.state.catalog_clients = build_catalog_clients(http_client)
    yield
    # Shutdown
    await app.state.catalog_clients.aclose()
    await http_client.aclose()
    app.state.catalog_clients = None
    logger.info("Shutting down API...")


app = FastAPI(
    title="Kids Catalog Discovery API",
    description="Deep, deduplicated, kid-safe book and video discovery",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(books.router, prefix="/api", tags=["Books"])
app.include_router(videos.router, prefix="/api", tags=["Videos"])
app.include_router(library.router, prefix="/api/nlb", tags=["Library"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Kids Catalog Discovery API",
        "version": "0.1.0",
        "status": "running"
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.API_HOST, port=settings.API_PORT)
