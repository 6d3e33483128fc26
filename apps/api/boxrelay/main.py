"""FastAPI application for the collaborative text box relay."""
from __future__ import annotations

import asyncio
import base64
import contextlib
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse, Response

from .core.config import settings
from .routers import boxes, ws
from .services.registry import registry
from .services.sweeper import run_eviction_loop

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    sweeper = asyncio.create_task(
        run_eviction_loop(
            registry,
            interval=settings.eviction_interval_seconds,
            max_age=settings.box_retention_seconds,
        )
    )
    logger.info("Box relay started (%s)", settings.app_env)
    try:
        yield
    finally:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper
        logger.info("Box relay stopped")


app = FastAPI(title="BoxRelay API", version="0.1.0", lifespan=lifespan)

if settings.cors_allow_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(boxes.router)
app.include_router(ws.router)


@app.head("/", tags=["meta"])
async def index_head() -> Response:
    """Fast health checks issue HEAD /; answer with 200 without creating a box."""

    return Response(status_code=200)


FAVICON_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR4nGMAAQAABQABDQottAAAAABJRU5ErkJggg=="
)


@app.get("/api/health", tags=["meta"])
async def health() -> dict[str, str]:
    """Report that the relay process is up and serving."""

    return {"status": "ok"}


@app.head("/api/health", tags=["meta"])
async def health_head() -> Response:
    """Status-only variant of the health check for uptime monitors."""

    return Response(status_code=200)


@app.get("/robots.txt", response_class=PlainTextResponse, include_in_schema=False)
async def robots() -> PlainTextResponse:
    """Keep crawlers out of shared boxes and the box API."""

    return PlainTextResponse("User-agent: *\nDisallow: /box/\nDisallow: /api/")


@app.get("/favicon.ico", include_in_schema=False)
async def favicon() -> Response:
    """One-pixel PNG so browsers opening a box stop requesting an icon."""

    return Response(content=FAVICON_BYTES, media_type="image/png")


def run() -> None:
    """Console entry point: serve the app with uvicorn."""

    logger.info("Starting BoxRelay on %s:%s", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
