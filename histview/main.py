# histview/main.py
"""
main.py

Purpose:
  FastAPI application for the historical telemetry viewer.

Lifecycle:
  - startup: configure logging, start the viewer at the default range class
    (first fetch + polling timer).
  - shutdown: stop polling, drop any in-flight fetch, close the transport.

Run:
  uvicorn histview.main:app --reload --port 8000
"""
from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from histview.api import routes_export, routes_health, routes_viewer, routes_ws
from histview.deps import get_settings, get_transport, get_viewer
from histview.errors import InvalidRangeClass

logger = logging.getLogger("histview")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.log_level)
    viewer = get_viewer()
    viewer.start()
    logger.info(
        "Viewer started (range=%s, demo=%s, upstream=%s)",
        viewer.range_class.value,
        settings.demo_mode,
        settings.upstream_url,
    )
    try:
        yield
    finally:
        await viewer.close()
        await get_transport().aclose()
        logger.info("Viewer stopped")


app = FastAPI(
    title="histview",
    version="0.1.0",
    description="Historical telemetry viewer: windowing, downsampling and live refresh.",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.exception_handler(InvalidRangeClass)
async def invalid_range_handler(request: Request, exc: InvalidRangeClass) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": str(exc)})


app.include_router(routes_health.router, tags=["health"])
app.include_router(routes_viewer.router, prefix="/viewer", tags=["viewer"])
app.include_router(routes_export.router, prefix="/export", tags=["export"])
app.include_router(routes_ws.router, tags=["ws"])
