# src/agora_stage/main.py
"""ASGI entry point: builds the FastAPI app and wires the v1 routers."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from agora_stage.api.v1 import (
    communities_router,
    notifications_router,
    questions_router,
    users_router,
    votes_router,
)
from agora_stage.core.settings import settings
from agora_stage.services.errors import EngineError, Unauthenticated

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

API_DESCRIPTION = "Q&A forum with vote-driven reputation"

app = FastAPI(
    title=settings.app_name,
    description=API_DESCRIPTION,
    version=settings.app_version,
    debug=settings.debug,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)
app.add_middleware(GZipMiddleware, minimum_size=1024)

for router in (
    votes_router,
    questions_router,
    communities_router,
    notifications_router,
    users_router,
):
    app.include_router(router, prefix="/api/v1")


@app.exception_handler(EngineError)
async def engine_error_handler(_request: Request, exc: EngineError) -> JSONResponse:
    """Render service-layer errors as ``{"detail": ...}`` with the error's status."""
    if exc.status_code >= 500:
        logger.error("Request failed: %s", exc.detail)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=headers,
    )


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Name, version and documentation links."""
    return {
        "name": "Agora API",
        "version": settings.app_version,
        "description": API_DESCRIPTION,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("agora_stage.main:app", host="127.0.0.1", port=8000, reload=settings.debug)
