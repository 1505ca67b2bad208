"""NodeMesh REST API -- chat routing served at localhost:3001."""

from __future__ import annotations

import os
import platform
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from nodemesh import __version__
from nodemesh.log import logger
from nodemesh.routes import error_response, get_dispatcher

_start_time: float = time.time()

_DEFAULT_ORIGINS = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    global _start_time
    _start_time = time.time()

    from nodemesh.intelligence.chat import Dispatcher
    from nodemesh.state import RouterContext

    if getattr(app.state, "dispatcher", None) is None:
        app.state.dispatcher = Dispatcher.from_config(RouterContext.from_config())
    logger.info("NodeMesh router started")

    yield

    logger.info("NodeMesh router stopped")


def _allowed_origins() -> list[str]:
    extra = os.environ.get("NODEMESH_CORS_ORIGINS", "")
    return _DEFAULT_ORIGINS + [o.strip() for o in extra.split(",") if o.strip()]


# ---------------------------------------------------------------------------
# App creation + router mounting
# ---------------------------------------------------------------------------

app = FastAPI(
    title="NodeMesh",
    description="Conversational request router -- weather, news and general chat",
    version=__version__,
    lifespan=_lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins(),
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["*"],
)

from nodemesh.routes.chat import router as chat_router  # noqa: E402

app.include_router(chat_router)


# ---------------------------------------------------------------------------
# Error handling
# ---------------------------------------------------------------------------

@app.exception_handler(Exception)
async def _global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch unhandled exceptions and return structured JSON instead of HTML 500."""
    logger.error("Unhandled exception on %s %s: %s", request.method, request.url.path, exc, exc_info=True)
    return error_response(500, "Processing failed")


@app.exception_handler(404)
async def _not_found_handler(request: Request, exc: Exception) -> JSONResponse:
    return error_response(404, "Not found", f"{request.url.path} does not exist")


# ---------------------------------------------------------------------------
# Core endpoints
# ---------------------------------------------------------------------------

@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/status")
def status(request: Request) -> dict:
    dispatcher = get_dispatcher(request)
    return {
        "agent": "nodemesh",
        "version": __version__,
        "hostname": platform.node(),
        "python_version": platform.python_version(),
        "sessions": len(dispatcher.context.memory),
        "uptime_seconds": round(time.time() - _start_time, 1),
    }
