"""NodeMesh API sub-routers.

Shared helpers and router modules for the FastAPI application.
"""

from __future__ import annotations

import threading

from fastapi import Request
from fastapi.responses import JSONResponse

from nodemesh.intelligence.chat import Dispatcher

_dispatcher_lock = threading.Lock()


def error_response(status_code: int, message: str, detail: str | None = None) -> JSONResponse:
    """Build a consistent JSON error response."""
    body: dict = {"error": message}
    if detail:
        body["detail"] = detail
    return JSONResponse(status_code=status_code, content=body)


def get_dispatcher(request: Request) -> Dispatcher:
    """Return the app's Dispatcher, building it on first use if the lifespan did not run."""
    state = request.app.state
    dispatcher = getattr(state, "dispatcher", None)
    if dispatcher is not None:
        return dispatcher
    with _dispatcher_lock:
        dispatcher = getattr(state, "dispatcher", None)
        if dispatcher is None:
            dispatcher = Dispatcher.from_config()
            state.dispatcher = dispatcher
        return dispatcher
