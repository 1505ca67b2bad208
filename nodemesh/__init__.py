from __future__ import annotations

__version__ = "0.1.0"

import threading

from nodemesh.models import ChatReply


class NodeMesh:
    """In-process router -- ask questions directly or serve the HTTP API."""

    def __init__(self, port: int = 3001) -> None:
        from nodemesh.intelligence.chat import Dispatcher
        self._port = port
        self._dispatcher = Dispatcher.from_config()
        self._server_thread: threading.Thread | None = None
        self._lock = threading.Lock()

    def ask(self, message: str, session_id: str = "") -> ChatReply:
        """Route one message through the full pipeline."""
        return self._dispatcher.handle_chat_request(message, session_id)

    def serve(self) -> None:
        """Start the API server in a background thread, sharing this router's sessions."""
        import uvicorn
        from nodemesh.api import app

        with self._lock:
            if self._server_thread is not None:
                return
            app.state.dispatcher = self._dispatcher
            self._server_thread = threading.Thread(
                target=uvicorn.run,
                kwargs={"app": app, "host": "127.0.0.1", "port": self._port, "log_level": "warning"},
                daemon=True,
            )
            self._server_thread.start()


__all__ = ["NodeMesh", "ChatReply", "__version__"]
