"""Chat endpoints -- message routing and session inspection."""

from __future__ import annotations

from fastapi import APIRouter, Path, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from nodemesh.intelligence.chat import EmptyMessageError
from nodemesh.log import logger
from nodemesh.models import ConversationTurn
from nodemesh.routes import error_response, get_dispatcher
from nodemesh.state import resolve_session_id

router = APIRouter(tags=["chat"])

_USER_ROLES = {"user", "human"}
_AGENT_ROLES = {"agent", "model", "assistant", "bot"}


class HistoryPart(BaseModel):
    text: str = Field(default="", max_length=20000)


class HistoryItem(BaseModel):
    """A prior turn held by the client: ``{role, text}`` or ``{role, parts: [{text}]}``."""
    role: str = Field(..., max_length=32)
    text: str | None = Field(default=None, max_length=20000)
    parts: list[HistoryPart] = Field(default_factory=list, max_length=20)

    def to_turn(self) -> ConversationTurn | None:
        role = self.role.strip().lower()
        if role in _USER_ROLES:
            mapped = "user"
        elif role in _AGENT_ROLES:
            mapped = "agent"
        else:
            return None
        text = self.text if self.text is not None else "\n".join(p.text for p in self.parts)
        text = text.strip()
        if not text:
            return None
        return ConversationTurn(role=mapped, text=text)


class ChatRequest(BaseModel):
    """Validated schema for chat messages."""
    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(default="", max_length=10000)
    session_id: str = Field(default="", max_length=128, alias="sessionId")
    history: list[HistoryItem] = Field(default_factory=list, max_length=100)


@router.post("/chat", response_model=None)
def chat_endpoint(body: ChatRequest, request: Request) -> dict | JSONResponse:
    """Route one message and return the reply with its intent metadata."""
    dispatcher = get_dispatcher(request)
    client_history = [t for t in (item.to_turn() for item in body.history) if t is not None]
    try:
        result = dispatcher.handle_chat_request(body.message, body.session_id, client_history)
    except EmptyMessageError:
        return error_response(400, "Message required")
    return result.model_dump(by_alias=True)


@router.get("/sessions/{session_id}/history")
def session_history(request: Request, session_id: str = Path(max_length=128)) -> dict:
    """Turns currently held for a session (oldest first)."""
    memory = get_dispatcher(request).context.memory
    sid = resolve_session_id(session_id)
    turns = memory.get(sid)
    return {
        "sessionId": sid,
        "turns": [t.model_dump() for t in turns],
        "count": len(turns),
        "window": memory.window,
    }


@router.delete("/sessions/{session_id}")
def session_clear(request: Request, session_id: str = Path(max_length=128)) -> dict:
    """Forget a session's history."""
    sid = resolve_session_id(session_id)
    cleared = get_dispatcher(request).context.memory.clear(sid)
    logger.info("Session %s cleared=%s", sid, cleared)
    return {"status": "ok", "sessionId": sid, "cleared": cleared}
