"""Completion client -- one call, many candidate models.

Walks an ordered, deduplicated list of model identifiers and tags every
attempt with an Outcome. The tag alone decides what happens next:

    SUCCEEDED     -> return the text
    RATE_LIMITED  -> sleep the cooldown, move to the next candidate
    UNAVAILABLE   -> move to the next candidate immediately
    TRANSPORT     -> record the error, move to the next candidate
    FATAL         -> stop and raise MalformedRequestError

The list is walked once; a rate limit never restarts it.
"""

from __future__ import annotations

import enum
import time
from typing import Protocol, Sequence

from nodemesh.llm.errors import (
    AllBackendsExhausted, CompletionDisabledError, MalformedRequestError, TransportError,
)
from nodemesh.log import logger
from nodemesh.models import ConversationTurn


class Outcome(enum.Enum):
    SUCCEEDED = "succeeded"
    RATE_LIMITED = "rate_limited"
    UNAVAILABLE = "unavailable"
    FATAL = "fatal"
    TRANSPORT = "transport"


_UNAVAILABLE_STATUSES = {404, 500, 502, 503, 504}
_FATAL_STATUSES = {400, 413, 422}


def classify_status(status: int | None) -> Outcome:
    """Map a TransportError status onto the retry policy."""
    if status == 429:
        return Outcome.RATE_LIMITED
    if status in _UNAVAILABLE_STATUSES:
        return Outcome.UNAVAILABLE
    if status in _FATAL_STATUSES:
        return Outcome.FATAL
    return Outcome.TRANSPORT


class Backend(Protocol):
    def generate(
        self,
        conversation: list[ConversationTurn],
        model_id: str,
        max_output_tokens: int | None = None,
        system: str | None = None,
    ) -> str: ...


class CompletionClient:
    """Retry/fallback wrapper around a single Backend."""

    def __init__(
        self,
        backend: Backend | None,
        model: str,
        fallback_models: Sequence[str] = (),
        enabled: bool = True,
        rate_limit_cooldown: float = 2.0,
    ) -> None:
        self._backend = backend
        self._model = model
        self._fallback_models = list(fallback_models)
        self._enabled = enabled and backend is not None
        self._cooldown = max(0.0, rate_limit_cooldown)

    @classmethod
    def from_config(cls, cfg: dict | None = None) -> "CompletionClient":
        """Build a client from the ``llm`` config section.

        A missing API key leaves the client disabled instead of failing, so
        every caller drops to its deterministic fallback.
        """
        if cfg is None:
            from nodemesh.config.loader import get_llm_config
            cfg = get_llm_config()

        api_key = cfg.get("api_key", "")
        enabled = bool(cfg.get("enabled", True))
        backend = None
        if enabled and api_key:
            from nodemesh.llm.backend import OpenAICompatibleBackend
            backend = OpenAICompatibleBackend(
                api_key=api_key,
                base_url=cfg.get("base_url") or None,
                timeout=float(cfg.get("timeout_seconds", 15)),
                temperature=float(cfg.get("temperature", 0.7)),
            )
        elif enabled:
            logger.warning("No completion API key configured, running with deterministic fallbacks only")

        return cls(
            backend=backend,
            model=cfg.get("model", "llama-3.3-70b-versatile"),
            fallback_models=cfg.get("fallback_models", []),
            enabled=enabled,
            rate_limit_cooldown=float(cfg.get("rate_limit_cooldown_seconds", 2)),
        )

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def model(self) -> str:
        return self._model

    def candidates(self, preferred_model: str | None = None) -> list[str]:
        """Preferred model first, then configured fallbacks, duplicates removed in order."""
        ordered = [preferred_model or self._model, *self._fallback_models]
        seen: set[str] = set()
        result = []
        for name in ordered:
            if name and name not in seen:
                seen.add(name)
                result.append(name)
        return result

    def complete(
        self,
        prompt_or_conversation: str | Sequence[ConversationTurn],
        preferred_model: str | None = None,
        max_output_tokens: int | None = None,
        system: str | None = None,
    ) -> str:
        """Return the first non-empty completion across the candidate chain.

        Raises:
            CompletionDisabledError: completions are switched off or unconfigured.
            MalformedRequestError: the backend rejected the request shape.
            AllBackendsExhausted: every candidate failed.
        """
        if not self._enabled or self._backend is None:
            raise CompletionDisabledError("Completion backend is disabled")

        if isinstance(prompt_or_conversation, str):
            conversation = [ConversationTurn(role="user", text=prompt_or_conversation)]
        else:
            conversation = list(prompt_or_conversation)

        last_error: Exception | None = None
        for model_id in self.candidates(preferred_model):
            outcome, text, error = self._attempt(conversation, model_id, max_output_tokens, system)

            if outcome is Outcome.SUCCEEDED:
                return text
            if error is not None:
                last_error = error

            if outcome is Outcome.RATE_LIMITED:
                logger.warning("Rate limited on %s, cooling down %.1fs", model_id, self._cooldown)
                time.sleep(self._cooldown)
            elif outcome is Outcome.UNAVAILABLE:
                logger.warning("Model %s unavailable, trying next candidate", model_id)
            elif outcome is Outcome.FATAL:
                logger.error("Backend rejected request on %s: %s", model_id, error)
                raise MalformedRequestError(str(error)) from error
            else:
                logger.warning("Transport fault on %s: %s", model_id, error)

        if last_error is not None:
            raise AllBackendsExhausted(f"All candidate models failed: {last_error}") from last_error
        raise AllBackendsExhausted("All candidate models failed")

    def _attempt(
        self,
        conversation: list[ConversationTurn],
        model_id: str,
        max_output_tokens: int | None,
        system: str | None,
    ) -> tuple[Outcome, str, Exception | None]:
        """Run one backend call and tag the result."""
        try:
            text = self._backend.generate(
                conversation, model_id, max_output_tokens=max_output_tokens, system=system,
            )
        except TransportError as e:
            return classify_status(e.status), "", e
        except Exception as e:
            return Outcome.TRANSPORT, "", e

        if not text or not text.strip():
            return Outcome.TRANSPORT, "", TransportError(f"{model_id}: empty completion")
        return Outcome.SUCCEEDED, text, None
