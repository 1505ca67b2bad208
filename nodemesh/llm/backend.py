"""Wire adapter for OpenAI-compatible chat completion endpoints.

Groq is the default target (https://api.groq.com/openai/v1), but any
endpoint speaking the OpenAI chat completions protocol works. The SDK's
own retries are turned off: CompletionClient owns the fallback policy.
"""

from __future__ import annotations

import threading
from typing import Any

from nodemesh.llm.errors import TransportError
from nodemesh.log import logger
from nodemesh.models import ConversationTurn

_ROLE_MAP = {"user": "user", "agent": "assistant"}


class OpenAICompatibleBackend:
    """Translate ConversationTurn lists into chat.completions calls."""

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        timeout: float = 15,
        temperature: float = 0.7,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url
        self._timeout = timeout
        self._temperature = temperature
        self._client: Any = None
        self._client_lock = threading.Lock()

    def _get_client(self) -> Any:
        with self._client_lock:
            if self._client is None:
                from openai import OpenAI
                self._client = OpenAI(
                    api_key=self._api_key,
                    base_url=self._base_url,
                    timeout=self._timeout,
                    max_retries=0,
                )
            return self._client

    @staticmethod
    def build_messages(conversation: list[ConversationTurn], system: str | None = None) -> list[dict]:
        messages: list[dict] = []
        if system:
            messages.append({"role": "system", "content": system})
        for turn in conversation:
            messages.append({"role": _ROLE_MAP[turn.role], "content": turn.text})
        return messages

    def generate(
        self,
        conversation: list[ConversationTurn],
        model_id: str,
        max_output_tokens: int | None = None,
        system: str | None = None,
    ) -> str:
        """Run one completion. Raises TransportError carrying the HTTP status on failure."""
        import openai

        kwargs: dict[str, Any] = {
            "model": model_id,
            "messages": self.build_messages(conversation, system),
            "temperature": self._temperature,
        }
        if max_output_tokens:
            kwargs["max_tokens"] = max_output_tokens

        try:
            response = self._get_client().chat.completions.create(**kwargs)
        except openai.APIStatusError as e:
            raise TransportError(f"{model_id}: {e.message}", status=e.status_code) from e
        except openai.APITimeoutError as e:
            raise TransportError(f"{model_id}: request timed out") from e
        except openai.APIConnectionError as e:
            raise TransportError(f"{model_id}: connection failed ({e})") from e
        except openai.OpenAIError as e:
            raise TransportError(f"{model_id}: {e}") from e

        choices = getattr(response, "choices", None) or []
        if not choices:
            logger.debug("Backend returned no choices for %s", model_id)
            return ""
        message = getattr(choices[0], "message", None)
        return (getattr(message, "content", None) or "").strip()
