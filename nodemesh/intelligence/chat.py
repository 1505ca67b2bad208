"""NodeMesh dispatcher -- one request from raw message to reply.

Classifies the message, routes it to the strategy for its intent, records
the exchange in session memory and returns the reply with its metadata.
Strategies never raise; the catch-all here only guards against bugs.
"""

from __future__ import annotations

import time
from typing import Iterable

from nodemesh.intelligence.intents import IntentClassifier
from nodemesh.log import logger
from nodemesh.models import ChatReply, ConversationTurn, IntentResult
from nodemesh.state import RouterContext, resolve_session_id
from nodemesh.strategies import Strategy

GENERIC_FAILURE = "Sorry, something went wrong while processing your message. Please try again."


class EmptyMessageError(ValueError):
    """Raised for a missing or whitespace-only message."""


class Dispatcher:
    def __init__(
        self,
        context: RouterContext,
        classifier: IntentClassifier,
        strategies: dict[str, Strategy],
        max_message_chars: int = 2000,
    ) -> None:
        self.context = context
        self._classifier = classifier
        self._strategies = strategies
        self._max_message_chars = max_message_chars

    @classmethod
    def from_config(cls, context: RouterContext | None = None) -> "Dispatcher":
        """Wire every collaborator from the loaded config."""
        from nodemesh.config.loader import get_chat_config, get_llm_config, get_news_config
        from nodemesh.intelligence.signals import SignalAnalyzer
        from nodemesh.llm.completion import CompletionClient
        from nodemesh.providers.news import NewsProvider
        from nodemesh.providers.weather import WeatherProvider
        from nodemesh.strategies.general import GeneralStrategy
        from nodemesh.strategies.news import NewsStrategy
        from nodemesh.strategies.weather import WeatherStrategy

        context = context or RouterContext.from_config()
        llm_cfg = get_llm_config()
        news_cfg = get_news_config()
        completion = CompletionClient.from_config(llm_cfg)

        strategies: dict[str, Strategy] = {
            "weather": WeatherStrategy(WeatherProvider.from_config(), completion, context),
            "news": NewsStrategy(
                NewsProvider.from_config(news_cfg),
                default_region=news_cfg.get("default_region", "us"),
                page_size=int(news_cfg.get("page_size", 5)),
            ),
            "general": GeneralStrategy(
                completion,
                SignalAnalyzer(completion),
                concise_max_tokens=int(llm_cfg.get("concise_max_tokens", 500)),
                detailed_max_tokens=int(llm_cfg.get("detailed_max_tokens", 2048)),
            ),
        }
        return cls(
            context=context,
            classifier=IntentClassifier(completion),
            strategies=strategies,
            max_message_chars=int(get_chat_config().get("max_message_chars", 2000)),
        )

    def handle_chat_request(
        self,
        message: str | None,
        session_id: str | None = None,
        client_history: Iterable[ConversationTurn] | None = None,
    ) -> ChatReply:
        """Process one message.

        Raises:
            EmptyMessageError: message is missing or blank.
        """
        message = (message or "").strip()
        if not message:
            raise EmptyMessageError("Message required")

        if len(message) > self._max_message_chars:
            logger.debug("Chat message truncated from %d to %d chars", len(message), self._max_message_chars)
            message = message[:self._max_message_chars]

        sid = resolve_session_id(session_id)
        memory = self.context.memory
        if client_history:
            memory.seed(sid, client_history)

        start = time.monotonic()
        intent = IntentResult()
        try:
            intent = self._classifier.classify(message)
            if intent.location:
                self.context.remember_location(intent.location)

            history = memory.get(sid)
            strategy = self._strategies.get(intent.intent) or self._strategies["general"]
            reply = strategy.handle(message, intent, history)

            memory.append(
                sid,
                ConversationTurn(role="user", text=message),
                ConversationTurn(role="agent", text=reply),
            )
        except Exception:
            logger.error("Unhandled failure for intent %s in session %s", intent.intent, sid, exc_info=True)
            reply = GENERIC_FAILURE

        logger.info(
            "Chat handled: intent=%s session=%s latency=%.0fms",
            intent.intent, sid, (time.monotonic() - start) * 1000,
        )
        location = intent.location
        if intent.intent == "weather" and not location:
            location = self.context.last_known_location
        return ChatReply(
            reply=reply,
            intent=intent.intent,
            location=location,
            topic=intent.topic,
            session_id=sid,
        )
