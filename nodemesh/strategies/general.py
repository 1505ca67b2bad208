"""General strategy -- spiritual support for low mood, conversation otherwise.

Precedence when the creative and distress gates both fire: creative wins.
"Write me a sad poem" is a writing request, not a cry for help, so it
never reaches the spiritual-support path.
"""

from __future__ import annotations

import re

from nodemesh.intelligence.signals import SignalAnalyzer
from nodemesh.llm.completion import CompletionClient
from nodemesh.llm.errors import CompletionDisabledError
from nodemesh.llm.extract import extract_json
from nodemesh.log import logger
from nodemesh.models import ConversationTurn, IntentResult, SarcasmResult

STOCK_REPLY = "I'm having trouble thinking right now. Please try again in a moment."
DISABLED_REPLY = (
    "Conversational replies are switched off on this server. "
    "I can still help with weather and news -- try \"weather in Paris\" or \"latest tech news\"."
)

# Writing verbs only count as a request: sentence start, "can you ...", "please ...".
# "I can't explain how I feel" or "too tired to write" is not a request.
_REQUEST_LEAD = (
    r"(?:^|[.!?]\s+|\b(?:can|could|would|will)\s+you\s+|\bplease\s+|\bhelp\s+me\s+|"
    r"\bi\s+(?:need|want)\s+you\s+to\s+)"
)

_CREATIVE_PATTERN = re.compile(
    r"\b(?:essay|story|stories|poem|poetry|article|letter|script|lyrics|blog\s+post|speech)\b"
    rf"|{_REQUEST_LEAD}(?:write|compose|draft|explain|describe|elaborate)\b"
    r"|\b(?:write|compose|draft)\s+(?:me\s+)?(?:a|an|some)\b"
    r"|\b(?:in\s+depth|in-depth|in\s+detail|detailed|comprehensive|step[- ]by[- ]step)\b"
    r"|\blong\s+(?:answer|explanation|response|essay|story|poem|article|letter)\b",
    re.IGNORECASE,
)

_PERSONA = "You are NodeMesh, a helpful and friendly AI assistant."
_CONCISE = "Be concise and to the point. Prefer a few clear sentences over long explanations."
_DETAILED = (
    "The user wants detailed, comprehensive content. Write a complete, well-structured "
    "response with headings or paragraphs where they help."
)
_EMPATHY = "The user seems to be going through a hard time. Respond with warmth and gentle encouragement."

_SUPPORT_FIELDS = ("sanskrit", "transliteration", "meaning")

_SUPPORT_PROMPT = """The user is feeling low. Their message: "{message}"

Choose one comforting verse from the Bhagavad Gita that fits their situation.
Respond with ONLY a JSON object with exactly these fields:
{{"sanskrit": "<verse in Devanagari>", "transliteration": "<verse in Latin script>", "meaning": "<plain English meaning, two or three sentences, addressed to the user>"}}"""


def is_creative_request(message: str) -> bool:
    return bool(_CREATIVE_PATTERN.search(message))


def build_system_instruction(sarcasm: SarcasmResult, creative: bool, low_mood: bool = False) -> str:
    parts = [_PERSONA, _DETAILED if creative else _CONCISE]
    if sarcasm.is_sarcastic:
        meaning = sarcasm.intended_meaning or "the opposite of the literal words"
        parts.append(
            f"The user's message is sarcastic. What they actually mean: \"{meaning}\". "
            "Respond to that intended meaning with a light, good-humoured tone; "
            "do not take the literal words at face value."
        )
    if low_mood:
        parts.append(_EMPATHY)
    return " ".join(parts)


def format_support(passage: dict) -> str:
    return "\n".join([
        "I'm sorry you're feeling this way. Here is something from the Bhagavad Gita that may bring some peace:",
        "",
        f"> {passage['sanskrit']}",
        "",
        f"*{passage['transliteration']}*",
        "",
        f"**Meaning:** {passage['meaning']}",
        "",
        "You don't have to carry this alone. I'm here if you want to talk about it.",
    ])


class GeneralStrategy:
    def __init__(
        self,
        completion: CompletionClient,
        analyzer: SignalAnalyzer,
        concise_max_tokens: int = 500,
        detailed_max_tokens: int = 2048,
    ) -> None:
        self._completion = completion
        self._analyzer = analyzer
        self._concise_max_tokens = concise_max_tokens
        self._detailed_max_tokens = detailed_max_tokens

    def handle(self, message: str, intent: IntentResult, history: list[ConversationTurn]) -> str:
        creative = is_creative_request(message)
        sarcasm, sentiment = self._analyzer.analyze_signals(message)

        if sentiment.is_low_mood and not creative and self._completion.enabled:
            passage = self._spiritual_support(message)
            if passage is not None:
                return format_support(passage)
            logger.info("Spiritual support unavailable, falling through to conversation")

        return self._converse(
            message, history, sarcasm, creative, low_mood=sentiment.is_low_mood and not creative,
        )

    def _spiritual_support(self, message: str) -> dict | None:
        try:
            raw = self._completion.complete(
                _SUPPORT_PROMPT.format(message=message.replace('"', "'")),
                max_output_tokens=600,
            )
        except Exception:
            logger.warning("Spiritual support call failed", exc_info=True)
            return None

        parsed = extract_json(raw)
        if not parsed:
            return None
        passage = {field: str(parsed.get(field) or "").strip() for field in _SUPPORT_FIELDS}
        if not all(passage.values()):
            logger.debug("Spiritual support reply missing fields: %r", parsed)
            return None
        return passage

    def _converse(
        self,
        message: str,
        history: list[ConversationTurn],
        sarcasm: SarcasmResult,
        creative: bool,
        low_mood: bool = False,
    ) -> str:
        system = build_system_instruction(sarcasm, creative, low_mood)
        budget = self._detailed_max_tokens if creative else self._concise_max_tokens
        turns = [*history, ConversationTurn(role="user", text=message)]
        try:
            return self._completion.complete(turns, max_output_tokens=budget, system=system)
        except CompletionDisabledError:
            return DISABLED_REPLY
        except Exception:
            logger.warning("Conversational completion failed, sending stock reply", exc_info=True)
            return STOCK_REPLY
