"""Intent classification -- model first, regex fallback.

The model path asks for strict JSON and runs the reply through the
structured-output extractor. Whenever that path is disabled, raises, or
produces no usable intent, a deterministic keyword classifier takes over
so routing keeps working with zero external dependencies.
"""

from __future__ import annotations

import re

from nodemesh.llm.completion import CompletionClient
from nodemesh.llm.extract import extract_json
from nodemesh.log import logger
from nodemesh.models import INTENTS, IntentResult


# ---------------------------------------------------------------------------
# Keyword fallback -- weather is tested before news, so weather wins ties
# ---------------------------------------------------------------------------

_INTENT_PATTERNS: list[tuple[str, re.Pattern]] = [
    ("weather", re.compile(
        r"\b(weather|temperature|forecast|rain(ing|y)?|sunny|snow(ing)?|humid(ity)?|"
        r"wind(y)?|cloudy|storm(y)?|thunder|drizzle|degrees|celsius|fahrenheit|"
        r"umbrella|sunrise|sunset|hot outside|cold outside)\b",
        re.IGNORECASE,
    )),
    ("news", re.compile(
        r"\b(news|headlines?|breaking|current events|latest updates?|"
        r"what.s happening|happening (in|around)|articles?|press|journalism)\b",
        re.IGNORECASE,
    )),
]

_TRAILING_WORDS = (
    r"today|tomorrow|tonight|now|right now|this|next|please|and|like|currently|later|"
    r"at|on|in|for|during|over|around"
)

_LOCATION_PATTERN = re.compile(
    rf"\b(?:in|for|at)\s+([A-Za-z][A-Za-z .'-]*?)(?=\s+(?:{_TRAILING_WORDS})\b|\s*[?.!,;]|\s*$)",
    re.IGNORECASE,
)

_TOPIC_PATTERN = re.compile(
    r"\b(?:about|regarding|on)\s+([A-Za-z0-9][A-Za-z0-9 .&'-]*?)(?=\s*[?.!,;]|\s*$)",
    re.IGNORECASE,
)

# Captures that are really time words or pronouns, not places
_NOT_A_LOCATION = {
    "the morning", "the evening", "the afternoon", "the weekend", "a while", "a bit",
    "general", "it", "me", "you", "us", "them", "now", "today", "tomorrow", "tonight",
}

# A capture opening with or containing one of these is a time phrase
_TIME_LEADS = {"this", "next", "last", "coming", "a", "an", "few", "couple", "some", "that", "every"}
_TIME_WORDS = {
    "weekend", "weekends", "week", "weeks", "day", "days", "hour", "hours", "minute", "minutes",
    "moment", "month", "months", "year", "years", "morning", "evening", "afternoon", "night",
    "tonight", "today", "tomorrow", "while", "bit", "now", "later", "future", "time",
}


def _detect_intent(message: str) -> str:
    """Return the first matching intent or 'general'."""
    lowered = message.lower()
    for intent, pattern in _INTENT_PATTERNS:
        if pattern.search(lowered):
            return intent
    return "general"


def _is_time_phrase(candidate: str) -> bool:
    words = candidate.lower().split()
    return bool(words) and (words[0] in _TIME_LEADS or any(w in _TIME_WORDS for w in words))


def _extract_location(message: str) -> str:
    for match in _LOCATION_PATTERN.finditer(message):
        candidate = match.group(1).strip(" .'-")
        if candidate.lower() in _NOT_A_LOCATION or _is_time_phrase(candidate):
            continue
        if candidate.lower().startswith("the "):
            candidate = candidate[4:].strip()
        # "for running", "at hiking": an activity, not a place
        if candidate.islower() and candidate.split()[0].endswith("ing"):
            continue
        if candidate and candidate.lower() not in _NOT_A_LOCATION and not _is_time_phrase(candidate):
            return candidate
    return ""


def _extract_topic(message: str) -> str:
    match = _TOPIC_PATTERN.search(message)
    if not match:
        return ""
    topic = match.group(1).strip(" .'-")
    if topic.lower().startswith("the "):
        topic = topic[4:].strip()
    return topic


def fallback_classify(message: str) -> IntentResult:
    """Deterministic classification by keyword regex. Never raises."""
    intent = _detect_intent(message)
    location = _extract_location(message) if intent == "weather" else ""
    topic = _extract_topic(message) if intent == "news" else ""
    return IntentResult(intent=intent, location=location, topic=topic)


# ---------------------------------------------------------------------------
# Model path
# ---------------------------------------------------------------------------

_CLASSIFY_PROMPT = """You are an intent router. Classify the user's message into exactly one intent:
- "weather": asks about weather, temperature, forecast, or whether conditions suit an activity
- "news": asks for news, headlines, or current events
- "general": anything else

Extract:
- "location": the place mentioned for weather, or "" if none
- "topic": the news subject, or "" if none
- "activity": an outdoor activity the user wants advice on (e.g. "running", "picnic"), or "" if none

Respond with ONLY a JSON object, no prose:
{{"intent": "", "location": "", "topic": "", "activity": ""}}

Message: "{message}"
"""


class IntentClassifier:
    """Produce an IntentResult for one message."""

    def __init__(self, completion: CompletionClient) -> None:
        self._completion = completion

    def classify(self, message: str) -> IntentResult:
        if self._completion.enabled:
            result = self._classify_with_model(message)
            if result is not None:
                return result
        return fallback_classify(message)

    def _classify_with_model(self, message: str) -> IntentResult | None:
        try:
            raw = self._completion.complete(
                _CLASSIFY_PROMPT.format(message=message.replace('"', "'")),
                max_output_tokens=150,
            )
        except Exception as e:
            logger.warning("Model classification failed, using keyword fallback: %s", e)
            return None

        parsed = extract_json(raw)
        if not parsed:
            logger.debug("Classifier returned no JSON object: %.200r", raw)
            return None

        intent = str(parsed.get("intent") or "").strip().lower()
        if intent not in INTENTS:
            logger.debug("Classifier returned unusable intent %r", intent)
            return None

        return IntentResult(
            intent=intent,
            location=_as_text(parsed.get("location")),
            topic=_as_text(parsed.get("topic")),
            activity=_as_text(parsed.get("activity")),
        )


def _as_text(value: object) -> str:
    if value is None:
        return ""
    text = str(value).strip()
    return "" if text.lower() in ("null", "none") else text
