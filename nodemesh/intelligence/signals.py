"""Secondary classifiers that steer the general response path.

Sarcasm and low-mood detection are each one structured completion call.
Both fail soft: any error yields the safe default so the caller always
gets an answer. The two are independent and run concurrently.
"""

from __future__ import annotations

import re
from concurrent.futures import ThreadPoolExecutor

from nodemesh.llm.completion import CompletionClient
from nodemesh.llm.extract import extract_json
from nodemesh.log import logger
from nodemesh.models import SarcasmResult, SentimentResult

DISTRESS_KEYWORDS = (
    "worried", "worry", "sad", "depressed", "depression", "anxious", "anxiety",
    "tired", "lonely", "alone", "stressed", "hopeless", "upset", "scared",
    "afraid", "heartbroken", "exhausted", "overwhelmed", "grief", "crying",
    "miserable", "nervous",
)

_DISTRESS_PATTERN = re.compile(
    r"\b(" + "|".join(re.escape(k) for k in DISTRESS_KEYWORDS) + r")\b",
    re.IGNORECASE,
)

_SARCASM_PROMPT = """Decide whether the following message is sarcastic.
If it is, restate what the user actually means in one plain sentence.

Respond with ONLY a JSON object:
{{"is_sarcastic": true or false, "intended_meaning": ""}}

Message: "{message}"
"""

_SENTIMENT_PROMPT = """Decide whether the writer of the following message is in a low mood:
sad, anxious, stressed, lonely, grieving or otherwise distressed.

Respond with ONLY a JSON object:
{{"is_low_mood": true or false}}

Message: "{message}"
"""


def has_distress_keyword(message: str) -> bool:
    return bool(_DISTRESS_PATTERN.search(message))


def _as_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    return False


class SignalAnalyzer:
    """Sarcasm and sentiment detection over one CompletionClient."""

    def __init__(self, completion: CompletionClient) -> None:
        self._completion = completion

    def detect_sarcasm(self, message: str) -> SarcasmResult:
        if not self._completion.enabled:
            return SarcasmResult()
        try:
            raw = self._completion.complete(
                _SARCASM_PROMPT.format(message=message.replace('"', "'")),
                max_output_tokens=120,
            )
            parsed = extract_json(raw)
            if not parsed:
                return SarcasmResult()
            return SarcasmResult(
                is_sarcastic=_as_bool(parsed.get("is_sarcastic")),
                intended_meaning=str(parsed.get("intended_meaning") or "").strip(),
            )
        except Exception:
            logger.debug("Sarcasm analyzer failed, assuming literal tone", exc_info=True)
            return SarcasmResult()

    def detect_low_mood(self, message: str) -> SentimentResult:
        # Literal distress words skip the network call
        if has_distress_keyword(message):
            return SentimentResult(is_low_mood=True)
        if not self._completion.enabled:
            return SentimentResult()
        try:
            raw = self._completion.complete(
                _SENTIMENT_PROMPT.format(message=message.replace('"', "'")),
                max_output_tokens=40,
            )
            parsed = extract_json(raw)
            if not parsed:
                return SentimentResult()
            return SentimentResult(is_low_mood=_as_bool(parsed.get("is_low_mood")))
        except Exception:
            logger.debug("Sentiment analyzer failed, assuming neutral mood", exc_info=True)
            return SentimentResult()

    def analyze_signals(self, message: str) -> tuple[SarcasmResult, SentimentResult]:
        """Run both analyzers concurrently and join them."""
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="nodemesh-signal") as pool:
            sarcasm = pool.submit(self.detect_sarcasm, message)
            sentiment = pool.submit(self.detect_low_mood, message)
            return sarcasm.result(), sentiment.result()
