"""News strategy -- derive a query, pick a region, list headlines."""

from __future__ import annotations

import re

from nodemesh.log import logger
from nodemesh.models import ConversationTurn, Headline, IntentResult
from nodemesh.providers import ProviderError, ProviderNotConfigured
from nodemesh.providers.news import NewsProvider

NOT_CONFIGURED = "News service is not configured. Ask the administrator to set NEWS_API_KEY."

# Region-indicating words -> NewsAPI country code
_REGION_TERMS: dict[str, str] = {
    "india": "in", "indian": "in",
    "uk": "gb", "britain": "gb", "british": "gb", "england": "gb", "london": "gb",
    "us": "us", "usa": "us", "america": "us", "american": "us",
    "australia": "au", "australian": "au",
    "canada": "ca", "canadian": "ca",
    "germany": "de", "german": "de",
    "france": "fr", "french": "fr",
    "japan": "jp", "japanese": "jp",
}

# "us" is also a pronoun ("tell us the India news"); any other region term outranks it
_AMBIGUOUS_REGION_TERMS = {"us"}

_CATEGORY_TERMS: dict[str, str] = {
    "business": "business", "finance": "business", "economy": "business", "market": "business", "markets": "business",
    "sport": "sports", "sports": "sports", "cricket": "sports", "football": "sports",
    "tech": "technology", "technology": "technology",
    "science": "science",
    "health": "health",
    "entertainment": "entertainment", "movies": "entertainment", "celebrity": "entertainment",
}

_STOPWORDS = {
    "news", "latest", "update", "updates", "headline", "headlines", "today", "todays", "current",
    "recent", "breaking", "top", "new", "what", "whats", "is", "are", "the", "a", "an", "in",
    "on", "about", "of", "for", "me", "show", "tell", "give", "get", "any", "some", "please",
    "can", "you", "i", "want", "to", "know", "happening", "going", "there", "it", "and", "from",
    "this", "week", "s", "regarding", "events", "world",
}

_WORD_PATTERN = re.compile(r"[a-z0-9][a-z0-9+#.-]*")


def _words(text: str) -> list[str]:
    return [w.strip(".") for w in _WORD_PATTERN.findall(text.lower().replace("'", ""))]


def pick_region(message: str, default_region: str) -> str:
    words = _words(message)
    for word in words:
        if word in _REGION_TERMS and word not in _AMBIGUOUS_REGION_TERMS:
            return _REGION_TERMS[word]
    for word in words:
        if word in _AMBIGUOUS_REGION_TERMS:
            return _REGION_TERMS[word]
    return default_region



def pick_category(message: str) -> str | None:
    for word in _words(message):
        if word in _CATEGORY_TERMS:
            return _CATEGORY_TERMS[word]
    return None


def build_query(message: str, topic: str = "") -> str:
    """Explicit topic wins; otherwise the message minus stopwords, region and category words."""
    if topic.strip():
        return topic.strip()
    terms = [
        w for w in _words(message)
        if w and w not in _STOPWORDS and w not in _REGION_TERMS and w not in _CATEGORY_TERMS
    ]
    return " ".join(terms)


def format_headlines(headlines: list[Headline], heading: str) -> str:
    lines = [f"**{heading}**", ""]
    for i, h in enumerate(headlines, start=1):
        lines.append(f"{i}. **{h.title}** -- {h.source_name}")
        if h.url:
            lines.append(f"   {h.url}")
    return "\n".join(lines)


class NewsStrategy:
    def __init__(self, provider: NewsProvider, default_region: str = "us", page_size: int = 5) -> None:
        self._provider = provider
        self._default_region = default_region
        self._page_size = page_size

    def handle(self, message: str, intent: IntentResult, history: list[ConversationTurn]) -> str:
        query = build_query(message, intent.topic)
        region = pick_region(message, self._default_region)
        category = None if intent.topic else pick_category(message)

        try:
            headlines = self._provider.top_headlines(
                region=region, category=category, query=query or None, page_size=self._page_size,
            )
        except ProviderNotConfigured:
            return NOT_CONFIGURED
        except ProviderError:
            logger.warning("News provider failed (query=%r, region=%s)", query, region, exc_info=True)
            return "I'm having trouble reaching the news service right now. Please try again later."
        except Exception:
            logger.error("Unexpected news failure (query=%r)", query, exc_info=True)
            return "Sorry, something went wrong while fetching the news."

        subject = query or category or "top stories"
        if not headlines:
            return f"I couldn't find any recent news about {subject}. Try a broader topic."

        heading = f"Latest headlines on {subject}" if query or category else "Top headlines"
        return format_headlines(headlines, heading)
