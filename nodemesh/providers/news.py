"""NewsAPI.org headlines client."""

from __future__ import annotations

import urllib.parse

from nodemesh.log import logger
from nodemesh.models import Headline
from nodemesh.providers import ProviderError, ProviderNotConfigured, fetch_json

# NewsAPI placeholder for articles pulled after publication
_REMOVED_TITLE = "[Removed]"


def parse_headlines(payload: dict) -> list[Headline]:
    headlines = []
    for article in payload.get("articles") or []:
        if not isinstance(article, dict):
            continue
        title = (article.get("title") or "").strip()
        if not title or title == _REMOVED_TITLE:
            continue
        source = article.get("source") or {}
        headlines.append(Headline(
            title=title,
            source_name=(source.get("name") if isinstance(source, dict) else None) or "Unknown source",
            url=article.get("url") or "",
            published_at=article.get("publishedAt") or "",
        ))
    return headlines


class NewsProvider:
    def __init__(self, api_key: str, base_url: str = "https://newsapi.org/v2", timeout: float = 8) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    @classmethod
    def from_config(cls, cfg: dict | None = None) -> "NewsProvider":
        if cfg is None:
            from nodemesh.config.loader import get_news_config
            cfg = get_news_config()
        return cls(
            api_key=cfg.get("api_key", ""),
            base_url=cfg.get("base_url") or "https://newsapi.org/v2",
            timeout=float(cfg.get("timeout_seconds", 8)),
        )

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def _get(self, endpoint: str, params: dict) -> dict:
        url = f"{self._base_url}/{endpoint}?{urllib.parse.urlencode(params)}"
        payload = fetch_json(url, timeout=self._timeout, headers={"X-Api-Key": self._api_key})
        if payload.get("status") == "error":
            raise ProviderError(f"NewsAPI error: {payload.get('code')}: {payload.get('message')}")
        return payload

    def top_headlines(
        self,
        region: str,
        category: str | None = None,
        query: str | None = None,
        page_size: int = 5,
    ) -> list[Headline]:
        """Top headlines for a region, optionally narrowed by category and free-text query.

        A query with no regional hits is retried against the global
        ``everything`` index before an empty list is returned.
        """
        if not self.configured:
            raise ProviderNotConfigured("News API key missing")

        params: dict = {"country": region, "pageSize": page_size}
        if category:
            params["category"] = category
        if query:
            params["q"] = query
        headlines = parse_headlines(self._get("top-headlines", params))

        if not headlines and query:
            logger.debug("No regional headlines for %r in %s, searching everything", query, region)
            headlines = parse_headlines(self._get("everything", {
                "q": query,
                "pageSize": page_size,
                "sortBy": "publishedAt",
                "language": "en",
            }))
        return headlines[:page_size]
