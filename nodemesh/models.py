"""Typed records passed between the classifier, strategies and dispatcher.

Provider payloads are parsed into these models once, so formatting code
never has to check for missing keys.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

INTENTS = ("weather", "news", "general")


class ConversationTurn(BaseModel):
    """One side of an exchange. Immutable once created."""
    model_config = ConfigDict(frozen=True)

    role: Literal["user", "agent"]
    text: str


class IntentResult(BaseModel):
    intent: Literal["weather", "news", "general"] = "general"
    location: str = ""
    topic: str = ""
    activity: str = ""


class SarcasmResult(BaseModel):
    is_sarcastic: bool = False
    intended_meaning: str = ""


class SentimentResult(BaseModel):
    is_low_mood: bool = False


class WeatherReport(BaseModel):
    """Current conditions plus same-day forecast and astronomy for one location."""
    location_name: str
    region: str = ""
    country: str = ""
    condition_text: str = "Unknown"
    temp_c: float | None = None
    feels_like_c: float | None = None
    humidity_pct: float | None = None
    wind_kph: float | None = None
    wind_dir: str = ""
    sunrise: str = ""
    sunset: str = ""
    local_time: str = ""
    max_temp_c: float | None = None
    min_temp_c: float | None = None
    chance_of_rain: float | None = None


class Headline(BaseModel):
    title: str
    source_name: str = "Unknown source"
    url: str = ""
    published_at: str = ""


class ChatReply(BaseModel):
    reply: str
    intent: str
    location: str = ""
    topic: str = ""
    session_id: str = Field(default="default", serialization_alias="sessionId")
