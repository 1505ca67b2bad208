"""Shared fixtures for the NodeMesh test suite."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from nodemesh.llm.completion import CompletionClient
from nodemesh.models import WeatherReport


# ---------------------------------------------------------------------------
# Environment isolation -- no real keys, no user config file
# ---------------------------------------------------------------------------

_ENV_VARS = [
    "GROQ_API_KEY", "NODEMESH_LLM_BASE_URL", "NODEMESH_MODEL", "NODEMESH_FALLBACK_MODELS",
    "NODEMESH_LLM_DISABLED", "NODEMESH_TIMEOUT", "NODEMESH_RATE_LIMIT_COOLDOWN",
    "NODEMESH_MAX_TURNS", "NODEMESH_MAX_SESSIONS", "WEATHER_API_KEY", "NEWS_API_KEY",
    "NODEMESH_NEWS_REGION", "NODEMESH_CONFIG",
]


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch, tmp_path):
    """Every test starts from shipped defaults with no credentials."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("NODEMESH_HOME", str(tmp_path))
    from nodemesh.config.loader import reset_config
    reset_config()
    yield
    reset_config()


# ---------------------------------------------------------------------------
# Scripted completion backend
# ---------------------------------------------------------------------------

class ScriptedBackend:
    """Backend that replays a script of texts/exceptions and records every call."""

    def __init__(self, script=None, default=None):
        self.script = list(script or [])
        self.default = default
        self.calls: list[dict] = []

    def generate(self, conversation, model_id, max_output_tokens=None, system=None):
        self.calls.append({
            "conversation": list(conversation),
            "model": model_id,
            "max_output_tokens": max_output_tokens,
            "system": system,
        })
        step = self.script.pop(0) if self.script else self.default
        if isinstance(step, Exception):
            raise step
        if callable(step):
            return step(conversation, model_id)
        return step

    @property
    def models_called(self) -> list[str]:
        return [c["model"] for c in self.calls]


@pytest.fixture
def scripted_backend():
    return ScriptedBackend


def make_client(backend, model="primary", fallbacks=("fallback-a", "fallback-b"), cooldown=0.0):
    return CompletionClient(backend, model=model, fallback_models=fallbacks, rate_limit_cooldown=cooldown)


@pytest.fixture
def disabled_completion():
    return CompletionClient(None, model="primary", enabled=False)


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------

TOKYO_REPORT = WeatherReport(
    location_name="Tokyo",
    region="Tokyo",
    country="Japan",
    condition_text="Clear",
    temp_c=20,
    feels_like_c=19,
    humidity_pct=55,
    wind_kph=11,
    wind_dir="NW",
    sunrise="05:01 AM",
    sunset="06:32 PM",
    local_time="2024-05-01 14:05",
    max_temp_c=23,
    min_temp_c=15,
    chance_of_rain=10,
)


@pytest.fixture
def weather_provider():
    provider = MagicMock()
    provider.forecast.return_value = TOKYO_REPORT
    return provider


@pytest.fixture
def news_provider():
    provider = MagicMock()
    provider.top_headlines.return_value = []
    return provider


# ---------------------------------------------------------------------------
# Dispatcher + HTTP client
# ---------------------------------------------------------------------------

def build_dispatcher(completion, weather_provider, news_provider, context=None):
    from nodemesh.intelligence.chat import Dispatcher
    from nodemesh.intelligence.intents import IntentClassifier
    from nodemesh.intelligence.signals import SignalAnalyzer
    from nodemesh.state import RouterContext, SessionMemory
    from nodemesh.strategies.general import GeneralStrategy
    from nodemesh.strategies.news import NewsStrategy
    from nodemesh.strategies.weather import WeatherStrategy

    context = context or RouterContext(SessionMemory(max_turns=3))
    return Dispatcher(
        context=context,
        classifier=IntentClassifier(completion),
        strategies={
            "weather": WeatherStrategy(weather_provider, completion, context),
            "news": NewsStrategy(news_provider),
            "general": GeneralStrategy(completion, SignalAnalyzer(completion)),
        },
    )


@pytest.fixture
def dispatcher(disabled_completion, weather_provider, news_provider):
    return build_dispatcher(disabled_completion, weather_provider, news_provider)


@pytest.fixture
def client(dispatcher):
    """TestClient with the app's Dispatcher swapped for the stubbed one."""
    from nodemesh.api import app
    app.state.dispatcher = dispatcher
    yield TestClient(app)
    app.state.dispatcher = None
