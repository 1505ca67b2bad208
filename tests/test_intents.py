"""Tests for intent classification: keyword fallback and the model path."""

from __future__ import annotations

import pytest

from conftest import ScriptedBackend, make_client
from nodemesh.intelligence.intents import IntentClassifier, fallback_classify
from nodemesh.llm.errors import TransportError


# ---------------------------------------------------------------------------
# Keyword fallback
# ---------------------------------------------------------------------------

class TestFallbackIntent:
    @pytest.mark.parametrize("message", [
        "What's the weather in Tokyo?",
        "Will it rain tomorrow?",
        "how hot outside is it",
        "Give me the forecast",
        "Is it SNOWING in Denver",
    ])
    def test_weather(self, message):
        assert fallback_classify(message).intent == "weather"

    @pytest.mark.parametrize("message", [
        "Show me the latest news",
        "any headlines today?",
        "What's happening in the world",
        "breaking stories please",
    ])
    def test_news(self, message):
        assert fallback_classify(message).intent == "news"

    @pytest.mark.parametrize("message", [
        "Tell me a joke",
        "hello there",
        "What is the capital of France?",
        "",
    ])
    def test_general(self, message):
        assert fallback_classify(message).intent == "general"

    def test_weather_wins_ties(self):
        assert fallback_classify("weather news for today").intent == "weather"

    def test_activity_is_never_set(self):
        assert fallback_classify("is the weather good for running in Oslo?").activity == ""


class TestFallbackLocation:
    @pytest.mark.parametrize("message,location", [
        ("What's the weather in Tokyo?", "Tokyo"),
        ("weather in New York today", "New York"),
        ("forecast for San Francisco please", "San Francisco"),
        ("temperature in the Bronx", "Bronx"),
        ("what's the weather in Paris", "Paris"),
    ])
    def test_extracts_location(self, message, location):
        assert fallback_classify(message).location == location

    def test_no_location(self):
        assert fallback_classify("what's the weather like?").location == ""

    @pytest.mark.parametrize("message", [
        "will it rain in the morning?",
        "What's the forecast for this weekend?",
        "forecast for next week",
        "will it rain in a few hours",
        "what's the temperature at the moment?",
        "is the weather good for running?",
    ])
    def test_time_phrase_is_not_a_location(self, message):
        assert fallback_classify(message).location == ""

    @pytest.mark.parametrize("message,location", [
        ("forecast for this weekend in Paris", "Paris"),
        ("weather in Tokyo for the next few days", "Tokyo"),
        ("will it snow in Denver over the weekend?", "Denver"),
        ("is the weather good for running in Oslo?", "Oslo"),
    ])
    def test_place_found_past_time_phrase(self, message, location):
        assert fallback_classify(message).location == location

    def test_location_only_for_weather(self):
        result = fallback_classify("tell me about life in Paris")
        assert result.intent == "general"
        assert result.location == ""


class TestFallbackTopic:
    @pytest.mark.parametrize("message,topic", [
        ("latest news about climate change", "climate change"),
        ("any headlines regarding the election?", "election"),
        ("news on AI.", "AI"),
    ])
    def test_extracts_topic(self, message, topic):
        assert fallback_classify(message).topic == topic

    def test_no_topic(self):
        assert fallback_classify("show me the news").topic == ""

    def test_topic_only_for_news(self):
        assert fallback_classify("tell me about dogs").topic == ""


# ---------------------------------------------------------------------------
# Model path
# ---------------------------------------------------------------------------

class TestModelClassification:
    def test_parses_model_json(self):
        backend = ScriptedBackend([
            '```json\n{"intent": "weather", "location": "Lisbon", "topic": "", "activity": "surfing"}\n```'
        ])
        result = IntentClassifier(make_client(backend)).classify("can I surf in Lisbon?")
        assert result.intent == "weather"
        assert result.location == "Lisbon"
        assert result.activity == "surfing"
        assert len(backend.calls) == 1

    def test_normalizes_case_and_nulls(self):
        backend = ScriptedBackend(['{"intent": " NEWS ", "location": null, "topic": "Mars", "activity": "none"}'])
        result = IntentClassifier(make_client(backend)).classify("mars news")
        assert result.intent == "news"
        assert result.location == ""
        assert result.topic == "Mars"
        assert result.activity == ""

    def test_invalid_intent_falls_back(self):
        backend = ScriptedBackend(['{"intent": "sports"}'])
        result = IntentClassifier(make_client(backend)).classify("What's the weather in Tokyo?")
        assert result.intent == "weather"
        assert result.location == "Tokyo"

    def test_unparseable_reply_falls_back(self):
        backend = ScriptedBackend(["I think this is about the news."])
        result = IntentClassifier(make_client(backend)).classify("any headlines?")
        assert result.intent == "news"

    def test_exhausted_backend_falls_back(self):
        backend = ScriptedBackend(default=TransportError("down", status=503))
        result = IntentClassifier(make_client(backend)).classify("Will it rain in Oslo?")
        assert result.intent == "weather"
        assert result.location == "Oslo"

    def test_disabled_client_skips_model(self, disabled_completion):
        result = IntentClassifier(disabled_completion).classify("show me the news")
        assert result.intent == "news"

    def test_message_quotes_do_not_break_prompt(self):
        backend = ScriptedBackend(['{"intent": "general"}'])
        IntentClassifier(make_client(backend)).classify('she said "hello"')
        prompt = backend.calls[0]["conversation"][0].text
        assert "she said 'hello'" in prompt
