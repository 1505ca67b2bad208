"""Tests for the sarcasm and sentiment analyzers."""

from __future__ import annotations

import threading

import pytest

from conftest import ScriptedBackend, make_client
from nodemesh.intelligence.signals import SignalAnalyzer, has_distress_keyword
from nodemesh.llm.errors import TransportError


class TestDistressKeywords:
    @pytest.mark.parametrize("message", [
        "I'm so anxious about tomorrow",
        "feeling LONELY tonight",
        "I am stressed.",
        "everything feels hopeless",
    ])
    def test_detects(self, message):
        assert has_distress_keyword(message) is True

    @pytest.mark.parametrize("message", [
        "What's the weather in Tokyo?",
        "saddle up",
        "a lonelyplanet guide",
    ])
    def test_ignores(self, message):
        assert has_distress_keyword(message) is False


class TestLowMood:
    def test_keyword_short_circuits_without_call(self):
        backend = ScriptedBackend(['{"is_low_mood": false}'])
        result = SignalAnalyzer(make_client(backend)).detect_low_mood("I'm so anxious about tomorrow")
        assert result.is_low_mood is True
        assert backend.calls == []

    def test_keyword_works_when_disabled(self, disabled_completion):
        result = SignalAnalyzer(disabled_completion).detect_low_mood("I feel so sad")
        assert result.is_low_mood is True

    def test_model_says_low_mood(self):
        backend = ScriptedBackend(['{"is_low_mood": true}'])
        result = SignalAnalyzer(make_client(backend)).detect_low_mood("nothing ever works out for me")
        assert result.is_low_mood is True
        assert len(backend.calls) == 1

    def test_string_boolean_accepted(self):
        backend = ScriptedBackend(['{"is_low_mood": "true"}'])
        assert SignalAnalyzer(make_client(backend)).detect_low_mood("meh").is_low_mood is True

    def test_failure_defaults_to_neutral(self):
        backend = ScriptedBackend(default=TransportError("down", status=503))
        assert SignalAnalyzer(make_client(backend)).detect_low_mood("meh").is_low_mood is False

    def test_unparseable_defaults_to_neutral(self):
        backend = ScriptedBackend(["I cannot tell."])
        assert SignalAnalyzer(make_client(backend)).detect_low_mood("meh").is_low_mood is False

    def test_disabled_defaults_to_neutral(self, disabled_completion):
        assert SignalAnalyzer(disabled_completion).detect_low_mood("meh").is_low_mood is False


class TestSarcasm:
    def test_parses_sarcasm(self):
        backend = ScriptedBackend(['{"is_sarcastic": true, "intended_meaning": "Mondays are bad"}'])
        result = SignalAnalyzer(make_client(backend)).detect_sarcasm("Oh great, I just love Mondays")
        assert result.is_sarcastic is True
        assert result.intended_meaning == "Mondays are bad"

    def test_failure_defaults_to_literal(self):
        backend = ScriptedBackend([TransportError("bad", status=400)])
        result = SignalAnalyzer(make_client(backend)).detect_sarcasm("Oh great")
        assert result.is_sarcastic is False
        assert result.intended_meaning == ""

    def test_disabled_defaults_to_literal(self, disabled_completion):
        assert SignalAnalyzer(disabled_completion).detect_sarcasm("Oh great").is_sarcastic is False


class TestAnalyze:
    def test_returns_both_results(self):
        def reply(conversation, model_id):
            prompt = conversation[-1].text
            if "sarcastic" in prompt:
                return '{"is_sarcastic": true, "intended_meaning": "this is bad"}'
            return '{"is_low_mood": true}'

        backend = ScriptedBackend(default=reply)
        sarcasm, sentiment = SignalAnalyzer(make_client(backend)).analyze_signals("wow, what a fantastic day")
        assert sarcasm.is_sarcastic is True
        assert sentiment.is_low_mood is True
        assert len(backend.calls) == 2

    def test_checks_run_concurrently(self):
        # Each call blocks until the other arrives; serial execution breaks the barrier.
        barrier = threading.Barrier(2, timeout=5)

        def reply(conversation, model_id):
            barrier.wait()
            if "sarcastic" in conversation[-1].text:
                return '{"is_sarcastic": true, "intended_meaning": "this is bad"}'
            return '{"is_low_mood": true}'

        backend = ScriptedBackend(default=reply)
        sarcasm, sentiment = SignalAnalyzer(make_client(backend)).analyze_signals("wow, what a fantastic day")
        assert sarcasm.is_sarcastic is True
        assert sentiment.is_low_mood is True
        assert len(backend.calls) == 2
        assert not barrier.broken

    def test_disabled_returns_defaults(self, disabled_completion):
        sarcasm, sentiment = SignalAnalyzer(disabled_completion).analyze_signals("hello")
        assert sarcasm.is_sarcastic is False
        assert sentiment.is_low_mood is False
