"""NodeMesh routing core -- intent classification, signal analysis, dispatch."""

from nodemesh.intelligence.chat import Dispatcher, EmptyMessageError
from nodemesh.intelligence.intents import IntentClassifier, fallback_classify
from nodemesh.intelligence.signals import SignalAnalyzer

__all__ = ["Dispatcher", "EmptyMessageError", "IntentClassifier", "SignalAnalyzer", "fallback_classify"]
