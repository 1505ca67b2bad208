"""Completion layer -- backend adapter, retry/fallback client, structured-output parsing."""

from nodemesh.llm.completion import CompletionClient, Outcome
from nodemesh.llm.errors import (
    AllBackendsExhausted, CompletionDisabledError, CompletionError, MalformedRequestError, TransportError,
)
from nodemesh.llm.extract import extract_json

__all__ = [
    "CompletionClient", "Outcome", "extract_json",
    "CompletionError", "TransportError", "MalformedRequestError",
    "AllBackendsExhausted", "CompletionDisabledError",
]
