"""External data providers (weather, headlines).

Shared HTTP helper and error types. Providers raise; strategies turn
every raise into a user-facing sentence.
"""

from __future__ import annotations

import json
import urllib.error
import urllib.request

_MAX_RESPONSE_BYTES = 2 * 1024 * 1024  # 2 MB
_USER_AGENT = "nodemesh/0.1.0"


class ProviderError(Exception):
    """A provider call failed. ``status`` is the HTTP status, or None for network faults."""

    def __init__(self, message: str, status: int | None = None, payload: dict | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.payload = payload or {}


class LocationNotFound(ProviderError):
    """The weather provider could not resolve the location query."""


class ProviderNotConfigured(ProviderError):
    """No API credential is configured for this provider."""


def fetch_json(url: str, timeout: float, headers: dict | None = None) -> dict:
    """GET ``url`` and decode a JSON object.

    HTTP errors keep their body (providers put error codes there) on the
    raised ProviderError's ``payload`` attribute.
    """
    req = urllib.request.Request(url, headers={"User-Agent": _USER_AGENT, **(headers or {})})
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            raw = resp.read(_MAX_RESPONSE_BYTES)
    except urllib.error.HTTPError as e:
        raise ProviderError(
            f"HTTP {e.code} from provider", status=e.code, payload=_read_error_body(e),
        ) from e
    except (urllib.error.URLError, OSError, TimeoutError) as e:
        raise ProviderError(f"Provider unreachable: {e}") from e

    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ProviderError("Provider returned invalid JSON") from e
    if not isinstance(data, dict):
        raise ProviderError("Provider returned a non-object payload")
    return data


def _read_error_body(error: urllib.error.HTTPError) -> dict:
    try:
        data = json.loads(error.read(64 * 1024).decode("utf-8"))
        return data if isinstance(data, dict) else {}
    except Exception:
        return {}
