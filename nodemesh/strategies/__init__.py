"""Response strategies -- one per intent.

Every strategy is total: ``handle`` always returns user-facing text and
never raises. Internal faults become a strategy-specific apology.
"""

from __future__ import annotations

from typing import Protocol

from nodemesh.models import ConversationTurn, IntentResult


class Strategy(Protocol):
    def handle(self, message: str, intent: IntentResult, history: list[ConversationTurn]) -> str: ...


def format_number(value: float | None, suffix: str = "") -> str:
    """Render provider numbers without trailing ``.0``; missing values become 'n/a'."""
    if value is None:
        return "n/a"
    return f"{value:g}{suffix}"
