"""Conversation history rendered as context text for the predictor."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Iterable

CONTEXT_TURNS = 3
CONTEXT_HEADER = "Previous conversation:\n"


@dataclass(frozen=True)
class ConversationTurn:
    user_query: str
    generated_sql: str | None = None
    row_count: int | None = None


def build_conversation_context(
    turns: Iterable[ConversationTurn],
    max_turns: int = CONTEXT_TURNS,
) -> str:
    """Render the last ``max_turns`` turns; empty history renders as ``""``."""
    recent = list(turns)[-max_turns:] if max_turns > 0 else []
    if not recent:
        return ""

    parts = [CONTEXT_HEADER]
    for turn in recent:
        parts.append(f"User: {turn.user_query}\n")
        if turn.generated_sql:
            parts.append(f"SQL: {turn.generated_sql}\n")
        if turn.row_count:
            parts.append(f"(Returned {turn.row_count} rows)\n")
        parts.append("\n")
    return "".join(parts)


class ConversationHistory:
    """Bounded window of turns owned by the caller, oldest dropped first."""

    def __init__(self, max_size: int = 100) -> None:
        if max_size < 1:
            raise ValueError("max_size must be >= 1.")
        self._turns: deque[ConversationTurn] = deque(maxlen=max_size)

    def __len__(self) -> int:
        return len(self._turns)

    @property
    def turns(self) -> tuple[ConversationTurn, ...]:
        return tuple(self._turns)

    def append(self, turn: ConversationTurn) -> None:
        self._turns.append(turn)

    def clear(self) -> None:
        self._turns.clear()

    def render_context(self, max_turns: int = CONTEXT_TURNS) -> str:
        return build_conversation_context(self._turns, max_turns)
