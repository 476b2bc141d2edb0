from __future__ import annotations

"""Server-side conversation memory.

A single, unscoped transcript lives for the lifetime of the process. The
store is handed to the relay explicitly so tests (or a future persistent
backend) can swap it out.
"""

from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class Turn(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"] = Field(..., description="'user' or 'assistant'")
    message: Optional[str] = None
    image: Optional[str] = Field(None, description="Base64 image sent with the message")


class TranscriptStore:
    """Append-only list of turns with a full reset.

    None of the methods await, so each call completes without another request
    running in between.
    """

    def __init__(self) -> None:
        self._turns: List[Turn] = []

    def append(self, turn: Turn) -> None:
        self._turns.append(turn)

    def snapshot(self) -> Tuple[Turn, ...]:
        return tuple(self._turns)

    def clear(self) -> None:
        self._turns = []

    def __len__(self) -> int:
        return len(self._turns)
