"""Running answer state and the rules for when a payload supersedes it."""

from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import Any

from ._types import ChatStreamResponse, Source
from .blocks import extract_payload_answer, extract_payload_sources, extract_related_queries
from .sse import FrameSplitter

COMPLETED_STATUS = "COMPLETED"


class StreamPhase(str, Enum):
    """Lifecycle of one streamed request."""

    STREAMING = "streaming"
    COMPLETING = "completing"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (StreamPhase.DONE, StreamPhase.FAILED, StreamPhase.CANCELLED)


@dataclass
class StreamState:
    """Everything one in-flight request accumulates. Owned by a single stream."""

    full_answer: str = ""
    sources: list[Source] = field(default_factory=list)
    related_queries: list[str] = field(default_factory=list)
    splitter: FrameSplitter = field(default_factory=FrameSplitter, repr=False)
    completed: bool = False
    phase: StreamPhase = StreamPhase.STREAMING

    @property
    def carry_buffer(self) -> str:
        """The incomplete frame the splitter is holding between reads."""
        return self.splitter.buffer

    def mark_completed(self) -> None:
        """Idempotent: only the first call moves STREAMING to COMPLETING."""
        if self.completed:
            return
        self.completed = True
        if self.phase == StreamPhase.STREAMING:
            self.phase = StreamPhase.COMPLETING

    def snapshot(self, generation: int = 0) -> ChatStreamResponse:
        return ChatStreamResponse(
            answer=self.full_answer,
            sources=list(self.sources),
            related_queries=list(self.related_queries) or None,
            generation=generation,
        )


def is_completion_payload(payload: dict[str, Any]) -> bool:
    return payload.get("final_sse_message") is True or payload.get("status") == COMPLETED_STATUS


class AnswerAssembler:
    """
    Folds decoded payloads into a StreamState.

    The answer is replaced, never concatenated, whenever a payload carries a
    different non-empty answer. Sources and related queries are replaced
    wholesale by the last payload that carries them.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger if logger is not None else logging.getLogger(__name__)

    def apply(self, state: StreamState, payload: dict[str, Any]) -> str | None:
        """
        Apply one payload to the state.

        Args:
            state: Running state for this stream
            payload: Decoded JSON object from one frame

        Returns:
            The full new answer if it changed, else None
        """
        changed: str | None = None

        answer = extract_payload_answer(payload)
        if answer and answer != state.full_answer:
            state.full_answer = answer
            changed = answer

        sources = extract_payload_sources(payload)
        if sources:
            state.sources = sources
            self.logger.debug("Replaced sources (%d entries)", len(sources))

        related = extract_related_queries(payload)
        if related is not None:
            state.related_queries = related
            self.logger.debug("Replaced related queries: %s", related)

        if is_completion_payload(payload):
            self.logger.debug("Completion marker received")
            state.mark_completed()

        return changed
