"""
Streamed answer orchestration.

AskStream drives one SSE response from the first byte to exactly one
terminal event. The read loop is sequential: bytes are decoded, split into
frames, parsed, and folded into the running state in arrival order.

    with client.ask("What is the capital of France?") as stream:
        for event in stream:
            if isinstance(event, ChunkEvent):
                print(event.answer)
        print(stream.sources)
"""

from __future__ import annotations

from collections.abc import Callable, Generator, Iterable, Iterator
from dataclasses import dataclass
from enum import Enum
import logging
import threading

import requests

from ._exceptions import (
    STATUS_MAP,
    APIError,
    AskStreamError,
    FrameParseError,
    StreamCancelledError,
    TransportError,
)
from ._types import ChatStreamResponse, Source
from .assembler import AnswerAssembler, StreamPhase, StreamState
from .sse import ByteDecoder, parse_frame, parse_payload


class StreamEventType(str, Enum):
    """Tagged events emitted by AskStream."""

    CHUNK = "chunk"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass
class StreamEvent:
    """Base class for all stream events."""

    type: StreamEventType
    generation: int


@dataclass
class ChunkEvent(StreamEvent):
    """The answer changed. Carries the full current answer, not a delta."""

    answer: str


@dataclass
class CompleteEvent(StreamEvent):
    """Normal termination. Emitted at most once, never after an ErrorEvent."""

    response: ChatStreamResponse


@dataclass
class ErrorEvent(StreamEvent):
    """Fatal failure. Emitted at most once, never after a CompleteEvent."""

    error: AskStreamError


class CancelToken:
    """Thread-safe abandonment flag shared between a caller and a stream."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class AskStream:
    """Single-consumption iterable of answer events over one SSE response.

    Usage:
        with client.ask("question") as stream:
            for event in stream:
                ...
        stream.answer  # last full answer
    """

    def __init__(
        self,
        response: requests.Response,
        *,
        logger: logging.Logger | None = None,
        cancel_token: CancelToken | None = None,
        generation: int = 0,
    ):
        self._response = response
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self.cancel_token = cancel_token or CancelToken()
        self.generation = generation
        self.state = StreamState()
        self._assembler = AnswerAssembler(logger=self.logger)
        self._decoder = ByteDecoder()
        self._lock = threading.Lock()
        self._closed = False
        self._started = False

    def _close(self) -> None:
        """Close the underlying response (idempotent)."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._response.close()

    def cancel(self) -> None:
        """Abandon the stream: stop reading, emit nothing further, release the connection."""
        self.cancel_token.cancel()
        self._close()

    @property
    def cancelled(self) -> bool:
        return self.cancel_token.cancelled

    def __iter__(self) -> Iterator[StreamEvent]:
        if self._started:
            return
        self._started = True
        try:
            yield from self._run()
        finally:
            self._close()

    def __enter__(self) -> AskStream:
        return self

    def __exit__(self, *_: object) -> None:
        self._close()

    def _check_response(self) -> None:
        status = getattr(self._response, "status_code", None)
        if isinstance(status, int) and status >= 400:
            exc_cls = STATUS_MAP.get(status, APIError)
            raise exc_cls(f"HTTP {status}", status_code=status)
        if getattr(self._response, "raw", None) is None:
            raise TransportError("Response body is missing")

    def _run(self) -> Generator[StreamEvent, None, None]:
        state = self.state
        try:
            self._check_response()
            for chunk in self._response.iter_content(chunk_size=None):
                if self.cancelled:
                    break
                if not chunk:
                    continue
                yield from self._feed(self._decoder.decode(chunk))

            if not self.cancelled:
                yield from self._feed(self._decoder.flush())
                yield from self._parse_trailing()
        except (AskStreamError, requests.RequestException, OSError) as e:
            if self.cancelled:
                self.logger.debug("Read interrupted by cancellation: %s", e)
            else:
                yield self._fail(e)
                return
        except Exception as e:
            # Closing the response from another thread surfaces as arbitrary read errors.
            if not self.cancelled:
                raise
            self.logger.debug("Read interrupted by cancellation: %r", e)

        if self.cancelled:
            state.phase = StreamPhase.CANCELLED
            self.logger.debug("Stream cancelled (generation %d)", self.generation)
            return

        state.phase = StreamPhase.DONE
        yield CompleteEvent(
            type=StreamEventType.COMPLETE,
            generation=self.generation,
            response=state.snapshot(self.generation),
        )

    def _chunk(self, answer: str) -> ChunkEvent:
        return ChunkEvent(type=StreamEventType.CHUNK, generation=self.generation, answer=answer)

    def _feed(self, text: str) -> Generator[StreamEvent, None, None]:
        frames = self.state.splitter.feed(text)
        for frame in frames:
            if self.cancelled:
                return
            answer = self._process_frame(frame)
            if answer is not None:
                yield self._chunk(answer)

    def _process_frame(self, frame: str) -> str | None:
        """Parse one frame and fold it into state. Returns the new answer if it changed."""
        record = parse_frame(frame)
        if record is None:
            return None
        if record.is_end_of_stream:
            self.logger.debug("End-of-stream event: %s", record.event)
            self.state.mark_completed()
            return None
        if record.is_sentinel:
            return None

        try:
            payload = parse_payload(record.data)
        except FrameParseError as e:
            self.logger.warning("Skipping frame: %s", e.message)
            return None

        return self._assembler.apply(self.state, payload)

    def _parse_trailing(self) -> Generator[StreamEvent, None, None]:
        """Best-effort parse of an unterminated final frame. Parse failures are dropped."""
        rest = self.state.splitter.remainder()
        if not rest.strip():
            return
        self.logger.debug("Parsing trailing buffer (%d chars)", len(rest))
        answer = self._process_frame(rest)
        if answer is not None:
            yield self._chunk(answer)

    def _fail(self, error: Exception) -> ErrorEvent:
        if not isinstance(error, AskStreamError):
            error = TransportError(f"Connection failed while streaming: {error}")
        self.state.phase = StreamPhase.FAILED
        self.logger.warning("Stream failed: %s", error)
        return ErrorEvent(type=StreamEventType.ERROR, generation=self.generation, error=error)

    @property
    def phase(self) -> StreamPhase:
        return self.state.phase

    @property
    def answer(self) -> str:
        """Full current answer."""
        return self.state.full_answer

    @property
    def sources(self) -> list[Source]:
        return list(self.state.sources)

    @property
    def related_queries(self) -> list[str]:
        return list(self.state.related_queries)

    def response_snapshot(self) -> ChatStreamResponse:
        return self.state.snapshot(self.generation)

    def collect(self) -> ChatStreamResponse:
        """
        Consume the stream and return the final response.

        Raises:
            TransportError: On network failure
            StreamDecodeError: On malformed bytes
            StreamCancelledError: If the stream was cancelled before completing
        """
        for event in self:
            if isinstance(event, CompleteEvent):
                return event.response
            if isinstance(event, ErrorEvent):
                raise event.error
        raise StreamCancelledError("Stream ended without completing")


def dispatch(
    events: Iterable[StreamEvent],
    on_chunk: Callable[[str], None] | None = None,
    on_complete: Callable[[ChatStreamResponse], None] | None = None,
    on_error: Callable[[Exception], None] | None = None,
) -> None:
    """
    Deliver stream events to the callback triple, in arrival order.

    Callbacks run synchronously inside the read loop and should not block.
    """
    for event in events:
        if isinstance(event, ChunkEvent):
            if on_chunk:
                on_chunk(event.answer)
        elif isinstance(event, CompleteEvent):
            if on_complete:
                on_complete(event.response)
        elif isinstance(event, ErrorEvent):
            if on_error:
                on_error(event.error)
