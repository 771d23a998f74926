"""
Server-Sent Events framing.

Turns raw response bytes into complete SSE frames and frames into
(event, data) records. Frames may be split anywhere across network reads,
including inside a multi-byte UTF-8 character; the decoder and the carry
buffer make the resulting frame sequence independent of chunk boundaries.

Wire format: ["event: " <type> "\\n"] "data: " <json> "\\n\\n"
"""

import codecs
from dataclasses import dataclass
import json
from typing import Any

from ._exceptions import FrameParseError, StreamDecodeError

FRAME_DELIMITER = "\n\n"
EVENT_PREFIX = "event:"
DATA_PREFIX = "data:"

DONE_SENTINEL = "[DONE]"
EMPTY_OBJECT_SENTINEL = "{}"

# Event types that mark the end of the stream without carrying a payload.
END_OF_STREAM_EVENTS = frozenset({"end_of_stream", "done", "complete"})


class ByteDecoder:
    """Stateful UTF-8 decoder that survives characters split across reads."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="strict")

    def decode(self, chunk: bytes) -> str:
        """Decode one network chunk, holding back an incomplete trailing sequence."""
        try:
            return self._decoder.decode(chunk, final=False)
        except UnicodeDecodeError as e:
            raise StreamDecodeError(f"Malformed {self.encoding} in response body: {e}") from e

    def flush(self) -> str:
        """Finalize decoding. Raises if the body ended inside a multi-byte sequence."""
        try:
            return self._decoder.decode(b"", final=True)
        except UnicodeDecodeError as e:
            raise StreamDecodeError(f"Truncated {self.encoding} at end of body: {e}") from e


class FrameSplitter:
    """
    Splits decoded text into complete SSE frames.

    The trailing fragment after the last blank line is kept as the carry
    buffer until a later feed completes it. Pending text is held as a list of
    pieces and only joined once a delimiter arrives, so a large frame spread
    over many small reads is scanned once. CRLF is normalized per piece, and
    a CR/LF pair split across reads is repaired at the join point.
    """

    def __init__(self) -> None:
        self._pending: list[str] = []

    @property
    def buffer(self) -> str:
        return "".join(self._pending)

    def feed(self, text: str) -> list[str]:
        """
        Append text and return every frame it completes.

        Args:
            text: Newly decoded text (any length, may be empty)

        Returns:
            Complete, non-blank frames in arrival order
        """
        if not text:
            return []

        if text.startswith("\n") and self._pending and self._pending[-1].endswith("\r"):
            last = self._pending.pop()[:-1]
            if last:
                self._pending.append(last)
        text = text.replace("\r\n", "\n")

        # A delimiter can only start in the last pending character or in the new text.
        tail = self._pending[-1][-1:] if self._pending else ""
        if FRAME_DELIMITER not in tail + text:
            self._pending.append(text)
            return []

        frames = (self.buffer + text).split(FRAME_DELIMITER)
        rest = frames.pop()
        self._pending = [rest] if rest else []
        return [frame for frame in frames if frame.strip()]

    def remainder(self) -> str:
        """Return and clear whatever incomplete frame is still buffered."""
        rest, self._pending = self.buffer, []
        return rest


@dataclass
class SSERecord:
    """One parsed SSE frame."""

    event: str | None
    data: str

    @property
    def is_sentinel(self) -> bool:
        return is_sentinel(self.data)

    @property
    def is_end_of_stream(self) -> bool:
        return is_end_of_stream(self.event)


def is_sentinel(data: str) -> bool:
    """Payloads that carry nothing to extract."""
    return data in ("", DONE_SENTINEL, EMPTY_OBJECT_SENTINEL)


def is_end_of_stream(event: str | None) -> bool:
    return event is not None and event.lower() in END_OF_STREAM_EVENTS


def parse_frame(frame: str) -> SSERecord | None:
    """
    Parse one SSE frame into an event type and a data payload.

    A later data line replaces an earlier one. Comment lines are ignored.

    Returns:
        SSERecord, or None when the frame has neither an event nor a data line
    """
    event: str | None = None
    data: str | None = None

    for line in frame.split("\n"):
        line = line.rstrip("\r")
        if not line or line.startswith(":"):
            continue
        if line.startswith(EVENT_PREFIX):
            event = line[len(EVENT_PREFIX) :].strip() or None
        elif line.startswith(DATA_PREFIX):
            data = line[len(DATA_PREFIX) :].strip()

    if data is None and event is None:
        return None
    return SSERecord(event=event, data=data or "")


def parse_payload(data: str) -> dict[str, Any]:
    """
    Decode a frame's JSON payload.

    Raises:
        FrameParseError: If the data is not a JSON object
    """
    try:
        payload = json.loads(data)
    except json.JSONDecodeError as e:
        raise FrameParseError(f"Invalid JSON in frame: {data[:200]}") from e

    if not isinstance(payload, dict):
        raise FrameParseError(f"Frame payload is not an object: {data[:200]}")
    return payload
