"""Tests for SSE byte decoding, frame splitting and record parsing."""

import pytest

from askstream._exceptions import FrameParseError, StreamDecodeError
from askstream.sse import (
    ByteDecoder,
    FrameSplitter,
    SSERecord,
    is_end_of_stream,
    is_sentinel,
    parse_frame,
    parse_payload,
)
from tests.utils.mocks import sse_frame, split_bytes


def _frames_for(chunks: list[bytes]) -> tuple[list[str], str]:
    decoder, splitter = ByteDecoder(), FrameSplitter()
    frames: list[str] = []
    for chunk in chunks:
        frames.extend(splitter.feed(decoder.decode(chunk)))
    frames.extend(splitter.feed(decoder.flush()))
    return frames, splitter.buffer


class TestByteDecoder:
    def test_multibyte_split_across_chunks(self):
        data = "café".encode()
        decoder = ByteDecoder()
        first = decoder.decode(data[:-1])
        second = decoder.decode(data[-1:])
        assert first == "caf"
        assert first + second == "café"

    def test_four_byte_character_one_byte_at_a_time(self):
        decoder = ByteDecoder()
        text = "".join(decoder.decode(bytes([b])) for b in "🙂".encode())
        assert text == "🙂"

    def test_malformed_bytes_raise(self):
        with pytest.raises(StreamDecodeError):
            ByteDecoder().decode(b"data: \xff\xfe\n\n")

    def test_truncated_sequence_raises_on_flush(self):
        decoder = ByteDecoder()
        decoder.decode("é".encode()[:1])
        with pytest.raises(StreamDecodeError, match="Truncated"):
            decoder.flush()

    def test_flush_after_complete_input_is_empty(self):
        decoder = ByteDecoder()
        decoder.decode(b"hello")
        assert decoder.flush() == ""


class TestFrameSplitter:
    def test_complete_frames_emitted_in_order(self):
        splitter = FrameSplitter()
        frames = splitter.feed("data: 1\n\ndata: 2\n\n")
        assert frames == ["data: 1", "data: 2"]
        assert splitter.buffer == ""

    def test_incomplete_frame_is_carried(self):
        splitter = FrameSplitter()
        assert splitter.feed("data: 1\n\ndata: {\"a\"") == ["data: 1"]
        assert splitter.buffer == 'data: {"a"'
        assert splitter.feed(": 1}\n\n") == ['data: {"a": 1}']
        assert splitter.buffer == ""

    def test_buffer_holds_at_most_one_frame(self):
        splitter = FrameSplitter()
        splitter.feed("data: a\n\ndata: b\n\ndata: c")
        assert "\n\n" not in splitter.buffer

    def test_blank_frames_dropped(self):
        splitter = FrameSplitter()
        assert splitter.feed("\n\n\n\ndata: x\n\n") == ["data: x"]

    def test_crlf_normalized_across_chunks(self):
        splitter = FrameSplitter()
        assert splitter.feed("data: x\r\n\r") == []
        assert splitter.feed("\n") == ["data: x"]

    def test_crlf_split_after_lone_cr(self):
        whole = FrameSplitter()
        whole.feed("data: x\r\r\n")
        split = FrameSplitter()
        split.feed("data: x\r")
        split.feed("\r\n")
        assert split.buffer == whole.buffer

    def test_large_frame_in_small_reads_is_not_rejoined(self):
        splitter = FrameSplitter()
        for _ in range(1000):
            assert splitter.feed("a" * 10) == []
        assert len(splitter._pending) == 1000
        assert splitter.feed("\n\n") == ["a" * 10_000]
        assert splitter._pending == []

    def test_delimiter_across_reads(self):
        splitter = FrameSplitter()
        assert splitter.feed("data: x\n") == []
        assert splitter.feed("\ndata: y") == ["data: x"]
        assert splitter.buffer == "data: y"

    def test_remainder_clears_buffer(self):
        splitter = FrameSplitter()
        splitter.feed("data: tail")
        assert splitter.remainder() == "data: tail"
        assert splitter.buffer == ""

    def test_empty_feed(self):
        assert FrameSplitter().feed("") == []


class TestChunkingInvariance:
    STREAM = (
        sse_frame(
            {
                "blocks": [
                    {"intended_usage": "ask_text", "markdown_block": {"answer": "café 日本 🙂"}}
                ]
            }
        )
        + sse_frame({"status": "PENDING", "text": "naïve"}, event="message")
        + "event: message\r\ndata: {\"x\": \"ü\"}\r\n\r\n"
        + sse_frame("[DONE]")
        + "data: {\"trailing\": true}"
    ).encode("utf-8")

    def test_one_chunk_baseline(self):
        frames, buffer = _frames_for([self.STREAM])
        assert len(frames) == 4
        assert buffer == 'data: {"trailing": true}'

    @pytest.mark.parametrize("size", [1, 2, 3, 5, 7, 11, 64])
    def test_fixed_size_chunks_match_single_chunk(self, size):
        assert _frames_for(split_bytes(self.STREAM, size)) == _frames_for([self.STREAM])

    def test_every_two_way_split_matches(self):
        expected = _frames_for([self.STREAM])
        for cut in range(1, len(self.STREAM)):
            chunks = [self.STREAM[:cut], self.STREAM[cut:]]
            assert _frames_for(chunks) == expected, f"split at byte {cut}"


class TestParseFrame:
    def test_data_only(self):
        assert parse_frame('data: {"a": 1}') == SSERecord(event=None, data='{"a": 1}')

    def test_event_and_data(self):
        record = parse_frame('event: message\ndata: {"a": 1}')
        assert record.event == "message"
        assert record.data == '{"a": 1}'

    def test_last_data_line_wins(self):
        assert parse_frame("data: first\ndata: second").data == "second"

    def test_data_without_space(self):
        assert parse_frame("data:{}").data == "{}"

    def test_comments_ignored(self):
        assert parse_frame(": keepalive\ndata: x").data == "x"

    def test_no_data_or_event_returns_none(self):
        assert parse_frame(": just a comment") is None
        assert parse_frame("id: 7") is None

    def test_event_only(self):
        record = parse_frame("event: end_of_stream")
        assert record.event == "end_of_stream"
        assert record.data == ""
        assert record.is_end_of_stream

    def test_sentinels(self):
        assert parse_frame("data: [DONE]").is_sentinel
        assert parse_frame("data: {}").is_sentinel
        assert parse_frame("data: ").is_sentinel
        assert not parse_frame('data: {"a": 1}').is_sentinel


class TestHelpers:
    @pytest.mark.parametrize("data", ["", "[DONE]", "{}"])
    def test_is_sentinel(self, data):
        assert is_sentinel(data)

    def test_is_not_sentinel(self):
        assert not is_sentinel('{"blocks": []}')

    @pytest.mark.parametrize("event", ["end_of_stream", "done", "END_OF_STREAM"])
    def test_end_of_stream_events(self, event):
        assert is_end_of_stream(event)

    @pytest.mark.parametrize("event", [None, "message", ""])
    def test_other_events(self, event):
        assert not is_end_of_stream(event)


class TestParsePayload:
    def test_object(self):
        assert parse_payload('{"status": "COMPLETED"}') == {"status": "COMPLETED"}

    def test_invalid_json_raises(self):
        with pytest.raises(FrameParseError):
            parse_payload('{"blocks": [')

    def test_non_object_raises(self):
        with pytest.raises(FrameParseError, match="not an object"):
            parse_payload("[1, 2]")
