"""AskClient: posts a question and returns the streamed answer."""

from __future__ import annotations

from collections.abc import Callable
import itertools
import logging
import os
import threading

from ._exceptions import AskStreamError
from ._http import HTTPClient
from ._types import ChatStreamResponse
from .streaming import AskStream, CancelToken, dispatch

DEFAULT_BASE_URL = "https://mock-askperplexity.piyushhhxyz.deno.net"


class AskClient:
    """Client for a streaming question-answering endpoint.

    Usage:
        client = AskClient()
        with client.ask("What is the capital of France?") as stream:
            for event in stream:
                print(event)
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: int = 300,
        path: str = "",
        logger: logging.Logger | None = None,
    ):
        base_url = base_url or os.environ.get("ASKSTREAM_BASE_URL") or DEFAULT_BASE_URL
        api_key = api_key or os.environ.get("ASKSTREAM_API_KEY")

        self._http = HTTPClient(base_url=base_url, api_key=api_key, timeout=timeout)
        self._path = path
        self._logger = logger
        self._generations = itertools.count(1)
        self._generation_lock = threading.Lock()
        self._current_generation = 0

    @property
    def current_generation(self) -> int:
        return self._current_generation

    def is_current(self, generation: int) -> bool:
        """False once a newer question has been asked on this client."""
        return generation == self._current_generation

    def _next_generation(self) -> int:
        with self._generation_lock:
            self._current_generation = next(self._generations)
            return self._current_generation

    def ask(self, question: str, *, cancel_token: CancelToken | None = None) -> AskStream:
        """
        Post a question and return its answer stream.

        Every call starts a new generation; events and the final response of
        older streams carry their own generation so consumers can drop them.

        Raises:
            TransportError: On connection failure or a non-success status
        """
        generation = self._next_generation()
        resp = self._http.stream("POST", self._path, json={"question": question})
        return AskStream(
            resp, logger=self._logger, cancel_token=cancel_token, generation=generation
        )

    def close(self) -> None:
        self._http.close()


def stream_chat_response(
    question: str,
    on_chunk: Callable[[str], None] | None = None,
    on_complete: Callable[[ChatStreamResponse], None] | None = None,
    on_error: Callable[[Exception], None] | None = None,
    *,
    client: AskClient | None = None,
    cancel_token: CancelToken | None = None,
) -> None:
    """
    Stream an answer through the callback triple.

    on_chunk receives the full current answer each time it changes.
    Exactly one of on_complete or on_error fires, unless the stream is
    cancelled, in which case neither does. Errors are never raised.

    A client created here is closed before returning; a passed-in client
    stays open for the caller to reuse.
    """
    owns_client = client is None
    if client is None:
        client = AskClient()

    try:
        try:
            stream = client.ask(question, cancel_token=cancel_token)
        except AskStreamError as e:
            if on_error and not (cancel_token and cancel_token.cancelled):
                on_error(e)
            return

        with stream:
            dispatch(stream, on_chunk=on_chunk, on_complete=on_complete, on_error=on_error)
    finally:
        if owns_client:
            client.close()
