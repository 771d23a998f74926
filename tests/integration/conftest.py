"""Fixtures for end-to-end stream tests against mocked HTTP responses."""

import pytest

from tests.utils.mocks import sse_frame


def _markdown_patch(answer: str) -> dict:
    return {
        "intended_usage": "ask_text",
        "diff_block": {
            "field": "markdown_block",
            "patches": [
                {"op": "replace", "path": "/progress", "value": "IN_PROGRESS"},
                {"op": "replace", "path": "/answer", "value": answer},
            ],
        },
    }


@pytest.fixture
def realistic_stream() -> str:
    """A full answer turn as the server streams it: steps, sources, growing answer, final."""
    web_results = [
        {"name": "Paris - Wikipedia", "url": "https://en.wikipedia.org/wiki/Paris"},
        {"title": "Britannica: Paris", "url": "https://www.britannica.com/place/Paris"},
        {"url": "https://example.org/paris", "snippet": "no name or title"},
    ]
    frames = [
        sse_frame({"status": "PENDING", "blocks": [{"intended_usage": "pro_search_steps"}]}),
        ": keepalive\n\n",
        sse_frame(
            {
                "blocks": [
                    {
                        "intended_usage": "sources_answer_mode",
                        "diff_block": {
                            "field": "sources_mode_block",
                            "patches": [
                                {"op": "add", "path": "", "value": {"web_results": web_results[:1]}}
                            ],
                        },
                    }
                ]
            },
            event="message",
        ),
        sse_frame({"blocks": [_markdown_patch("The capital")]}, event="message"),
        sse_frame({"blocks": [_markdown_patch("The capital of France")]}, event="message"),
        sse_frame({"blocks": [_markdown_patch("The capital of France")]}, event="message"),
        "data: {this is not json\n\n",
        sse_frame(
            {
                "blocks": [
                    {
                        "intended_usage": "sources_answer_mode",
                        "sources_mode_block": {"web_results": web_results},
                    },
                    {
                        "intended_usage": "ask_text",
                        "markdown_block": {"answer": "The capital of France is **Paris**. [1]"},
                    },
                ],
                "related_queries": ["flat query"],
                "related_query_items": [
                    {"text": "What is the population of Paris?", "type": "RELATED"},
                    {"text": "When did Paris become the capital?"},
                ],
                "status": "COMPLETED",
                "final_sse_message": True,
            },
            event="message",
        ),
        sse_frame("{}"),
        "event: end_of_stream\ndata: {}\n\n",
    ]
    return "".join(frames)
