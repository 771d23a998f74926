"""
Block extraction.

A payload's ``blocks`` list mixes final values, JSON-patch diffs and
source lists. These functions reduce one payload to the current answer
text, the full source list, and the related queries.
"""

import logging
from typing import Any

from ._types import Block, Patch, Source, WebResult

logger = logging.getLogger(__name__)

ASK_TEXT_USAGE = "ask_text"
MARKDOWN_FIELD = "markdown_block"
ANSWER_PATH = "/answer"

# Keys inside a patch value that hold a list of web results.
SOURCE_LIST_KEYS = ("web_results", "sources")


def parse_blocks(raw: Any) -> list[Block]:
    """Build typed blocks from a payload's raw ``blocks`` value, skipping non-objects."""
    if not isinstance(raw, list):
        return []
    return [Block.from_dict(item) for item in raw if isinstance(item, dict)]


def _answer_value(patch: Patch) -> str:
    """
    Answer text carried by one markdown patch.

    A bare string counts only at ``/answer``; other paths such as
    ``/progress`` or ``/chunks/-`` hold status values and fragments.
    """
    if isinstance(patch.value, str):
        return patch.value if patch.path == ANSWER_PATH else ""
    if isinstance(patch.value, dict):
        answer = patch.value.get("answer")
        if isinstance(answer, str):
            return answer
    return ""


def _answer_key_fallback(value: Any) -> str:
    if not isinstance(value, dict):
        return ""
    for key, candidate in value.items():
        if key.lower() == "answer" and isinstance(candidate, str) and candidate:
            return candidate
    return ""


def _answer_from_block(block: Block) -> str:
    # Final form: ask_text block carrying the whole answer.
    if block.intended_usage == ASK_TEXT_USAGE and block.markdown_block is not None:
        answer = block.markdown_block.get("answer")
        if isinstance(answer, str) and answer:
            return answer

    diff = block.diff_block
    if diff is None or not diff.patches:
        return ""

    if diff.field == MARKDOWN_FIELD:
        patch = next((p for p in diff.patches if p.path == ANSWER_PATH), diff.patches[0])
        answer = _answer_value(patch)
        if answer:
            return answer

    return _answer_key_fallback(diff.patches[0].value)


def extract_answer(blocks: list[Block]) -> str:
    """
    Return the answer carried by the first qualifying block.

    Answers are never concatenated across blocks. An empty result means
    "no update in this payload", not "the answer is now empty".
    """
    for block in blocks:
        answer = _answer_from_block(block)
        if answer:
            return answer
    return ""


def _normalize(entries: Any) -> list[Source]:
    if not isinstance(entries, list):
        return []
    return [
        Source.from_web_result(WebResult.from_dict(entry))
        for entry in entries
        if isinstance(entry, dict)
    ]


def _sources_from_mode_block(mode_block: dict) -> list[Source]:
    web_results = mode_block.get("web_results")
    if isinstance(web_results, list):
        return _normalize(web_results)

    # Row form wraps each result; only used when no flat list is present.
    rows = mode_block.get("rows")
    if not isinstance(rows, list):
        return []
    return _normalize([row.get("web_result") for row in rows if isinstance(row, dict)])


def extract_sources(blocks: list[Block]) -> list[Source]:
    """Accumulate normalized sources from every block of one payload, in block order."""
    sources: list[Source] = []
    for block in blocks:
        if block.sources_mode_block is not None:
            sources.extend(_sources_from_mode_block(block.sources_mode_block))

        if block.diff_block is None:
            continue
        for patch in block.diff_block.patches:
            if not isinstance(patch.value, dict):
                continue
            for key in SOURCE_LIST_KEYS:
                sources.extend(_normalize(patch.value.get(key)))
    return sources


def extract_related_queries(payload: dict[str, Any]) -> list[str] | None:
    """
    Related queries from a payload, preferring structured items over plain strings.

    Returns:
        The query texts, or None when the payload carries neither list
    """
    items = payload.get("related_query_items")
    if isinstance(items, list):
        return [
            item["text"]
            for item in items
            if isinstance(item, dict) and isinstance(item.get("text"), str)
        ]

    queries = payload.get("related_queries")
    if isinstance(queries, list):
        return [q for q in queries if isinstance(q, str)]

    return None


def extract_payload_answer(payload: dict[str, Any]) -> str:
    """Answer from blocks, falling back to a legacy top-level ``answer`` field."""
    answer = extract_answer(parse_blocks(payload.get("blocks")))
    if answer:
        return answer

    legacy = payload.get("answer")
    if isinstance(legacy, str) and legacy:
        logger.debug("Using legacy top-level answer field")
        return legacy
    return ""


def extract_payload_sources(payload: dict[str, Any]) -> list[Source]:
    """Sources from blocks, falling back to a legacy top-level ``sources`` list."""
    sources = extract_sources(parse_blocks(payload.get("blocks")))
    if sources:
        return sources
    return _normalize(payload.get("sources"))
