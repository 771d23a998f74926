"""Dataclass models mirroring the streamed payload schema and the final response."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

UNTITLED = "Untitled"


def _as_dict(value: Any) -> dict | None:
    return value if isinstance(value, dict) else None


def _as_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


@dataclass
class Patch:
    """One JSON-patch style operation. The shape of value depends on the enclosing block."""

    op: str | None
    path: str | None
    value: Any = None

    @classmethod
    def from_dict(cls, data: dict) -> Patch:
        return cls(
            op=_as_str(data.get("op")),
            path=_as_str(data.get("path")),
            value=data.get("value"),
        )


@dataclass
class DiffBlock:
    """A block expressed as an ordered list of patches against a named field."""

    field: str | None
    patches: list[Patch]

    @classmethod
    def from_dict(cls, data: dict) -> DiffBlock:
        raw_patches = data.get("patches")
        patches = (
            [Patch.from_dict(p) for p in raw_patches if isinstance(p, dict)]
            if isinstance(raw_patches, list)
            else []
        )
        return cls(field=_as_str(data.get("field")), patches=patches)


@dataclass
class Block:
    """One semantic unit of a streamed turn. Unknown fields are ignored."""

    intended_usage: str | None
    markdown_block: dict | None = None
    diff_block: DiffBlock | None = None
    sources_mode_block: dict | None = None

    @classmethod
    def from_dict(cls, data: dict) -> Block:
        diff = _as_dict(data.get("diff_block"))
        return cls(
            intended_usage=_as_str(data.get("intended_usage")),
            markdown_block=_as_dict(data.get("markdown_block")),
            diff_block=DiffBlock.from_dict(diff) if diff is not None else None,
            sources_mode_block=_as_dict(data.get("sources_mode_block")),
        )


@dataclass
class WebResult:
    """Source record as sent by the server, before normalization."""

    name: str | None = None
    title: str | None = None
    url: str | None = None
    snippet: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> WebResult:
        return cls(
            name=_as_str(data.get("name")),
            title=_as_str(data.get("title")),
            url=_as_str(data.get("url")),
            snippet=_as_str(data.get("snippet")),
        )


@dataclass
class Source:
    """Normalized citation: title resolved via name, title, url, then "Untitled"."""

    title: str
    url: str
    name: str | None = None

    @classmethod
    def from_web_result(cls, result: WebResult) -> Source:
        return cls(
            title=result.name or result.title or result.url or UNTITLED,
            url=result.url or "",
            name=result.name,
        )

    def to_dict(self) -> dict[str, str]:
        data = {"title": self.title, "url": self.url}
        if self.name is not None:
            data["name"] = self.name
        return data


@dataclass
class ChatStreamResponse:
    """Final snapshot delivered exactly once when a stream completes."""

    answer: str
    sources: list[Source] = field(default_factory=list)
    related_queries: list[str] | None = None
    generation: int = 0

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "answer": self.answer,
            "sources": [s.to_dict() for s in self.sources],
        }
        if self.related_queries:
            data["relatedQueries"] = list(self.related_queries)
        return data
