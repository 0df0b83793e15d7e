"""Structured text produced by the interpolation engine.

Authored prose never reaches a renderer as a flat string. It is evaluated
into blocks (paragraphs and sub-paragraphs), each holding an ordered list of
styled spans. The JSON form of these models is the renderer boundary::

    {"block": "paragraph",
     "heading": [{"style": "bold-italic", "content": "Nimble Escape."}],
     "body": [{"style": "normal", "content": "The goblin can take ..."}]}
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class SpanStyle(StrEnum):
    """Inline styles a span of text can carry."""

    NORMAL = "normal"
    ITALIC = "italic"
    BOLD = "bold"
    BOLD_ITALIC = "bold-italic"

    @classmethod
    def combine(cls, *, bold: bool, italic: bool) -> SpanStyle:
        """Return the style for a bold/italic flag pair."""
        if bold and italic:
            return cls.BOLD_ITALIC
        if bold:
            return cls.BOLD
        if italic:
            return cls.ITALIC
        return cls.NORMAL


class BlockKind(StrEnum):
    """Kinds of text block."""

    PARAGRAPH = "paragraph"
    SUB_PARAGRAPH = "sub-paragraph"


class Span(BaseModel):
    """A run of text in a single style."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    style: SpanStyle = SpanStyle.NORMAL
    content: str


class TextBlock(BaseModel):
    """A paragraph or sub-paragraph of styled spans.

    Attributes:
        block: Whether this is a top-level paragraph or a sub-paragraph.
        heading: Optional run-in heading, printed before the body.
        body: Spans in source order.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    block: BlockKind = BlockKind.PARAGRAPH
    heading: tuple[Span, ...] | None = None
    body: tuple[Span, ...] = Field(default_factory=tuple)

    @property
    def plain_text(self) -> str:
        """Heading and body joined without styling."""
        heading = "".join(span.content for span in self.heading or ())
        body = "".join(span.content for span in self.body)
        if heading and body:
            return f"{heading} {body}"
        return heading or body


StructuredText = tuple[TextBlock, ...]
"""The full result of interpolating one authored text."""


def plain_text(text: StructuredText) -> str:
    """Flatten structured text into a single string, one line per block."""
    return "\n".join(block.plain_text for block in text)


def merge_spans(spans: list[Span]) -> tuple[Span, ...]:
    """Merge adjacent spans that share a style and drop empty ones.

    Args:
        spans: Spans in source order.

    Returns:
        The merged spans.

    Example:
        >>> merge_spans([Span(content="a"), Span(content="b")])
        (Span(style=<SpanStyle.NORMAL: 'normal'>, content='ab'),)
    """
    merged: list[Span] = []
    for span in spans:
        if not span.content:
            continue
        if merged and merged[-1].style == span.style:
            merged[-1] = Span(style=span.style, content=merged[-1].content + span.content)
        else:
            merged.append(span)
    return tuple(merged)


__all__ = [
    "SpanStyle",
    "BlockKind",
    "Span",
    "TextBlock",
    "StructuredText",
    "plain_text",
    "merge_spans",
]
