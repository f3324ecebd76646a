"""Parser for index-tagged spans returned by the extraction model.

Grammar (informal)::

    span      := (noise | fragment)*
    fragment  := open content [close]
    open      := "<" DIGITS ">"
    close     := "</" DIGITS ">"
    content   := any text up to the next open tag, close tag or end of input

A fragment without a closing tag runs until the next opening tag or the
end of the span; stray closing tags and any other ``<`` are treated as
text.  Models are sloppy with closing tags, and the opening tag alone is
what identifies the sentence.

The result is an explicit variant: :class:`TagParseSuccess` with the
``(index, text)`` pairs in order of appearance, or :class:`TagParseFailure`
with a reason.  Choosing a fallback is the caller's job.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

_DIGITS = frozenset("0123456789")


@dataclass(frozen=True)
class TaggedFragment:
    index: int
    text: str


@dataclass(frozen=True)
class TagParseSuccess:
    fragments: tuple[TaggedFragment, ...]

    @property
    def indices(self) -> list[int]:
        return [f.index for f in self.fragments]

    @property
    def start_index(self) -> int:
        return min(self.indices)

    @property
    def end_index(self) -> int:
        return max(self.indices)


@dataclass(frozen=True)
class TagParseFailure:
    reason: str


TagParseResult = Union[TagParseSuccess, TagParseFailure]  # noqa: UP007


def _read_tag(span: str, pos: int) -> tuple[bool, int, int] | None:
    """Try to read ``<n>`` or ``</n>`` at *pos*.

    Returns ``(is_closing, index, end_pos)`` or ``None`` if the text at
    *pos* is not an index tag.
    """
    length = len(span)
    cursor = pos + 1
    closing = cursor < length and span[cursor] == "/"
    if closing:
        cursor += 1
    digits_start = cursor
    while cursor < length and span[cursor] in _DIGITS:
        cursor += 1
    if cursor == digits_start or cursor >= length or span[cursor] != ">":
        return None
    return closing, int(span[digits_start:cursor]), cursor + 1


def parse_tagged_span(span: str) -> TagParseResult:
    """Extract ``(index, text)`` fragments from a model-returned tagged span."""
    if not span or not span.strip():
        return TagParseFailure(reason="empty tagged span")

    fragments: list[TaggedFragment] = []
    open_index: int | None = None
    content_start = 0
    pos = 0

    def close_fragment(end: int) -> None:
        if open_index is not None:
            fragments.append(TaggedFragment(index=open_index, text=span[content_start:end].strip()))

    while pos < len(span):
        if span[pos] != "<":
            pos += 1
            continue
        tag = _read_tag(span, pos)
        if tag is None:
            pos += 1
            continue

        is_closing, index, end = tag
        if is_closing:
            close_fragment(pos)
            open_index = None
        else:
            close_fragment(pos)
            open_index = index
            content_start = end
        pos = end

    close_fragment(len(span))

    if not fragments:
        return TagParseFailure(reason="no index tags found")
    return TagParseSuccess(fragments=tuple(fragments))
