"""Fixed-window batching of sentence units into extraction chunks."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from src.models.snippet import Chunk

DEFAULT_CHUNK_WINDOW = 20


def render_tagged(pairs: Iterable[tuple[int, str]]) -> str:
    """Render ``(index, text)`` pairs as ``<index>text</index>`` joined by spaces."""
    return " ".join(f"<{index}>{text}</{index}>" for index, text in pairs)


class ChunkBatcher:
    """Splits a document's sentence map into windows of at most ``window_size``.

    Chunks follow ascending index order with no gaps, overlap or
    reordering, so the chunks' index sets partition the document's.
    """

    def __init__(self, window_size: int = DEFAULT_CHUNK_WINDOW) -> None:
        if window_size < 1:
            msg = f"window_size must be >= 1, got {window_size}"
            raise ValueError(msg)
        self._window_size = window_size

    @property
    def window_size(self) -> int:
        return self._window_size

    def batch(self, sentences: Mapping[int, str]) -> list[Chunk]:
        indices = sorted(sentences)
        chunks: list[Chunk] = []
        for start in range(0, len(indices), self._window_size):
            window = tuple(indices[start : start + self._window_size])
            chunks.append(
                Chunk(
                    position=len(chunks),
                    indices=window,
                    text=render_tagged((i, sentences[i]) for i in window),
                )
            )
        return chunks
