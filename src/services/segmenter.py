"""Sentence segmentation of raw section markup into globally indexed units.

The segmenter walks a section's markup in document order, collects the
text of block-level elements (paragraphs, list items, headings, ...) and
normalizes whitespace.  Consecutive fragments are then **aggregated** until
the running word count exceeds ``min_words``; each aggregate becomes one
:class:`~src.models.document.SentenceUnit`.  Short fragments such as
headings or one-word lines therefore merge into the following text instead
of flooding the index with units nobody would cite.

A trailing aggregate that never reaches the threshold is still sealed, so
the tail of a section is never dropped.

The segmenter is pure: the caller supplies the next free global index and
advances its own counter by the number of units returned.
"""

from __future__ import annotations

from bs4 import BeautifulSoup
from bs4.element import Comment, Declaration, Doctype, NavigableString, ProcessingInstruction, Tag

from src.models.document import SentenceUnit
from src.utils.logging import get_logger

logger = get_logger(__name__)

# Elements whose text forms one fragment.
BLOCK_TAGS = frozenset(
    {"p", "li", "blockquote", "pre", "h1", "h2", "h3", "h4", "h5", "h6", "div"}
)
_BLOCK_TAG_NAMES = sorted(BLOCK_TAGS)

# Elements whose text is never content.
_IGNORED_TAGS = frozenset({"script", "style", "head", "title", "nav"})

_NON_TEXT_NODES = (Comment, Declaration, Doctype, ProcessingInstruction)

# A unit must have more than this many words before it is sealed.
DEFAULT_MIN_SENTENCE_WORDS = 5


def normalize_text(text: str) -> str:
    """Collapse every run of whitespace (newlines, tabs, nbsp) to one space."""
    return " ".join(text.split())


def word_count(text: str) -> int:
    return len(text.split())


class SentenceSegmenter:
    """Turns one section's markup into ordered, indexed sentence units."""

    def __init__(self, min_words: int = DEFAULT_MIN_SENTENCE_WORDS) -> None:
        if min_words < 0:
            msg = f"min_words must be >= 0, got {min_words}"
            raise ValueError(msg)
        self._min_words = min_words

    def segment(self, raw_markup: str, start_index: int) -> list[SentenceUnit]:
        """Segment *raw_markup*, numbering units from *start_index* upward.

        Parameters
        ----------
        raw_markup:
            The section's (X)HTML.
        start_index:
            The next unused global index (>= 1).

        Returns
        -------
        list[SentenceUnit]
            Units with indices ``start_index, start_index + 1, ...``.
        """
        if start_index < 1:
            msg = f"start_index must be >= 1, got {start_index}"
            raise ValueError(msg)

        units: list[SentenceUnit] = []
        pending: list[str] = []
        pending_words = 0

        for fragment in self.extract_fragments(raw_markup):
            pending.append(fragment)
            pending_words += word_count(fragment)
            if pending_words > self._min_words:
                units.append(SentenceUnit(index=start_index + len(units), text=" ".join(pending)))
                pending, pending_words = [], 0

        if pending:
            units.append(SentenceUnit(index=start_index + len(units), text=" ".join(pending)))

        logger.debug("section_segmented", start_index=start_index, units=len(units))
        return units

    def extract_fragments(self, raw_markup: str) -> list[str]:
        """Return the normalized text of each block element, in document order.

        A block nested inside another block yields its own fragment; the
        outer block only contributes the text that sits between its nested
        blocks, so no text is emitted twice.  Text outside any block element
        is ignored.
        """
        soup = BeautifulSoup(raw_markup, "html.parser")
        fragments: list[str] = []
        self._walk(soup, inside_block=False, fragments=fragments)
        return fragments

    def _walk(self, node: Tag, inside_block: bool, fragments: list[str]) -> None:
        run: list[str] = []

        def flush() -> None:
            if inside_block:
                text = normalize_text("".join(run))
                if text:
                    fragments.append(text)
            run.clear()

        for child in node.children:
            if isinstance(child, _NON_TEXT_NODES):
                continue
            if isinstance(child, NavigableString):
                run.append(str(child))
            elif isinstance(child, Tag):
                if child.name in _IGNORED_TAGS:
                    continue
                if child.name == "br":
                    run.append(" ")
                elif child.name in BLOCK_TAGS:
                    flush()
                    self._walk(child, inside_block=True, fragments=fragments)
                elif child.find(_BLOCK_TAG_NAMES) is not None:
                    # Structural wrapper (body, section, span) around blocks.
                    flush()
                    self._walk(child, inside_block=inside_block, fragments=fragments)
                else:
                    run.append(child.get_text())
        flush()
