"""Reconciliation of extraction results into verified sentence ranges.

For each :class:`ExtractionResult` the reconciler

1. parses the model's tagged span (:func:`parse_tagged_span`) and takes
   ``(min index, max index)`` as the range;
2. falls back to :data:`FALLBACK_INDEX` when no tag parses, logging an
   error (``tag_parse_fallback``);
3. clamps each bound to the nearest index the document has, logging a
   warning (``range_clamped``); a result is dropped only when the
   document has no sentences at all;
4. rebuilds ``sentence_text`` from the document's own sentences.

Text the model echoed inside its tags is never used as source text.
"""

from __future__ import annotations

from bisect import bisect_left, bisect_right
from dataclasses import dataclass, field

from src.models.document import SourceDocument
from src.models.snippet import ExtractionResult, Snippet
from src.services.tag_parser import TagParseFailure, parse_tagged_span
from src.utils.logging import get_logger

logger = get_logger(__name__)

# Range assigned when a tagged span contains no parseable index tag.
# Kept for compatibility with existing data; it can attribute a snippet
# to the wrong sentence, so every use is logged at error level.
FALLBACK_INDEX = 1


@dataclass
class ReconcileReport:
    snippets: list[Snippet] = field(default_factory=list)
    fallbacks: int = 0
    clamped: int = 0
    dropped: int = 0


class IndexReconciler:
    """Maps extraction results onto one document's sentence index set."""

    def __init__(self, document: SourceDocument) -> None:
        self._document = document
        self._indices = document.sorted_indices
        self._last_fallback = False
        self._last_clamped = False

    def resolve_range(self, tagged_span: str) -> tuple[int, int] | None:
        """Return the verified ``(start, end)`` for *tagged_span*, or ``None``
        when the document has no sentences."""
        self._last_fallback = False
        self._last_clamped = False

        parsed = parse_tagged_span(tagged_span)
        if isinstance(parsed, TagParseFailure):
            self._last_fallback = True
            logger.error(
                "tag_parse_fallback",
                reason=parsed.reason,
                fallback_index=FALLBACK_INDEX,
                document_id=self._document.id,
                tagged_span=tagged_span[:200],
            )
            start = end = FALLBACK_INDEX
        else:
            start, end = parsed.start_index, parsed.end_index

        if start > end:
            start, end = end, start

        return self._clamp(start, end)

    def reconcile(self, result: ExtractionResult) -> Snippet | None:
        """Build a :class:`Snippet` from *result*, or ``None`` if it is dropped."""
        resolved = self.resolve_range(result.tagged_span)
        if resolved is None:
            return None
        start, end = resolved
        return Snippet(
            start_index=start,
            end_index=end,
            snippet_text=result.snippet_text,
            context=result.context,
            themes=list(result.themes),
            sentence_text=self._document.text_for_range(start, end),
            document_id=self._document.id,
            tagged_span=result.tagged_span,
        )

    def reconcile_all(self, results: list[ExtractionResult]) -> ReconcileReport:
        report = ReconcileReport()
        for result in results:
            snippet = self.reconcile(result)
            report.fallbacks += int(self._last_fallback)
            report.clamped += int(self._last_clamped)
            if snippet is None:
                report.dropped += 1
            else:
                report.snippets.append(snippet)

        logger.info(
            "snippets_reconciled",
            document_id=self._document.id,
            results=len(results),
            snippets=len(report.snippets),
            fallbacks=report.fallbacks,
            clamped=report.clamped,
            dropped=report.dropped,
        )
        return report

    def _clamp(self, start: int, end: int) -> tuple[int, int] | None:
        """Snap *start* and *end* onto indices the document has.

        Bounds past either end of the document move to the first or last
        index. Bounds inside a gap move inward; when both fall in the same
        gap the range collapses onto the index nearest *start*. Only a
        document with no sentences drops the range.
        """
        if not self._indices:
            logger.warning("snippet_range_dropped", start=start, end=end, reason="empty document")
            return None

        first, last = self._indices[0], self._indices[-1]
        lo_bound = max(first, min(start, last))
        hi_bound = max(first, min(end, last))

        lo = bisect_left(self._indices, lo_bound)
        hi = bisect_right(self._indices, hi_bound) - 1
        if lo > hi:
            nearest = self._nearest_index(lo_bound)
            clamped_start = clamped_end = nearest
        else:
            clamped_start, clamped_end = self._indices[lo], self._indices[hi]

        if (clamped_start, clamped_end) != (start, end):
            self._last_clamped = True
            logger.warning(
                "range_clamped",
                document_id=self._document.id,
                start=start,
                end=end,
                clamped_start=clamped_start,
                clamped_end=clamped_end,
            )
        return clamped_start, clamped_end

    def _nearest_index(self, value: int) -> int:
        pos = bisect_left(self._indices, value)
        if pos == 0:
            return self._indices[0]
        if pos == len(self._indices):
            return self._indices[-1]
        below, above = self._indices[pos - 1], self._indices[pos]
        # Ties go to the earlier sentence.
        return below if value - below <= above - value else above
