"""Optional pre-segmentation filter for boilerplate sections.

Wraps an :class:`ISectionClassifier` and applies an explicit failure
policy.  A classifier error is never fatal: the section is decided by
:data:`REJECT_ON_CLASSIFIER_FAILURE` and the run continues.  With no
classifier configured every section is accepted.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from src.interfaces.section_classifier import ISectionClassifier
from src.models.document import RawSection
from src.utils.concurrency import throttled_gather
from src.utils.logging import get_logger

logger = get_logger(__name__)

# Decision applied when the classifier raises for a section.  ``False``
# means accept: losing a real chapter costs more than segmenting a
# copyright page, whose units rarely yield snippets anyway.
REJECT_ON_CLASSIFIER_FAILURE = False


@dataclass
class SectionFilterResult:
    accepted: list[RawSection] = field(default_factory=list)
    rejected: list[RawSection] = field(default_factory=list)
    classifier_failures: int = 0


class SectionFilter:
    """Decides, per section, whether it is segmented at all."""

    def __init__(
        self,
        classifier: ISectionClassifier | None = None,
        max_concurrency: int = 5,
        reject_on_failure: bool = REJECT_ON_CLASSIFIER_FAILURE,
    ) -> None:
        self._classifier = classifier
        self._max_concurrency = max(1, max_concurrency)
        self._reject_on_failure = reject_on_failure

    @property
    def enabled(self) -> bool:
        return self._classifier is not None

    async def filter(self, sections: list[RawSection]) -> SectionFilterResult:
        """Classify *sections* concurrently; accepted ones keep their order."""
        if self._classifier is None or not sections:
            return SectionFilterResult(accepted=list(sections))

        semaphore = asyncio.Semaphore(self._max_concurrency)
        decisions = await throttled_gather(
            [self._classifier.should_reject(section) for section in sections],
            semaphore,
        )

        result = SectionFilterResult()
        for section, decision in zip(sections, decisions):
            if isinstance(decision, BaseException):
                if not isinstance(decision, Exception):
                    raise decision
                result.classifier_failures += 1
                logger.warning(
                    "section_classifier_failed",
                    section_id=section.section_id,
                    error=str(decision),
                    reject=self._reject_on_failure,
                )
                reject = self._reject_on_failure
            else:
                reject = bool(decision)

            if reject:
                result.rejected.append(section)
                logger.info("section_rejected", section_id=section.section_id)
            else:
                result.accepted.append(section)

        logger.info(
            "sections_filtered",
            total=len(sections),
            accepted=len(result.accepted),
            rejected=len(result.rejected),
            classifier_failures=result.classifier_failures,
        )
        return result
