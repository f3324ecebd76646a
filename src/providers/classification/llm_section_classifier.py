"""LLM-backed section classifier.

Asks a chat-completion model whether one structural section of a book is
front or back matter (cover, copyright page, contents, acknowledgements,
index, ...) that should not be segmented.  Typically pointed at a cheap,
fast OpenAI-compatible host via ``Settings.classifier_settings()``.
"""

from __future__ import annotations

from typing import Any

import structlog
from bs4 import BeautifulSoup

from src.interfaces.llm_provider import ILLMProvider
from src.interfaces.section_classifier import ISectionClassifier
from src.models.document import RawSection
from src.utils.errors import LLMError
from src.utils.llm_json import parse_json_object

logger = structlog.get_logger(logger_name=__name__)

# Characters of visible text sent to the model.
_PREVIEW_CHARS = 1500

_SYSTEM_PROMPT = """\
You decide whether a section of an ebook contains the book's actual \
content or is boilerplate.  Reject sections such as the cover, title page, \
copyright notice, table of contents, dedication, acknowledgements, \
"about the author", "also by", index, bibliography and advertisements.  \
Keep prefaces, introductions, chapters, epilogues and anything else with \
substantive prose.

Respond with JSON only: {"reject": true} or {"reject": false}."""

_USER_PROMPT_TEMPLATE = "Section id: {section_id}\n\nSection text (truncated):\n{preview}"

CLASSIFIER_RESPONSE_SCHEMA: dict[str, Any] = {
    "name": "section_classification",
    "strict": True,
    "schema": {
        "type": "object",
        "properties": {"reject": {"type": "boolean"}},
        "required": ["reject"],
        "additionalProperties": False,
    },
}


def section_preview(raw_markup: str, max_chars: int = _PREVIEW_CHARS) -> str:
    """Return the first *max_chars* characters of the section's visible text."""
    text = BeautifulSoup(raw_markup, "html.parser").get_text(" ")
    return " ".join(text.split())[:max_chars]


class LLMSectionClassifier(ISectionClassifier):
    """Section classifier that delegates to any :class:`ILLMProvider`."""

    def __init__(self, llm_provider: ILLMProvider) -> None:
        self._llm = llm_provider

    async def should_reject(self, section: RawSection) -> bool:
        preview = section_preview(section.raw_markup)
        if not preview:
            # Nothing to read (image-only cover, empty spacer page).
            return True

        response = await self._llm.complete(
            system_prompt=_SYSTEM_PROMPT,
            user_prompt=_USER_PROMPT_TEMPLATE.format(
                section_id=section.section_id, preview=preview
            ),
            temperature=0.0,
            max_tokens=50,
            response_schema=CLASSIFIER_RESPONSE_SCHEMA,
        )

        try:
            data = parse_json_object(response)
        except ValueError as exc:
            raise LLMError(
                message=f"Classifier response is not JSON: {response[:100]!r}",
                provider_name=self.get_provider_name(),
            ) from exc

        reject = data.get("reject")
        if not isinstance(reject, bool):
            raise LLMError(
                message=f"Classifier response has no boolean 'reject': {data!r}",
                provider_name=self.get_provider_name(),
            )

        logger.debug("section_classified", section_id=section.section_id, reject=reject)
        return reject

    def get_provider_name(self) -> str:
        return f"llm_classifier:{self._llm.get_provider_name()}"
