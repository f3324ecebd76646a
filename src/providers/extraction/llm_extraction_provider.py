"""LLM-backed snippet extraction provider.

Sends one chunk of index-tagged sentences to a chat-completion model and
returns the validated snippet candidates.  The model is asked to copy the
tagged fragments it drew each snippet from into ``taggedSpan``; those tags
are the only thing downstream code trusts for locating the snippet.

Parsing goes through :func:`src.utils.llm_json.parse_json_object` so code
fences and stray prose around the JSON are tolerated, then through the
``ExtractionPayload`` pydantic model.  Anything that survives neither is a
:class:`MalformedExtractionOutputError`, which the orchestrator treats as
"zero results for this chunk".
"""

from __future__ import annotations

from typing import Any

import structlog
from pydantic import ValidationError

from src.interfaces.extraction_provider import IExtractionProvider
from src.interfaces.llm_provider import ILLMProvider
from src.models.snippet import ExtractionPayload, ExtractionResult
from src.utils.errors import MalformedExtractionOutputError
from src.utils.llm_json import parse_json_object

logger = structlog.get_logger(logger_name=__name__)

_SYSTEM_PROMPT = """\
You read passages from a book and pull out short, stand-alone snippets that \
a reader would want to save or share: striking ideas, memorable lines, \
useful explanations.

The passage is a sequence of sentences, each wrapped in a numeric tag, for \
example <12>Some sentence.</12>.

For every snippet return:
- snippetText: the snippet itself, 1 to 3 sentences, understandable without \
the rest of the book.
- context: one sentence situating the snippet (who is speaking, what is \
being discussed).
- themes: 1 to 4 short lowercase theme names.
- taggedSpan: the exact tagged sentences from the passage that the snippet \
is drawn from, tags included, e.g. <12>...</12> <13>...</13>.

Never invent tags that are not in the passage.  Return an empty list when \
nothing in the passage is worth keeping.

Respond with JSON only: {"snippets": [{"snippetText": "...", "context": \
"...", "themes": ["..."], "taggedSpan": "..."}]}"""

_USER_PROMPT_TEMPLATE = "Passage:\n\n{chunk_text}"

EXTRACTION_RESPONSE_SCHEMA: dict[str, Any] = {
    "name": "snippet_extraction",
    "strict": True,
    "schema": {
        "type": "object",
        "properties": {
            "snippets": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "snippetText": {"type": "string"},
                        "context": {"type": "string"},
                        "themes": {"type": "array", "items": {"type": "string"}},
                        "taggedSpan": {"type": "string"},
                    },
                    "required": ["snippetText", "context", "themes", "taggedSpan"],
                    "additionalProperties": False,
                },
            }
        },
        "required": ["snippets"],
        "additionalProperties": False,
    },
}


class LLMExtractionProvider(IExtractionProvider):
    """Extraction provider that delegates to any :class:`ILLMProvider`."""

    def __init__(
        self,
        llm_provider: ILLMProvider,
        temperature: float = 0.3,
        max_tokens: int = 4000,
    ) -> None:
        self._llm = llm_provider
        self._temperature = temperature
        self._max_tokens = max_tokens

    async def extract(self, chunk_text: str) -> list[ExtractionResult]:
        response = await self._llm.complete(
            system_prompt=_SYSTEM_PROMPT,
            user_prompt=_USER_PROMPT_TEMPLATE.format(chunk_text=chunk_text),
            temperature=self._temperature,
            max_tokens=self._max_tokens,
            response_schema=EXTRACTION_RESPONSE_SCHEMA,
        )
        return self.parse_response(response)

    def parse_response(self, response: str) -> list[ExtractionResult]:
        """Parse and validate a raw model response."""
        try:
            data = parse_json_object(response)
        except ValueError as exc:
            raise MalformedExtractionOutputError(
                message=f"Extraction response is not a JSON object: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        try:
            payload = ExtractionPayload.model_validate(data)
        except ValidationError as exc:
            raise MalformedExtractionOutputError(
                message=f"Extraction response failed validation: {exc.error_count()} error(s)",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.debug(
            "extraction_response_parsed",
            provider=self.get_provider_name(),
            snippet_count=len(payload.snippets),
        )
        return list(payload.snippets)

    def get_provider_name(self) -> str:
        return f"llm_extraction:{self._llm.get_provider_name()}"
