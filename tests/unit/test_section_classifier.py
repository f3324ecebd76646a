"""Unit tests for LLMSectionClassifier."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.models.document import RawSection
from src.providers.classification.llm_section_classifier import (
    LLMSectionClassifier,
    section_preview,
)
from src.utils.errors import LLMError


def _llm(response: str) -> MagicMock:
    llm = MagicMock()
    llm.complete = AsyncMock(return_value=response)
    llm.get_provider_name.return_value = "groq"
    return llm


def _section(markup: str, section_id: str = "s1") -> RawSection:
    return RawSection(section_id=section_id, raw_markup=markup)


class TestLLMSectionClassifier:
    @pytest.mark.asyncio
    async def test_reject_true(self) -> None:
        classifier = LLMSectionClassifier(_llm('{"reject": true}'))
        assert await classifier.should_reject(_section("<p>Copyright 2020</p>")) is True

    @pytest.mark.asyncio
    async def test_reject_false_with_prose_around_json(self) -> None:
        classifier = LLMSectionClassifier(_llm('Sure: {"reject": false}'))
        assert await classifier.should_reject(_section("<p>Chapter one begins.</p>")) is False

    @pytest.mark.asyncio
    async def test_empty_section_is_rejected_without_a_call(self) -> None:
        llm = _llm('{"reject": false}')
        assert await LLMSectionClassifier(llm).should_reject(_section("<div><img src='c.jpg'/></div>")) is True
        llm.complete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_non_json_raises(self) -> None:
        with pytest.raises(LLMError):
            await LLMSectionClassifier(_llm("maybe")).should_reject(_section("<p>text</p>"))

    @pytest.mark.asyncio
    async def test_non_boolean_reject_raises(self) -> None:
        with pytest.raises(LLMError):
            await LLMSectionClassifier(_llm('{"reject": "yes"}')).should_reject(_section("<p>text</p>"))

    @pytest.mark.asyncio
    async def test_prompt_carries_section_id_and_preview(self) -> None:
        llm = _llm('{"reject": false}')
        await LLMSectionClassifier(llm).should_reject(_section("<p>Acknowledgements</p>", "ack"))

        prompt = llm.complete.call_args.kwargs["user_prompt"]
        assert "ack" in prompt
        assert "Acknowledgements" in prompt


def test_section_preview_truncates_visible_text() -> None:
    markup = "<html><body><p>" + "word " * 1000 + "</p></body></html>"
    preview = section_preview(markup, max_chars=50)

    assert len(preview) == 50
    assert "<p>" not in preview
