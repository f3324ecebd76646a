"""Unit tests for SentenceSegmenter."""

from __future__ import annotations

import pytest

from src.services.segmenter import SentenceSegmenter, normalize_text


class TestExtractFragments:
    def test_block_elements_in_document_order(self) -> None:
        markup = "<body><h2>Title here</h2><p>First para.</p><li>Item one</li></body>"
        assert SentenceSegmenter().extract_fragments(markup) == ["Title here", "First para.", "Item one"]

    def test_nested_blocks_are_not_duplicated(self) -> None:
        markup = "<div><p>alpha beta</p><p>gamma delta</p></div>"
        assert SentenceSegmenter().extract_fragments(markup) == ["alpha beta", "gamma delta"]

    def test_container_text_between_nested_blocks_is_kept_in_order(self) -> None:
        markup = "<div>lead in<p>inner text</p>trailing words</div>"
        assert SentenceSegmenter().extract_fragments(markup) == ["lead in", "inner text", "trailing words"]

    def test_text_outside_blocks_is_ignored(self) -> None:
        markup = "<body>loose text<p>kept text</p></body>"
        assert SentenceSegmenter().extract_fragments(markup) == ["kept text"]

    def test_inline_markup_does_not_split_words(self) -> None:
        markup = "<p>un<em>believ</em>able<br/>story</p>"
        assert SentenceSegmenter().extract_fragments(markup) == ["unbelievable story"]

    def test_scripts_and_styles_are_skipped(self) -> None:
        markup = "<p>visible<script>var x = 1;</script></p><style>p {}</style>"
        assert SentenceSegmenter().extract_fragments(markup) == ["visible"]

    def test_whitespace_is_normalized(self) -> None:
        markup = "<p>  spread\n\tacross\r\n   lines here </p>"
        assert SentenceSegmenter().extract_fragments(markup) == ["spread across lines here"]

    def test_empty_blocks_produce_nothing(self) -> None:
        assert SentenceSegmenter().extract_fragments("<p>   </p><div></div>") == []


class TestSegment:
    def test_long_paragraphs_become_one_unit_each(self) -> None:
        markup = "<p>one two three four five six</p><p>seven eight nine ten eleven twelve</p>"
        units = SentenceSegmenter(min_words=5).segment(markup, start_index=1)

        assert [u.index for u in units] == [1, 2]
        assert units[0].text == "one two three four five six"
        assert units[1].text == "seven eight nine ten eleven twelve"

    def test_short_fragments_aggregate_until_threshold_exceeded(self) -> None:
        markup = "<h1>Chapter One</h1><p>It was a bright cold day in April.</p>"
        units = SentenceSegmenter(min_words=5).segment(markup, start_index=1)

        assert len(units) == 1
        assert units[0].text == "Chapter One It was a bright cold day in April."

    def test_exactly_threshold_words_is_not_yet_sealed(self) -> None:
        markup = "<p>one two three four five</p><p>six</p>"
        units = SentenceSegmenter(min_words=5).segment(markup, start_index=1)

        assert [u.text for u in units] == ["one two three four five six"]

    def test_trailing_short_aggregate_is_kept(self) -> None:
        markup = "<p>one two three four five six</p><p>The end.</p>"
        units = SentenceSegmenter(min_words=5).segment(markup, start_index=1)

        assert [u.text for u in units] == ["one two three four five six", "The end."]

    def test_indices_start_at_supplied_index(self) -> None:
        markup = "<p>one two three four five six</p><p>seven eight nine ten eleven twelve</p>"
        units = SentenceSegmenter().segment(markup, start_index=41)

        assert [u.index for u in units] == [41, 42]

    def test_empty_section_yields_no_units(self) -> None:
        assert SentenceSegmenter().segment("<html><body></body></html>", start_index=1) == []

    def test_start_index_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            SentenceSegmenter().segment("<p>text</p>", start_index=0)

    def test_negative_min_words_rejected(self) -> None:
        with pytest.raises(ValueError):
            SentenceSegmenter(min_words=-1)

    def test_xhtml_with_declaration(self) -> None:
        markup = (
            '<?xml version="1.0" encoding="utf-8"?>\n'
            "<!DOCTYPE html>\n"
            '<html xmlns="http://www.w3.org/1999/xhtml"><head><title>Ch 1</title></head>'
            "<body><p>The river flows on and never the same water twice.</p></body></html>"
        )
        units = SentenceSegmenter().segment(markup, start_index=1)

        assert [u.text for u in units] == ["The river flows on and never the same water twice."]


def test_normalize_text_collapses_whitespace() -> None:
    assert normalize_text("  a \n b\t\tc ") == "a b c"
